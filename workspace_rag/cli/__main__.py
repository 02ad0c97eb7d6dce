"""Allow ``python -m workspace_rag.cli`` execution."""

from workspace_rag.cli.rag import main

main()
