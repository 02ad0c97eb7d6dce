"""Command-line tools for the workspace RAG index.

- ``python -m workspace_rag.cli`` / ``workspace-rag`` -- setup, stats,
  ingest, search, delete and purge.
"""
