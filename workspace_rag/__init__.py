"""workspace-rag: ingestion and semantic retrieval for workspace documents."""

__version__ = "0.1.0"
