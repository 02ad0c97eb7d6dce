"""Concrete adapters for the interfaces in ``workspace_rag.interfaces``."""
