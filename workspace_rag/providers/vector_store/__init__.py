"""Vector store provider implementations.

ChromaDB is the only implementation: one collection per workspace namespace,
either embedded (persistent on disk) or remote over HTTP.
"""

from workspace_rag.providers.vector_store.chromadb_provider import (
    ChromaVectorStore,
    build_chroma_client,
    translate_filters,
)

__all__ = ["ChromaVectorStore", "build_chroma_client", "translate_filters"]
