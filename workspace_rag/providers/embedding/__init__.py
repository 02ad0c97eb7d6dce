"""Embedding provider adapters."""

from workspace_rag.providers.embedding.voyage_embedding_provider import VoyageEmbeddingProvider

__all__ = ["VoyageEmbeddingProvider"]
