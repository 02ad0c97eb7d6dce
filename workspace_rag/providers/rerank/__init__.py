"""Reranker adapters."""

from workspace_rag.providers.rerank.voyage_reranker import VoyageReranker

__all__ = ["VoyageReranker"]
