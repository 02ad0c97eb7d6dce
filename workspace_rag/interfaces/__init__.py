"""Abstract provider interfaces (adapter pattern).

Services depend only on these ABCs; concrete adapters live under
``workspace_rag.providers`` and are wired together in ``workspace_rag.main``.
"""

from workspace_rag.interfaces.cache_provider import ICacheProvider
from workspace_rag.interfaces.embedding_provider import IEmbeddingProvider
from workspace_rag.interfaces.llm_provider import ILLMProvider
from workspace_rag.interfaces.reranker_provider import IRerankerProvider
from workspace_rag.interfaces.topic_segmenter import ITopicSegmenter
from workspace_rag.interfaces.vector_store_provider import IVectorStoreProvider

__all__ = [
    "ICacheProvider",
    "IEmbeddingProvider",
    "ILLMProvider",
    "IRerankerProvider",
    "ITopicSegmenter",
    "IVectorStoreProvider",
]
