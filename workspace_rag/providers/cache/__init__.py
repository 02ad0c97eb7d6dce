"""Cache provider implementations."""

from workspace_rag.providers.cache.memory_cache import MemoryCacheProvider

__all__ = ["MemoryCacheProvider"]
