"""In-memory cache provider using cachetools.TTLCache.

Entries expire lazily: an expired entry is dropped when it is next looked
up or when the cache needs room, never by a background sweep.
"""

from __future__ import annotations

from typing import Any

import structlog
from cachetools import TTLCache

from workspace_rag.interfaces.cache_provider import ICacheProvider

logger = structlog.get_logger(logger_name=__name__)


class MemoryCacheProvider(ICacheProvider):
    """In-process TTL cache backed by ``cachetools.TTLCache``.

    Parameters
    ----------
    max_size:
        Entry cap; past it the least-recently-used entry is evicted.
    ttl:
        Time-to-live in seconds applied to every entry.
    """

    def __init__(self, max_size: int = 100_000, ttl: int = 300) -> None:
        self._cache: TTLCache[str, Any] = TTLCache(maxsize=max_size, ttl=ttl)

    async def get(self, key: str) -> Any | None:
        value = self._cache.get(key)
        logger.debug("cache_hit" if value is not None else "cache_miss", key_length=len(key))
        return value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store *value*; *ttl* is ignored, the cache-wide TTL applies."""
        self._cache[key] = value

    async def delete(self, key: str) -> None:
        self._cache.pop(key, None)

    async def exists(self, key: str) -> bool:
        return key in self._cache

    def __len__(self) -> int:
        return len(self._cache)
