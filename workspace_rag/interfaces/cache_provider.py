"""Abstract base class for cache service providers.

The retrieval service caches whole search responses keyed by the serialized
request.  Implementations may use an in-process TTL map, Redis, or anything
else with get/set semantics.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class ICacheProvider(ABC):
    """Contract for key-value cache services.

    All operations are async so network-backed stores fit the same seam.
    """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the value under *key*, or ``None`` if absent or expired."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store *value* under *key*.

        Parameters
        ----------
        key:
            The cache key.
        value:
            The value to store.
        ttl:
            Time-to-live in seconds.  ``None`` uses the provider default.
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove *key*; no-op if it does not exist."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return ``True`` if *key* is present and not expired."""
