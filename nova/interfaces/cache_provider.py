"""Abstract base class for cache service providers.

Defines the contract for the key-value cache that sits in front of the
market-data providers.  Implementations may use an in-process store or a
shared one; the fallback resolver and the system endpoints depend only on
this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from nova.models.cache import CacheStats


class ICacheProvider(ABC):
    """Contract for TTL key-value cache services.

    Operations are synchronous: the cache never performs I/O, so callers
    on the event loop can use it without awaiting.
    """

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the value stored under *key*.

        Returns
        -------
        Any or None
            The cached value if present and not expired; ``None`` otherwise.
            An expired entry is removed as a side effect.

        Notes
        -----
        A stored ``None`` is indistinguishable from a miss here, and callers
        such as the fallback resolver will refetch it.  Use :meth:`has` to
        tell the two apart, or avoid caching ``None``.
        """

    @abstractmethod
    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store *value* under *key*.

        Parameters
        ----------
        key:
            The cache key.
        value:
            The value to store; opaque to the cache.
        ttl:
            Time-to-live in seconds.  ``None`` applies the provider default.
        """

    @abstractmethod
    def has(self, key: str) -> bool:
        """Return ``True`` if *key* is present and not expired."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove *key*; return whether an entry was removed."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every entry."""

    @abstractmethod
    def prune(self) -> int:
        """Remove all expired entries and return how many were removed."""

    @abstractmethod
    def get_stats(self) -> CacheStats:
        """Return hit/miss/set/delete counters, size and hit rate."""
