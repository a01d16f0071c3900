"""In-memory TTL cache provider built on ``cachetools.Cache``.

Every entry carries its own expiry, so a single instance can hold prices
(minutes) next to historical series (an hour).  Expiry is lazy: ``get`` and
``has`` drop an expired entry when they see it, and ``prune`` sweeps the
rest.  When the cache is full, inserting a new key evicts the entry that was
*created* first, regardless of how recently it was read or when it expires.

Single-process only.  For multi-worker deployments, swap in a shared store
implementing ICacheProvider without changing the resolver.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Any

from cachetools import Cache

from nova.interfaces.cache_provider import ICacheProvider
from nova.models.cache import CacheEntry, CacheStats
from nova.utils.logging import get_logger

logger = get_logger(__name__)


class _CreationOrderedStore(Cache):
    """``cachetools.Cache`` whose eviction victim is the oldest ``created_at``.

    ``Cache.__setitem__`` calls ``popitem`` while a *new* key would exceed
    ``maxsize``; overwriting an existing key never evicts.
    """

    def popitem(self) -> tuple[str, CacheEntry]:
        victim: str | None = None
        oldest = float("inf")
        # Linear scan; ties keep the first key found.
        for key, entry in self.items():
            if entry.created_at < oldest:
                oldest = entry.created_at
                victim = key
        if victim is None:
            raise KeyError(f"{type(self).__name__} is empty")
        return victim, self.pop(victim)


class MemoryCacheProvider(ICacheProvider):
    """Bounded in-memory cache with per-entry TTL and hit/miss statistics.

    Parameters
    ----------
    max_size:
        Maximum number of entries.  Inserting a new key into a full cache
        evicts the oldest entry by creation time.
    ttl:
        Default time-to-live in seconds, applied when ``set`` gets no TTL.
    timer:
        Clock returning seconds.  Tests inject a fake clock to advance time.
    """

    def __init__(
        self,
        max_size: int = 1000,
        ttl: float = 60.0,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self._default_ttl = ttl
        self._timer = timer
        self._store = _CreationOrderedStore(maxsize=max_size)
        # Eviction-then-insert must be atomic, so every mutation holds this.
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._deletes = 0

    @property
    def capacity(self) -> int:
        return int(self._store.maxsize)

    @property
    def default_ttl(self) -> float:
        return self._default_ttl

    def __len__(self) -> int:
        return len(self._store)

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store *value* under *key*; non-positive or missing TTL uses the default."""
        effective_ttl = ttl if ttl is not None and ttl > 0 else self._default_ttl
        with self._lock:
            now = self._timer()
            self._store[key] = CacheEntry(
                value=value,
                created_at=now,
                expires_at=now + effective_ttl,
            )
            self._sets += 1
        logger.debug("cache_set", key=key, ttl=effective_ttl)

    def get(self, key: str) -> Any | None:
        """Return the live value for *key*, or ``None`` if missing or expired.

        A stored ``None`` still counts as a hit but reads the same as a miss.
        """
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self._misses += 1
                logger.debug("cache_miss", key=key)
                return None
            if entry.is_expired(self._timer()):
                del self._store[key]
                self._misses += 1
                logger.debug("cache_expired", key=key)
                return None
            self._hits += 1
        logger.debug("cache_hit", key=key)
        return entry.value

    def has(self, key: str) -> bool:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return False
            if entry.is_expired(self._timer()):
                del self._store[key]
                return False
            return True

    def delete(self, key: str) -> bool:
        with self._lock:
            removed = self._store.pop(key, None) is not None
            if removed:
                self._deletes += 1
        if removed:
            logger.debug("cache_delete", key=key)
        return removed

    def clear(self) -> None:
        with self._lock:
            removed = len(self._store)
            self._store = _CreationOrderedStore(maxsize=self._store.maxsize)
            self._deletes += removed
        logger.info("cache_cleared", removed=removed)

    def prune(self) -> int:
        """Remove every expired entry; return how many were removed."""
        with self._lock:
            now = self._timer()
            expired = [key for key, entry in self._store.items() if entry.is_expired(now)]
            for key in expired:
                del self._store[key]
            self._deletes += len(expired)
        if expired:
            logger.debug("cache_pruned", removed=len(expired))
        return len(expired)

    def get_stats(self) -> CacheStats:
        with self._lock:
            lookups = self._hits + self._misses
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                sets=self._sets,
                deletes=self._deletes,
                size=len(self._store),
                hit_rate=self._hits / lookups if lookups else 0.0,
            )

    # ------------------------------------------------------------------
    # Introspection helpers
    # ------------------------------------------------------------------

    def keys(self) -> list[str]:
        """Return every physically present key, including expired ones."""
        with self._lock:
            return list(self._store)

    def values(self) -> list[Any]:
        """Return live values, dropping expired entries along the way."""
        with self._lock:
            now = self._timer()
            live: list[Any] = []
            for key, entry in list(self._store.items()):
                if entry.is_expired(now):
                    del self._store[key]
                else:
                    live.append(entry.value)
            return live
