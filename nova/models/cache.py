"""Cache bookkeeping models.

``CacheEntry`` is the internal record held by the TTL cache; it never leaves
the cache.  ``CacheStats`` is the public snapshot returned by
``get_stats()`` and rendered by the system endpoints.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class CacheEntry:
    """A single cached payload with its insertion and expiry timestamps.

    Attributes
    ----------
    value:
        The cached payload; opaque to the cache.
    created_at:
        Clock reading at insertion.  Eviction picks the smallest value.
    expires_at:
        Clock reading after which the entry is logically absent.  Always
        strictly greater than ``created_at``.
    """

    value: Any
    created_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


class CacheStats(BaseModel):
    """Point-in-time counters for a cache instance."""

    model_config = ConfigDict(frozen=True)

    hits: int = 0
    misses: int = 0
    sets: int = 0
    deletes: int = 0
    # Physical entry count, which may include expired entries not yet swept.
    size: int = 0
    hit_rate: float = Field(default=0.0, ge=0.0, le=1.0)
