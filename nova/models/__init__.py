"""NOVA domain models -- re-exports all public model classes.

    - cache.py   -- cache entry record and statistics snapshot
    - market.py  -- prices, market snapshots and the asset catalogue entry
"""

from __future__ import annotations

from nova.models.cache import CacheEntry, CacheStats
from nova.models.market import (
    AllTimeHigh,
    Asset,
    MarketSnapshot,
    PricePoint,
    SupplyInfo,
)

__all__ = [
    "AllTimeHigh",
    "Asset",
    "CacheEntry",
    "CacheStats",
    "MarketSnapshot",
    "PricePoint",
    "SupplyInfo",
]
