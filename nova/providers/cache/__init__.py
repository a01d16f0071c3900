"""Cache providers.

In-memory TTL cache used to avoid redundant upstream calls: a price fetched
from CoinGecko is served from memory until it expires.

MemoryCacheProvider is process-local.  For multi-worker deployments, swap in
a shared adapter implementing ICacheProvider without changing any business
logic.
"""

from nova.providers.cache.memory_cache import MemoryCacheProvider

__all__ = ["MemoryCacheProvider"]
