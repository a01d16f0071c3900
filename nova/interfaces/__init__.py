"""Public interface definitions for the gateway's pluggable components.

Every upstream data source and the cache are accessed through the abstract
base classes defined here.  Concrete adapters live in ``nova/providers/`` and
are selected and injected in ``nova/main.py`` at startup, so swapping
CoinGecko for Binance (or the mock generator) never touches the resolver or
the routes.

    Interface              ->  Concrete implementations
    ------------------------------------------------------------
    IMarketDataProvider    ->  CoinGeckoProvider, BinanceProvider,
                               MockMarketDataProvider
    ICacheProvider         ->  MemoryCacheProvider
"""

from nova.interfaces.cache_provider import ICacheProvider
from nova.interfaces.market_data_provider import IMarketDataProvider

__all__ = [
    "ICacheProvider",
    "IMarketDataProvider",
]
