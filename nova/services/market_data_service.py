"""Market data service: cached, failover-aware reads for the API layer.

Wraps :class:`FallbackResolver` with the gateway's cache-key scheme and
per-kind TTLs:

    price:{symbol}                 current price       (``price_ttl``)
    market:{symbol}                market snapshot     (``market_data_ttl``)
    historical:{symbol}:{window}   price series        (``historical_ttl``)

Symbols are lowercased in keys so ``BTC`` and ``btc`` share an entry.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import TypeVar

from nova.interfaces.market_data_provider import IMarketDataProvider
from nova.models.market import MarketSnapshot, PricePoint
from nova.services.fallback_resolver import FallbackResolver
from nova.utils.errors import NovaError
from nova.utils.logging import get_logger

T = TypeVar("T")

TIMEFRAMES: tuple[str, ...] = ("1d", "7d", "30d", "90d", "1y")
DEFAULT_TIMEFRAME = "30d"


@dataclass(frozen=True)
class CacheTTLs:
    """Cache lifetimes in seconds for each kind of market data."""

    price: float = 300.0
    market_data: float = 900.0
    historical: float = 3600.0


def price_key(symbol: str) -> str:
    return f"price:{symbol.lower()}"


def market_key(symbol: str) -> str:
    return f"market:{symbol.lower()}"


def historical_key(symbol: str, timeframe: str) -> str:
    return f"historical:{symbol.lower()}:{timeframe}"


class MarketDataService:
    """High-level market data access used by the route handlers.

    Parameters
    ----------
    resolver:
        Cache-first resolver shared across the application.
    primary:
        Provider consulted first on a cache miss.
    fallback:
        Provider consulted when the primary fails, or ``None``.
    ttls:
        Cache lifetimes per data kind.
    """

    def __init__(
        self,
        resolver: FallbackResolver,
        primary: IMarketDataProvider,
        fallback: IMarketDataProvider | None = None,
        ttls: CacheTTLs | None = None,
    ) -> None:
        self._resolver = resolver
        self._primary = primary
        self._fallback = fallback
        self._ttls = ttls or CacheTTLs()
        self._logger = get_logger(__name__)

    @property
    def primary_provider_name(self) -> str:
        return self._primary.get_provider_name()

    @property
    def fallback_provider_name(self) -> str | None:
        return self._fallback.get_provider_name() if self._fallback else None

    # ------------------------------------------------------------------
    # Single-asset reads
    # ------------------------------------------------------------------

    async def get_price(self, symbol: str) -> float:
        return await self._resolve(
            price_key(symbol),
            lambda provider: provider.fetch_price(symbol),
            self._ttls.price,
        )

    async def get_historical_prices(
        self, symbol: str, timeframe: str = DEFAULT_TIMEFRAME
    ) -> list[PricePoint]:
        return await self._resolve(
            historical_key(symbol, timeframe),
            lambda provider: provider.fetch_historical(symbol, timeframe),
            self._ttls.historical,
        )

    async def get_market_data(self, symbol: str) -> MarketSnapshot:
        return await self._resolve(
            market_key(symbol),
            lambda provider: provider.fetch_market_data(symbol),
            self._ttls.market_data,
        )

    # ------------------------------------------------------------------
    # Batch reads
    # ------------------------------------------------------------------

    async def get_prices(self, symbols: Iterable[str]) -> dict[str, float | None]:
        """Resolve prices concurrently; a symbol that fails maps to ``None``."""
        return await self._gather(symbols, self.get_price, "batch_price_failed")

    async def get_markets_data(
        self, symbols: Iterable[str]
    ) -> dict[str, MarketSnapshot | None]:
        """Resolve market snapshots concurrently; failures map to ``None``."""
        return await self._gather(symbols, self.get_market_data, "batch_market_data_failed")

    # ------------------------------------------------------------------
    # Cache management
    # ------------------------------------------------------------------

    def invalidate_cache(self, symbol: str) -> int:
        """Drop every cached entry for *symbol*; return how many were removed."""
        keys = [price_key(symbol), market_key(symbol)]
        keys.extend(historical_key(symbol, timeframe) for timeframe in TIMEFRAMES)
        removed = sum(1 for key in keys if self._resolver.invalidate(key))
        self._logger.info("market_cache_invalidated", symbol=symbol.upper(), removed=removed)
        return removed

    def clear_all_caches(self) -> None:
        self._resolver.cache.clear()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _resolve(
        self,
        key: str,
        fetch: Callable[[IMarketDataProvider], Awaitable[T]],
        ttl: float,
    ) -> T:
        return await self._resolver.resolve(key, self._primary, self._fallback, fetch, ttl)

    async def _gather(
        self,
        symbols: Iterable[str],
        fetch_one: Callable[[str], Awaitable[T]],
        failure_event: str,
    ) -> dict[str, T | None]:
        # Upper-cased and de-duplicated, first occurrence wins the slot.
        unique = list(dict.fromkeys(s.strip().upper() for s in symbols if s.strip()))
        results = await asyncio.gather(
            *(fetch_one(symbol) for symbol in unique), return_exceptions=True
        )
        out: dict[str, T | None] = {}
        for symbol, result in zip(unique, results):
            if isinstance(result, NovaError):
                self._logger.warning(failure_event, symbol=symbol, error=str(result))
                out[symbol] = None
            elif isinstance(result, BaseException):
                raise result
            else:
                out[symbol] = result
        return out
