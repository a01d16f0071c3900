"""Abstract base class for market-data service providers.

Defines the capability set every upstream market-data source exposes
(current price, historical prices, market snapshot).  Concrete adapters for
CoinGecko, Binance and the mock random-walk generator implement it, so the
fallback resolver can treat any two of them as interchangeable primary and
fallback backends.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from nova.models.market import MarketSnapshot, PricePoint


class IMarketDataProvider(ABC):
    """Contract for market-data services.

    Every fetch either returns a complete payload or raises
    :class:`~nova.utils.errors.ProviderError`; partial results are never
    returned.
    """

    @abstractmethod
    async def fetch_price(self, symbol: str) -> float:
        """Return the current USD price of *symbol* (e.g. ``"BTC"``).

        Raises
        ------
        nova.utils.errors.ProviderError
            If the upstream call fails or the response is malformed.
        """

    @abstractmethod
    async def fetch_historical(self, symbol: str, timeframe: str = "30d") -> list[PricePoint]:
        """Return historical prices for *symbol* over *timeframe*.

        Parameters
        ----------
        symbol:
            Asset symbol.
        timeframe:
            One of ``1d``, ``7d``, ``30d``, ``90d``, ``1y``.  Unknown values
            fall back to the provider's default window.

        Raises
        ------
        nova.utils.errors.ProviderError
            If the upstream call fails or the response is malformed.
        """

    @abstractmethod
    async def fetch_market_data(self, symbol: str) -> MarketSnapshot:
        """Return a market snapshot for *symbol*.

        Raises
        ------
        nova.utils.errors.ProviderError
            If the upstream call fails or the response is malformed.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the registry name of this provider (e.g. ``"binance"``)."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured and usable."""
