"""Market-data providers and the name-based provider registry.

``PROVIDER_REGISTRY`` maps the names accepted in ``PRIMARY_PROVIDER`` /
``FALLBACK_PROVIDER`` to adapter classes.  Each class exposes a
``from_settings(settings, http_client)`` constructor so the factory does not
need to know provider-specific configuration.
"""

from __future__ import annotations

import httpx

from nova.config.settings import Settings
from nova.interfaces.market_data_provider import IMarketDataProvider
from nova.providers.market_data.binance_provider import BinanceProvider
from nova.providers.market_data.coingecko_provider import CoinGeckoProvider
from nova.providers.market_data.mock_provider import MockMarketDataProvider
from nova.utils.errors import ConfigurationError

PROVIDER_REGISTRY: dict[str, type[IMarketDataProvider]] = {
    "coingecko": CoinGeckoProvider,
    "binance": BinanceProvider,
    "mock": MockMarketDataProvider,
}


def build_market_data_provider(
    name: str,
    settings: Settings,
    http_client: httpx.AsyncClient,
) -> IMarketDataProvider:
    """Instantiate the provider registered under *name* (case-insensitive).

    Raises
    ------
    ConfigurationError
        If *name* is not a registered provider.
    """
    key = name.strip().lower()
    provider_cls = PROVIDER_REGISTRY.get(key)
    if provider_cls is None:
        known = ", ".join(sorted(PROVIDER_REGISTRY))
        raise ConfigurationError(
            message=f"Unknown market data provider '{name}' (expected one of: {known})",
            provider_name=key or None,
        )
    return provider_cls.from_settings(settings, http_client)  # type: ignore[attr-defined]


__all__ = [
    "PROVIDER_REGISTRY",
    "BinanceProvider",
    "CoinGeckoProvider",
    "MockMarketDataProvider",
    "build_market_data_provider",
]
