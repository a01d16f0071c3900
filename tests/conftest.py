"""Shared pytest fixtures for the NOVA test suite."""

from __future__ import annotations

from typing import Any

import pytest

from nova.config.settings import Settings
from nova.interfaces.market_data_provider import IMarketDataProvider
from nova.models.market import MarketSnapshot, PricePoint
from nova.providers.cache.memory_cache import MemoryCacheProvider
from nova.services.fallback_resolver import FallbackResolver
from nova.utils.errors import ProviderError

# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced clock, injected as the cache timer."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------


class FakeProvider(IMarketDataProvider):
    """In-memory provider that returns canned data or raises a canned error.

    ``prices`` maps upper-case symbols to prices; a symbol missing from the
    map raises ``ProviderError``.  Setting ``error`` makes every call fail.
    """

    def __init__(
        self,
        name: str = "fake",
        prices: dict[str, float] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.name = name
        self.prices = prices or {}
        self.error = error
        self.calls: list[tuple[str, ...]] = []

    def get_provider_name(self) -> str:
        return self.name

    def is_available(self) -> bool:
        return True

    def _price(self, symbol: str) -> float:
        if self.error is not None:
            raise self.error
        try:
            return self.prices[symbol.upper()]
        except KeyError:
            raise ProviderError(f"no price for {symbol}", provider_name=self.name) from None

    async def fetch_price(self, symbol: str) -> float:
        self.calls.append(("price", symbol))
        return self._price(symbol)

    async def fetch_historical(self, symbol: str, timeframe: str = "30d") -> list[PricePoint]:
        self.calls.append(("historical", symbol, timeframe))
        price = self._price(symbol)
        return [
            PricePoint(timestamp=1_700_000_000_000, price=price),
            PricePoint(timestamp=1_700_003_600_000, price=price * 1.01),
        ]

    async def fetch_market_data(self, symbol: str) -> MarketSnapshot:
        self.calls.append(("market", symbol))
        return MarketSnapshot(
            symbol=symbol.upper(),
            price=self._price(symbol),
            change_24h=1.5,
            provider=self.name,
        )


@pytest.fixture
def primary_provider() -> FakeProvider:
    return FakeProvider(name="primary", prices={"BTC": 50_000.0, "ETH": 3_000.0})


@pytest.fixture
def fallback_provider() -> FakeProvider:
    return FakeProvider(name="fallback", prices={"BTC": 49_900.0, "ETH": 2_990.0, "SOL": 120.0})


# ---------------------------------------------------------------------------
# Cache / resolver
# ---------------------------------------------------------------------------


@pytest.fixture
def cache(clock: FakeClock) -> MemoryCacheProvider:
    return MemoryCacheProvider(max_size=100, ttl=60.0, timer=clock)


@pytest.fixture
def resolver(cache: MemoryCacheProvider) -> FallbackResolver:
    return FallbackResolver(cache=cache, timeout=1.0)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def make_settings(**overrides: Any) -> Settings:
    """Build Settings that ignore any local ``.env`` file."""
    defaults: dict[str, Any] = {
        "primary_provider": "mock",
        "fallback_provider": "",
        "auth_enabled": False,
        "api_keys": "test-key",
        "cache_prune_interval": 0.0,
        "log_level": "WARNING",
    }
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


@pytest.fixture
def settings() -> Settings:
    return make_settings()
