"""Offline market-data provider producing synthetic prices.

Useful for local development and demos without network access, and as a
last-resort fallback tier.  Prices are drawn from a per-asset base range and
historical series are a random walk of 100 samples spread evenly over the
requested window, each step moving at most 1% either way.

Pass a seeded ``random.Random`` for reproducible output.
"""

from __future__ import annotations

import random
import time
from collections.abc import Callable

from nova.interfaces.market_data_provider import IMarketDataProvider
from nova.models.market import MarketSnapshot, PricePoint
from nova.utils.logging import get_logger

# (floor, spread): price = floor + random() * spread
_BASE_PRICES: dict[str, tuple[float, float]] = {
    "BTC": (30000.0, 5000.0),
    "ETH": (2000.0, 300.0),
    "BNB": (200.0, 50.0),
    "SOL": (100.0, 30.0),
    "ADA": (0.30, 0.1),
    "DOT": (5.0, 2.0),
    "AVAX": (20.0, 5.0),
    "MATIC": (0.8, 0.3),
    "LINK": (10.0, 3.0),
    "UNI": (5.0, 2.0),
}
_DEFAULT_BASE_PRICE = (10.0, 5.0)

_WINDOW_HOURS: dict[str, int] = {
    "1d": 24,
    "7d": 24 * 7,
    "30d": 24 * 30,
    "90d": 24 * 90,
    "1y": 24 * 365,
}
_DEFAULT_WINDOW = "30d"

_INTERVALS = 100
_MAX_STEP = 0.01
_HOUR_MS = 60 * 60 * 1000


def _now_ms() -> int:
    return int(time.time() * 1000)


class MockMarketDataProvider(IMarketDataProvider):
    """Random-walk market data generator.

    Parameters
    ----------
    rng:
        Random source; defaults to a fresh unseeded ``random.Random``.
    clock_ms:
        Returns the current time in epoch milliseconds, used to stamp
        historical samples.
    """

    _PROVIDER_NAME = "mock"

    def __init__(
        self,
        rng: random.Random | None = None,
        clock_ms: Callable[[], int] = _now_ms,
    ) -> None:
        self._rng = rng or random.Random()
        self._clock_ms = clock_ms
        self._logger = get_logger(__name__)

    @classmethod
    def from_settings(cls, settings: object, http_client: object) -> MockMarketDataProvider:
        # Needs neither settings nor network; signature matches the HTTP providers.
        return cls()

    def get_provider_name(self) -> str:
        return self._PROVIDER_NAME

    def is_available(self) -> bool:
        return True

    def base_price(self, symbol: str) -> float:
        floor, spread = _BASE_PRICES.get(symbol.upper(), _DEFAULT_BASE_PRICE)
        return floor + self._rng.random() * spread

    async def fetch_price(self, symbol: str) -> float:
        return self.base_price(symbol)

    async def fetch_historical(self, symbol: str, timeframe: str = "30d") -> list[PricePoint]:
        window_hours = _WINDOW_HOURS.get(timeframe, _WINDOW_HOURS[_DEFAULT_WINDOW])
        step_ms = int(window_hours * _HOUR_MS / _INTERVALS)
        now = self._clock_ms()

        price = self.base_price(symbol)
        points: list[PricePoint] = []
        for i in range(_INTERVALS - 1, -1, -1):
            price *= 1 + (self._rng.random() * 2 - 1) * _MAX_STEP
            points.append(PricePoint(timestamp=now - i * step_ms, price=price))

        self._logger.debug("mock_historical", symbol=symbol, timeframe=timeframe)
        return points

    async def fetch_market_data(self, symbol: str) -> MarketSnapshot:
        price = self.base_price(symbol)
        change_24h = (self._rng.random() * 2 - 1) * 5
        return MarketSnapshot(
            symbol=symbol.upper(),
            price=price,
            volume=price * (10000 + self._rng.random() * 90000),
            change_24h=change_24h,
            high_24h=price * (1 + self._rng.random() * 0.02),
            low_24h=price * (1 - self._rng.random() * 0.02),
            provider=self._PROVIDER_NAME,
        )
