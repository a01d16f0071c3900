"""Binance provider implementing IMarketDataProvider.

Talks to the Binance spot REST API (``/ticker/price``, ``/klines`` and
``/ticker/24hr``).  Every asset is quoted against USDT, so ``BTC`` becomes
the ``BTCUSDT`` ticker.  Binance has no market-cap or supply data; the
snapshot carries price, volume, 24h change and 24h high/low only.
"""

from __future__ import annotations

from typing import Any

import httpx

from nova.config.settings import Settings
from nova.models.market import MarketSnapshot, PricePoint
from nova.providers.market_data.http_provider import HTTPMarketDataProvider

_QUOTE_ASSET = "USDT"
_KLINES_LIMIT = 500

_TIMEFRAME_TO_INTERVAL: dict[str, str] = {
    "1d": "1d",
    "7d": "4h",
    "30d": "1d",
    "90d": "1d",
    "1y": "1w",
}
_DEFAULT_INTERVAL = "1d"


class BinanceProvider(HTTPMarketDataProvider):
    """Market-data provider backed by the Binance spot API."""

    _PROVIDER_NAME = "binance"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str = "https://api.binance.com/api/v3",
        api_key: str = "",
    ) -> None:
        headers = {"X-MBX-APIKEY": api_key} if api_key else {}
        super().__init__(http_client=http_client, base_url=base_url, headers=headers)
        self._logger.info("binance_provider_initialized", base_url=self._base_url)

    @classmethod
    def from_settings(cls, settings: Settings, http_client: httpx.AsyncClient) -> BinanceProvider:
        return cls(
            http_client=http_client,
            base_url=settings.binance_base_url,
            api_key=settings.binance_api_key,
        )

    @staticmethod
    def to_ticker(symbol: str) -> str:
        return f"{symbol.upper()}{_QUOTE_ASSET}"

    @staticmethod
    def map_timeframe_to_interval(timeframe: str) -> str:
        return _TIMEFRAME_TO_INTERVAL.get(timeframe, _DEFAULT_INTERVAL)

    # -- IMarketDataProvider implementation --------------------------------

    async def fetch_price(self, symbol: str) -> float:
        resource = f"price for {symbol}"
        data = await self._get_json(
            "/ticker/price",
            params={"symbol": self.to_ticker(symbol)},
            resource=resource,
        )
        try:
            return float(data["price"])
        except (KeyError, TypeError, ValueError) as exc:
            raise self._malformed(resource, exc) from exc

    async def fetch_historical(self, symbol: str, timeframe: str = "30d") -> list[PricePoint]:
        resource = f"historical prices for {symbol}"
        data = await self._get_json(
            "/klines",
            params={
                "symbol": self.to_ticker(symbol),
                "interval": self.map_timeframe_to_interval(timeframe),
                "limit": _KLINES_LIMIT,
            },
            resource=resource,
        )
        # Kline rows: [open_time, open, high, low, close, volume, ...]
        try:
            return [
                PricePoint(timestamp=int(candle[0]), price=float(candle[4])) for candle in data
            ]
        except (IndexError, TypeError, ValueError) as exc:
            raise self._malformed(resource, exc) from exc

    async def fetch_market_data(self, symbol: str) -> MarketSnapshot:
        resource = f"market data for {symbol}"
        data = await self._get_json(
            "/ticker/24hr",
            params={"symbol": self.to_ticker(symbol)},
            resource=resource,
        )
        try:
            return self._map_ticker(symbol, data)
        except (KeyError, TypeError, ValueError) as exc:
            raise self._malformed(resource, exc) from exc

    def _map_ticker(self, symbol: str, ticker: dict[str, Any]) -> MarketSnapshot:
        return MarketSnapshot(
            symbol=symbol.upper(),
            price=float(ticker["lastPrice"]),
            volume=_optional_float(ticker.get("volume")),
            change_24h=_optional_float(ticker.get("priceChangePercent")),
            high_24h=_optional_float(ticker.get("highPrice")),
            low_24h=_optional_float(ticker.get("lowPrice")),
            provider=self.get_provider_name(),
        )


def _optional_float(value: Any) -> float | None:
    # Binance encodes decimals as strings.
    return float(value) if value is not None else None
