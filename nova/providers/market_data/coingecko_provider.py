"""CoinGecko provider implementing IMarketDataProvider.

Uses the public CoinGecko v3 REST API (``/simple/price``,
``/coins/{id}/market_chart`` and ``/coins/{id}``).  CoinGecko keys coins by
slug rather than ticker, so symbols are mapped through ``_SYMBOL_TO_ID``;
unknown symbols are passed through lowercased.  A Pro API key, when
configured, is sent in the ``x-cg-pro-api-key`` header.
"""

from __future__ import annotations

from typing import Any

import httpx

from nova.config.settings import Settings
from nova.models.market import AllTimeHigh, MarketSnapshot, PricePoint, SupplyInfo
from nova.providers.market_data.http_provider import HTTPMarketDataProvider
from nova.utils.errors import ProviderError

_SYMBOL_TO_ID: dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "BNB": "binancecoin",
    "SOL": "solana",
    "ADA": "cardano",
    "DOT": "polkadot",
    "AVAX": "avalanche-2",
    "MATIC": "matic-network",
    "LINK": "chainlink",
    "UNI": "uniswap",
}

_TIMEFRAME_TO_DAYS: dict[str, int] = {
    "1d": 1,
    "7d": 7,
    "30d": 30,
    "90d": 90,
    "1y": 365,
}
_DEFAULT_DAYS = 30


class CoinGeckoProvider(HTTPMarketDataProvider):
    """Market-data provider backed by the CoinGecko API."""

    _PROVIDER_NAME = "coingecko"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str = "https://api.coingecko.com/api/v3",
        api_key: str = "",
    ) -> None:
        headers = {"x-cg-pro-api-key": api_key} if api_key else {}
        super().__init__(http_client=http_client, base_url=base_url, headers=headers)
        self._logger.info("coingecko_provider_initialized", base_url=self._base_url)

    @classmethod
    def from_settings(cls, settings: Settings, http_client: httpx.AsyncClient) -> CoinGeckoProvider:
        return cls(
            http_client=http_client,
            base_url=settings.coingecko_base_url,
            api_key=settings.coingecko_api_key,
        )

    # ------------------------------------------------------------------
    # Mapping helpers
    # ------------------------------------------------------------------

    @staticmethod
    def map_symbol_to_id(symbol: str) -> str:
        return _SYMBOL_TO_ID.get(symbol.upper(), symbol.lower())

    @staticmethod
    def map_timeframe_to_days(timeframe: str) -> int:
        return _TIMEFRAME_TO_DAYS.get(timeframe, _DEFAULT_DAYS)

    # ------------------------------------------------------------------
    # IMarketDataProvider implementation
    # ------------------------------------------------------------------

    async def fetch_price(self, symbol: str) -> float:
        coin_id = self.map_symbol_to_id(symbol)
        resource = f"price for {symbol}"
        data = await self._get_json(
            "/simple/price",
            params={"ids": coin_id, "vs_currencies": "usd"},
            resource=resource,
        )
        try:
            price = data[coin_id]["usd"]
        except (KeyError, TypeError) as exc:
            raise ProviderError(
                message=f"Failed to get {resource}: not found",
                provider_name=self.get_provider_name(),
                code="NOT_FOUND",
            ) from exc
        if price is None:
            raise ProviderError(
                message=f"Failed to get {resource}: not found",
                provider_name=self.get_provider_name(),
                code="NOT_FOUND",
            )
        try:
            return float(price)
        except (TypeError, ValueError) as exc:
            raise self._malformed(resource, exc) from exc

    async def fetch_historical(self, symbol: str, timeframe: str = "30d") -> list[PricePoint]:
        coin_id = self.map_symbol_to_id(symbol)
        days = self.map_timeframe_to_days(timeframe)
        resource = f"historical prices for {symbol}"
        data = await self._get_json(
            f"/coins/{coin_id}/market_chart",
            params={
                "vs_currency": "usd",
                "days": days,
                "interval": "daily" if days > 90 else "hourly",
            },
            resource=resource,
        )
        try:
            points = [
                PricePoint(timestamp=int(timestamp), price=float(price))
                for timestamp, price in data["prices"]
            ]
        except (KeyError, TypeError, ValueError) as exc:
            raise self._malformed(resource, exc) from exc

        self._logger.debug(
            "coingecko_historical", symbol=symbol, timeframe=timeframe, points=len(points)
        )
        return points

    async def fetch_market_data(self, symbol: str) -> MarketSnapshot:
        coin_id = self.map_symbol_to_id(symbol)
        resource = f"market data for {symbol}"
        data = await self._get_json(
            f"/coins/{coin_id}",
            params={
                "localization": "false",
                "tickers": "false",
                "market_data": "true",
                "community_data": "false",
                "developer_data": "false",
                "sparkline": "false",
            },
            resource=resource,
        )
        # A nested field that is not an object fails on ``.get`` with AttributeError.
        try:
            return self._map_market_data(symbol, data["market_data"])
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise self._malformed(resource, exc) from exc

    # ------------------------------------------------------------------
    # Payload mapping
    # ------------------------------------------------------------------

    def _map_market_data(self, symbol: str, market: dict[str, Any]) -> MarketSnapshot:
        ath_price = _usd(market, "ath")
        return MarketSnapshot(
            symbol=symbol.upper(),
            price=float(market["current_price"]["usd"]),
            market_cap=_usd(market, "market_cap"),
            volume=_usd(market, "total_volume"),
            change_24h=market.get("price_change_percentage_24h"),
            change_7d=market.get("price_change_percentage_7d"),
            change_30d=market.get("price_change_percentage_30d"),
            all_time_high=(
                AllTimeHigh(
                    price=ath_price,
                    date=(market.get("ath_date") or {}).get("usd"),
                    percent_down=_usd(market, "ath_change_percentage"),
                )
                if ath_price is not None
                else None
            ),
            supply_info=SupplyInfo(
                circulating=market.get("circulating_supply"),
                total=market.get("total_supply"),
                max_supply=market.get("max_supply"),
            ),
            provider=self.get_provider_name(),
        )


def _usd(market: dict[str, Any], field: str) -> float | None:
    value = (market.get(field) or {}).get("usd")
    return float(value) if value is not None else None
