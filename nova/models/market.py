"""Market data models returned by providers and the market data service.

All models use frozen config so cached instances cannot be mutated by a
request handler and leak into later responses.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PricePoint(BaseModel):
    """A single historical price sample."""

    model_config = ConfigDict(frozen=True)

    # Milliseconds since the Unix epoch, as returned by both upstream APIs.
    timestamp: int
    price: float


class AllTimeHigh(BaseModel):
    model_config = ConfigDict(frozen=True)

    price: float
    date: str | None = None
    percent_down: float | None = None


class SupplyInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    circulating: float | None = None
    total: float | None = None
    max_supply: float | None = None


class MarketSnapshot(BaseModel):
    """Current market metrics for one asset.

    Providers fill what their upstream API exposes: CoinGecko supplies
    market cap, multi-period changes, ATH and supply; Binance supplies 24h
    high/low.  Everything except ``price`` is optional.
    """

    model_config = ConfigDict(frozen=True)

    symbol: str
    price: float
    market_cap: float | None = None
    volume: float | None = None
    change_24h: float | None = None
    change_7d: float | None = None
    change_30d: float | None = None
    high_24h: float | None = None
    low_24h: float | None = None
    all_time_high: AllTimeHigh | None = None
    supply_info: SupplyInfo | None = None
    provider: str = ""


class Asset(BaseModel):
    """An entry in the supported-asset catalogue."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    name: str
    blockchain: str
    categories: list[str] = Field(default_factory=list)
    description: str = ""
    logo: str = ""
