"""Pydantic response schemas for the NOVA market API.

Every successful body carries ``success: true`` and a UTC ``timestamp``
(see :class:`SuccessEnvelope`).  Failures use :class:`ErrorResponse`:

    {"success": false, "error": {"message": "...", "code": "NOT_FOUND"}}

Convention: response schemas end with "Response".
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from nova.models.cache import CacheStats
from nova.models.market import Asset, MarketSnapshot, PricePoint


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ErrorBody(BaseModel):
    message: str
    code: str


class ErrorResponse(BaseModel):
    """Standard error envelope returned for every failed request."""

    success: bool = False
    error: ErrorBody


class SuccessEnvelope(BaseModel):
    """Fields shared by every successful response."""

    success: bool = True
    timestamp: datetime = Field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# Root / health
# ---------------------------------------------------------------------------


class RootResponse(BaseModel):
    name: str
    version: str
    status: str = "running"
    docs: str = "/docs"


class HealthResponse(BaseModel):
    status: str = "ok"
    uptime: float = Field(ge=0.0, description="Seconds since startup")
    timestamp: datetime = Field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# Market
# ---------------------------------------------------------------------------


class AssetListResponse(SuccessEnvelope):
    assets: list[Asset] = Field(default_factory=list)
    total: int = Field(ge=0, description="Matches before pagination")
    limit: int
    offset: int


class AssetDetailResponse(SuccessEnvelope):
    """A catalogue entry together with its current market snapshot."""

    asset: Asset
    market: MarketSnapshot


class PricesResponse(SuccessEnvelope):
    """Batch prices; a symbol whose providers all failed maps to ``null``."""

    prices: dict[str, float | None] = Field(default_factory=dict)


class PriceResponse(SuccessEnvelope):
    symbol: str
    name: str
    price: float


class HistoricalPricesResponse(SuccessEnvelope):
    symbol: str
    timeframe: str
    prices: list[PricePoint] = Field(default_factory=list)


class MarketDataResponse(SuccessEnvelope):
    data: MarketSnapshot


# ---------------------------------------------------------------------------
# System
# ---------------------------------------------------------------------------


class ProvidersInfo(BaseModel):
    primary: str
    fallback: str | None = None


class SystemStatusResponse(SuccessEnvelope):
    """Process, platform, provider and cache information."""

    status: str = "operational"
    name: str
    version: str
    environment: str
    uptime: float = Field(ge=0.0)
    python_version: str
    platform: str
    pid: int
    providers: ProvidersInfo
    cache: CacheStats


class CacheStatsResponse(SuccessEnvelope):
    stats: CacheStats


class CacheClearResponse(SuccessEnvelope):
    message: str = "Cache cleared"


class CachePruneResponse(SuccessEnvelope):
    removed: int = Field(ge=0)
