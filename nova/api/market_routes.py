"""Market data routes.

# Endpoint                               Method  Description
# ----------------------------------------------------------------------
# /api/market/assets                     GET     Catalogue (category, paging)
# /api/market/assets/{symbol}            GET     Catalogue entry + snapshot
# /api/market/prices?symbols=BTC,ETH     GET     Batch prices (null on failure)
# /api/market/price/{symbol}             GET     Single price
# /api/market/historical/{symbol}        GET     Price series for a timeframe
# /api/market/data/{symbol}              GET     Market snapshot
#
# Every read goes through MarketDataService, i.e. cache first, then the
# primary provider, then the fallback.
"""

from __future__ import annotations

import re

import structlog
from fastapi import APIRouter, Query

from nova.api.dependencies import AssetCatalogDep, ConfigDep, MarketServiceDep
from nova.api.schemas import (
    AssetDetailResponse,
    AssetListResponse,
    HistoricalPricesResponse,
    MarketDataResponse,
    PriceResponse,
    PricesResponse,
)
from nova.services.market_data_service import DEFAULT_TIMEFRAME, TIMEFRAMES
from nova.utils.errors import ValidationError
from nova.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/market", tags=["market"])

_SYMBOL_RE = re.compile(r"^[A-Za-z0-9]{1,10}$")
_MAX_BATCH_SYMBOLS = 50
_FALLBACK_DEFAULT_ASSETS = ("BTC", "ETH", "BNB", "SOL", "ADA", "DOT", "AVAX", "MATIC")


def _normalize_symbol(symbol: str) -> str:
    symbol = symbol.strip()
    if not _SYMBOL_RE.match(symbol):
        raise ValidationError(f"Invalid asset symbol: {symbol!r}")
    return symbol.upper()


def _validate_timeframe(timeframe: str) -> str:
    if timeframe not in TIMEFRAMES:
        raise ValidationError(
            f"Invalid timeframe {timeframe!r}; expected one of: {', '.join(TIMEFRAMES)}"
        )
    return timeframe


def _parse_symbols(raw: str | None, defaults: list[str]) -> list[str]:
    if raw is None or not raw.strip():
        return [s.upper() for s in defaults]
    symbols = [_normalize_symbol(part) for part in raw.split(",") if part.strip()]
    if not symbols:
        raise ValidationError("At least one symbol is required")
    if len(symbols) > _MAX_BATCH_SYMBOLS:
        raise ValidationError(f"At most {_MAX_BATCH_SYMBOLS} symbols per request")
    return symbols


@router.get("/assets", response_model=AssetListResponse)
async def list_assets(
    catalog: AssetCatalogDep,
    category: str | None = Query(default=None, description="e.g. DEFI, LAYER_1"),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> AssetListResponse:
    """List supported assets, optionally filtered by category."""
    assets, total = catalog.list_assets(category=category, limit=limit, offset=offset)
    return AssetListResponse(assets=assets, total=total, limit=limit, offset=offset)


@router.get("/assets/{symbol}", response_model=AssetDetailResponse)
async def get_asset(
    symbol: str,
    catalog: AssetCatalogDep,
    service: MarketServiceDep,
) -> AssetDetailResponse:
    """Return catalogue metadata for *symbol* merged with its market snapshot."""
    asset = catalog.get(_normalize_symbol(symbol))
    market = await service.get_market_data(asset.symbol)
    return AssetDetailResponse(asset=asset, market=market)


@router.get("/prices", response_model=PricesResponse)
async def get_prices(
    service: MarketServiceDep,
    config: ConfigDep,
    symbols: str | None = Query(
        default=None, description="Comma-separated symbols; defaults to the configured set"
    ),
) -> PricesResponse:
    """Batch price lookup.  Symbols whose providers all failed map to null."""
    defaults = config.get("market_data", {}).get("default_assets") or list(
        _FALLBACK_DEFAULT_ASSETS
    )
    requested = _parse_symbols(symbols, defaults)
    prices = await service.get_prices(requested)
    failed = [symbol for symbol, price in prices.items() if price is None]
    if failed:
        _logger.info("batch_prices_partial", failed=failed, requested=len(requested))
    return PricesResponse(prices=prices)


@router.get("/price/{symbol}", response_model=PriceResponse)
async def get_price(
    symbol: str,
    service: MarketServiceDep,
    catalog: AssetCatalogDep,
) -> PriceResponse:
    normalized = _normalize_symbol(symbol)
    price = await service.get_price(normalized)
    return PriceResponse(symbol=normalized, name=catalog.name_for(normalized), price=price)


@router.get("/historical/{symbol}", response_model=HistoricalPricesResponse)
async def get_historical(
    symbol: str,
    service: MarketServiceDep,
    timeframe: str = Query(default=DEFAULT_TIMEFRAME),
) -> HistoricalPricesResponse:
    """Return the price series for *symbol* over *timeframe*."""
    normalized = _normalize_symbol(symbol)
    window = _validate_timeframe(timeframe)
    points = await service.get_historical_prices(normalized, window)
    return HistoricalPricesResponse(symbol=normalized, timeframe=window, prices=points)


@router.get("/data/{symbol}", response_model=MarketDataResponse)
async def get_market_data(symbol: str, service: MarketServiceDep) -> MarketDataResponse:
    snapshot = await service.get_market_data(_normalize_symbol(symbol))
    return MarketDataResponse(data=snapshot)
