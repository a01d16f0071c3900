"""Dependency-injection helpers that resolve components from ``app.state``.

``main.py`` builds every component once in ``_build_all`` and stores it on
``app.state``.  Route handlers declare the ``*Dep`` aliases below as
parameters and FastAPI calls the matching helper per request, so tests can
populate ``app.state`` with fakes and never touch the real providers.
"""

from __future__ import annotations

import time
from typing import Annotated, Any

from fastapi import Depends, Request

from nova.config.settings import Settings
from nova.interfaces.cache_provider import ICacheProvider
from nova.services.asset_catalog import AssetCatalog
from nova.services.market_data_service import MarketDataService


def _get_market_service(request: Request) -> MarketDataService:
    return request.app.state.market_service


def _get_asset_catalog(request: Request) -> AssetCatalog:
    return request.app.state.asset_catalog


def _get_cache(request: Request) -> ICacheProvider:
    return request.app.state.cache


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _get_config(request: Request) -> dict[str, Any]:
    """Return the merged YAML/env config, or an empty dict if none was loaded."""
    return getattr(request.app.state, "config", None) or {}


def get_uptime(request: Request) -> float:
    """Seconds since the application started (0.0 before startup ran)."""
    started_at = getattr(request.app.state, "started_at", None)
    if started_at is None:
        return 0.0
    return max(time.monotonic() - started_at, 0.0)


MarketServiceDep = Annotated[MarketDataService, Depends(_get_market_service)]
AssetCatalogDep = Annotated[AssetCatalog, Depends(_get_asset_catalog)]
CacheDep = Annotated[ICacheProvider, Depends(_get_cache)]
SettingsDep = Annotated[Settings, Depends(_get_settings)]
ConfigDep = Annotated[dict[str, Any], Depends(_get_config)]
UptimeDep = Annotated[float, Depends(get_uptime)]
