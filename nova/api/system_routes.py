"""Root, health and system administration routes.

# Endpoint                      Method  Description
# --------------------------------------------------------------
# /                             GET     Service banner
# /health                       GET     Liveness check
# /api/system/status            GET     Process, providers, cache stats
# /api/system/cache/stats       GET     Cache statistics
# /api/system/cache/clear       POST    Drop every cache entry
# /api/system/cache/prune       POST    Drop expired entries now
"""

from __future__ import annotations

import os
import platform

import structlog
from fastapi import APIRouter

from nova.api.dependencies import (
    CacheDep,
    ConfigDep,
    MarketServiceDep,
    SettingsDep,
    UptimeDep,
)
from nova.api.schemas import (
    CacheClearResponse,
    CachePruneResponse,
    CacheStatsResponse,
    HealthResponse,
    ProvidersInfo,
    RootResponse,
    SystemStatusResponse,
)
from nova.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

_DEFAULT_NAME = "NOVA Protocol API"
_DEFAULT_VERSION = "1.0.0"

root_router = APIRouter(tags=["health"])
router = APIRouter(prefix="/api/system", tags=["system"])


def _app_info(config: dict) -> tuple[str, str]:
    app_section = config.get("app", {})
    return app_section.get("name", _DEFAULT_NAME), app_section.get("version", _DEFAULT_VERSION)


@root_router.get("/", response_model=RootResponse)
async def root(config: ConfigDep) -> RootResponse:
    name, version = _app_info(config)
    return RootResponse(name=name, version=version)


@root_router.get("/health", response_model=HealthResponse)
async def health(uptime: UptimeDep) -> HealthResponse:
    return HealthResponse(uptime=round(uptime, 3))


@router.get("/status", response_model=SystemStatusResponse)
async def system_status(
    settings: SettingsDep,
    config: ConfigDep,
    service: MarketServiceDep,
    cache: CacheDep,
    uptime: UptimeDep,
) -> SystemStatusResponse:
    """Report process, platform, provider and cache information."""
    name, version = _app_info(config)
    return SystemStatusResponse(
        name=name,
        version=version,
        environment=settings.app_env,
        uptime=round(uptime, 3),
        python_version=platform.python_version(),
        platform=f"{platform.system()} {platform.release()}".strip(),
        pid=os.getpid(),
        providers=ProvidersInfo(
            primary=service.primary_provider_name,
            fallback=service.fallback_provider_name,
        ),
        cache=cache.get_stats(),
    )


@router.get("/cache/stats", response_model=CacheStatsResponse)
async def cache_stats(cache: CacheDep) -> CacheStatsResponse:
    return CacheStatsResponse(stats=cache.get_stats())


@router.post("/cache/clear", response_model=CacheClearResponse)
async def clear_cache(service: MarketServiceDep) -> CacheClearResponse:
    service.clear_all_caches()
    _logger.info("cache_cleared_via_api")
    return CacheClearResponse()


@router.post("/cache/prune", response_model=CachePruneResponse)
async def prune_cache(cache: CacheDep) -> CachePruneResponse:
    removed = cache.prune()
    _logger.info("cache_pruned_via_api", removed=removed)
    return CachePruneResponse(removed=removed)
