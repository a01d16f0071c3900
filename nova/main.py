"""NOVA market gateway FastAPI application entry point.

Wires together providers, the cache, the fallback resolver, services and
routes via dependency injection.  Loads configuration from ``.env`` and
``config/config.yaml`` and configures structured logging.

Run locally with ``python -m nova.main`` or ``uvicorn nova.main:app``.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from nova.api.market_routes import router as market_router
from nova.api.middleware import (
    ApiKeyAuthMiddleware,
    ErrorHandlingMiddleware,
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
    register_exception_handlers,
)
from nova.api.system_routes import root_router
from nova.api.system_routes import router as system_router
from nova.config.loader import load_config
from nova.config.settings import Settings
from nova.interfaces.cache_provider import ICacheProvider
from nova.providers.cache.memory_cache import MemoryCacheProvider
from nova.providers.market_data import build_market_data_provider
from nova.services.asset_catalog import AssetCatalog
from nova.services.fallback_resolver import FallbackResolver
from nova.services.market_data_service import CacheTTLs, MarketDataService
from nova.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()

configure_logging(settings)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Full DI assembly for the FastAPI application
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.

    Raises
    ------
    ConfigurationError
        If ``PRIMARY_PROVIDER`` or ``FALLBACK_PROVIDER`` names an unknown
        provider.
    """
    # -- Shared resources --
    http_client = httpx.AsyncClient(timeout=app_settings.provider_timeout)
    cache = MemoryCacheProvider(
        max_size=app_settings.cache_capacity,
        ttl=app_settings.cache_default_ttl,
    )

    # -- Market data providers --
    primary = build_market_data_provider(app_settings.primary_provider, app_settings, http_client)
    fallback = None
    if app_settings.fallback_provider.strip():
        fallback = build_market_data_provider(
            app_settings.fallback_provider, app_settings, http_client
        )
        if fallback.get_provider_name() == primary.get_provider_name():
            _logger.warning(
                "fallback_same_as_primary",
                provider=primary.get_provider_name(),
            )

    # -- Services --
    resolver = FallbackResolver(cache=cache, timeout=app_settings.provider_timeout)
    market_service = MarketDataService(
        resolver=resolver,
        primary=primary,
        fallback=fallback,
        ttls=CacheTTLs(
            price=app_settings.price_ttl,
            market_data=app_settings.market_data_ttl,
            historical=app_settings.historical_ttl,
        ),
    )

    return {
        "http_client": http_client,
        "cache": cache,
        "primary_provider": primary,
        "fallback_provider": fallback,
        "resolver": resolver,
        "market_service": market_service,
        "asset_catalog": AssetCatalog(),
    }


async def _prune_periodically(cache: ICacheProvider, interval: float) -> None:
    """Sweep expired cache entries every *interval* seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        removed = cache.prune()
        if removed:
            _logger.debug("cache_prune_sweep", removed=removed)


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Build all components on startup; stop the sweeper and close HTTP on shutdown."""
    app_settings: Settings = application.state.settings
    components = _build_all(app_settings)

    for key, value in components.items():
        setattr(application.state, key, value)
    application.state.started_at = time.monotonic()

    prune_task: asyncio.Task[None] | None = None
    if app_settings.cache_prune_interval > 0:
        prune_task = asyncio.create_task(
            _prune_periodically(components["cache"], app_settings.cache_prune_interval)
        )

    _logger.info(
        "app_startup",
        environment=app_settings.app_env,
        primary_provider=app_settings.primary_provider,
        fallback_provider=app_settings.fallback_provider or None,
        auth_enabled=app_settings.auth_enabled,
    )

    yield

    # -- Shutdown: stop the sweeper, then close the shared httpx client --
    if prune_task is not None:
        prune_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await prune_task
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build and configure the FastAPI application.

    Parameters
    ----------
    app_settings:
        Settings to use; the module-level ``settings`` when omitted.
    """
    app_settings = app_settings or settings
    config = load_config(settings=app_settings)
    app_section = config.get("app", {})

    application = FastAPI(
        title=app_section.get("name", "NOVA Protocol API"),
        version=app_section.get("version", "1.0.0"),
        description=(
            "Crypto market data gateway: cached prices, historical series and "
            "market snapshots with automatic failover between providers."
        ),
        lifespan=_lifespan,
    )
    application.state.settings = app_settings
    application.state.config = config

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    if app_settings.auth_enabled:
        application.add_middleware(ApiKeyAuthMiddleware, api_keys=app_settings.get_api_keys())
    if app_settings.rate_limit_max > 0:
        application.add_middleware(
            RateLimitMiddleware,
            max_requests=app_settings.rate_limit_max,
            window_seconds=app_settings.rate_limit_window,
        )
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=app_settings.get_cors_origins())
    register_exception_handlers(application)

    # -- Routes --
    application.include_router(root_router)
    application.include_router(market_router)
    application.include_router(system_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "nova.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
