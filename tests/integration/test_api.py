"""Integration tests for the FastAPI endpoints using TestClient.

The app is assembled by hand with fake providers on ``app.state`` so every
route runs against the real cache, resolver and services without network
access.
"""

from __future__ import annotations

import time
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI, Request, Response
from fastapi.testclient import TestClient

from nova.api.market_routes import router as market_router
from nova.api.middleware import (
    ApiKeyAuthMiddleware,
    ErrorHandlingMiddleware,
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    register_exception_handlers,
)
from nova.api.system_routes import root_router
from nova.api.system_routes import router as system_router
from nova.providers.cache.memory_cache import MemoryCacheProvider
from nova.services.asset_catalog import AssetCatalog
from nova.services.fallback_resolver import FallbackResolver
from nova.services.market_data_service import MarketDataService
from nova.utils.errors import ProviderError
from tests.conftest import FakeClock, FakeProvider, make_settings

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _create_test_app(
    primary: FakeProvider | None = None,
    fallback: FakeProvider | None = None,
    api_keys: list[str] | None = None,
    rate_limit: int | None = None,
    clock: FakeClock | None = None,
) -> FastAPI:
    """Create a FastAPI app wired to fake providers."""
    app = FastAPI()
    app.add_middleware(ErrorHandlingMiddleware)
    if api_keys is not None:
        app.add_middleware(ApiKeyAuthMiddleware, api_keys=api_keys)
    if rate_limit is not None:
        app.add_middleware(
            RateLimitMiddleware,
            max_requests=rate_limit,
            window_seconds=60.0,
            timer=clock or FakeClock(),
        )
    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)
    app.include_router(root_router)
    app.include_router(market_router)
    app.include_router(system_router)

    primary = primary or FakeProvider(name="primary", prices={"BTC": 50_000.0, "ETH": 3_000.0})
    cache = MemoryCacheProvider(max_size=100, ttl=60)
    resolver = FallbackResolver(cache=cache, timeout=1.0)

    app.state.settings = make_settings()
    app.state.config = {
        "app": {"name": "NOVA Test API", "version": "0.0.1"},
        "market_data": {"default_assets": ["BTC", "ETH"]},
    }
    app.state.cache = cache
    app.state.market_service = MarketDataService(
        resolver=resolver, primary=primary, fallback=fallback
    )
    app.state.asset_catalog = AssetCatalog()
    app.state.started_at = time.monotonic()
    return app


@pytest.fixture
def client() -> TestClient:
    return TestClient(_create_test_app())


# ---------------------------------------------------------------------------
# Root / health
# ---------------------------------------------------------------------------


class TestRootAndHealth:
    def test_root(self, client: TestClient) -> None:
        response = client.get("/")
        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "NOVA Test API"
        assert body["version"] == "0.0.1"
        assert body["status"] == "running"

    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["uptime"] >= 0
        assert "timestamp" in body

    def test_unknown_route_uses_error_envelope(self, client: TestClient) -> None:
        response = client.get("/api/nothing-here")
        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "error": {"message": "Not found: GET /api/nothing-here", "code": "NOT_FOUND"},
        }


# ---------------------------------------------------------------------------
# Market
# ---------------------------------------------------------------------------


class TestMarketRoutes:
    def test_get_price(self, client: TestClient) -> None:
        response = client.get("/api/market/price/btc")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["symbol"] == "BTC"
        assert body["name"] == "Bitcoin"
        assert body["price"] == 50_000.0
        assert "timestamp" in body

    def test_price_served_from_fallback(self) -> None:
        primary = FakeProvider(name="primary", error=ProviderError("timeout"))
        fallback = FakeProvider(name="fallback", prices={"ETH": 3000.0})
        client = TestClient(_create_test_app(primary=primary, fallback=fallback))

        response = client.get("/api/market/price/ETH")

        assert response.status_code == 200
        assert response.json()["price"] == 3000.0

    def test_all_providers_failed_is_502(self) -> None:
        primary = FakeProvider(name="primary", error=ProviderError("primary timeout"))
        fallback = FakeProvider(name="fallback", error=ProviderError("fallback timeout"))
        client = TestClient(_create_test_app(primary=primary, fallback=fallback))

        response = client.get("/api/market/price/ETH")

        assert response.status_code == 502
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "ALL_PROVIDERS_FAILED"
        assert "primary timeout" in body["error"]["message"]
        assert "fallback timeout" in body["error"]["message"]

    def test_single_provider_failure_without_fallback_is_502(self) -> None:
        primary = FakeProvider(name="primary", error=ProviderError("down"))
        client = TestClient(_create_test_app(primary=primary))

        response = client.get("/api/market/price/BTC")

        assert response.status_code == 502
        assert response.json()["error"]["code"] == "PROVIDER_ERROR"

    def test_invalid_symbol_is_400(self, client: TestClient) -> None:
        response = client.get("/api/market/price/not-a-symbol!")
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_batch_prices_with_failures(self, client: TestClient) -> None:
        response = client.get("/api/market/prices", params={"symbols": "BTC,eth,DOGE"})
        assert response.status_code == 200
        assert response.json()["prices"] == {"BTC": 50_000.0, "ETH": 3_000.0, "DOGE": None}

    def test_batch_prices_defaults_from_config(self, client: TestClient) -> None:
        response = client.get("/api/market/prices")
        assert response.status_code == 200
        assert set(response.json()["prices"]) == {"BTC", "ETH"}

    def test_historical(self, client: TestClient) -> None:
        response = client.get("/api/market/historical/BTC", params={"timeframe": "7d"})
        assert response.status_code == 200
        body = response.json()
        assert body["timeframe"] == "7d"
        assert len(body["prices"]) == 2
        assert body["prices"][0] == {"timestamp": 1_700_000_000_000, "price": 50_000.0}

    def test_historical_default_timeframe(self, client: TestClient) -> None:
        response = client.get("/api/market/historical/BTC")
        assert response.json()["timeframe"] == "30d"

    def test_historical_rejects_unknown_timeframe(self, client: TestClient) -> None:
        response = client.get("/api/market/historical/BTC", params={"timeframe": "2w"})
        assert response.status_code == 400
        assert "2w" in response.json()["error"]["message"]

    def test_market_data(self, client: TestClient) -> None:
        response = client.get("/api/market/data/ETH")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["symbol"] == "ETH"
        assert data["price"] == 3_000.0
        assert data["provider"] == "primary"

    def test_list_assets(self, client: TestClient) -> None:
        response = client.get("/api/market/assets", params={"limit": 2, "offset": 1})
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 10
        assert [a["symbol"] for a in body["assets"]] == ["ETH", "BNB"]
        assert body["limit"] == 2
        assert body["offset"] == 1

    def test_list_assets_by_category(self, client: TestClient) -> None:
        response = client.get("/api/market/assets", params={"category": "DEFI"})
        assert {a["symbol"] for a in response.json()["assets"]} == {"LINK", "UNI"}

    @pytest.mark.parametrize("limit", [0, 101])
    def test_list_assets_limit_bounds(self, client: TestClient, limit: int) -> None:
        response = client.get("/api/market/assets", params={"limit": limit})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_asset_detail(self, client: TestClient) -> None:
        response = client.get("/api/market/assets/btc")
        assert response.status_code == 200
        body = response.json()
        assert body["asset"]["name"] == "Bitcoin"
        assert body["market"]["price"] == 50_000.0

    def test_asset_detail_unknown_symbol(self, client: TestClient) -> None:
        response = client.get("/api/market/assets/DOGE")
        assert response.status_code == 404
        assert response.json()["error"] == {
            "message": "Asset not found: DOGE",
            "code": "NOT_FOUND",
        }


# ---------------------------------------------------------------------------
# System
# ---------------------------------------------------------------------------


class TestSystemRoutes:
    def test_status(self, client: TestClient) -> None:
        response = client.get("/api/system/status")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["name"] == "NOVA Test API"
        assert body["providers"] == {"primary": "primary", "fallback": None}
        assert body["cache"]["hit_rate"] == 0.0
        assert body["pid"] > 0

    def test_cache_stats_reflect_usage(self, client: TestClient) -> None:
        client.get("/api/market/price/BTC")
        client.get("/api/market/price/BTC")

        stats = client.get("/api/system/cache/stats").json()["stats"]

        assert stats["sets"] == 1
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == 0.5
        assert stats["size"] == 1

    def test_cache_clear(self, client: TestClient) -> None:
        client.get("/api/market/price/BTC")

        response = client.post("/api/system/cache/clear")

        assert response.status_code == 200
        assert response.json()["message"] == "Cache cleared"
        assert client.get("/api/system/cache/stats").json()["stats"]["size"] == 0

    def test_cache_prune(self, client: TestClient) -> None:
        response = client.post("/api/system/cache/prune")
        assert response.status_code == 200
        assert response.json()["removed"] == 0

    def test_wrong_method_is_405(self, client: TestClient) -> None:
        response = client.get("/api/system/cache/clear")
        assert response.status_code == 405
        assert response.json()["error"]["code"] == "METHOD_NOT_ALLOWED"


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class TestApiKeyAuth:
    @pytest.fixture()
    def secured(self) -> TestClient:
        return TestClient(_create_test_app(api_keys=["secret-1", "secret-2"]))

    def test_missing_key_rejected(self, secured: TestClient) -> None:
        response = secured.get("/api/market/price/BTC")
        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "error": {"message": "API key is required", "code": "AUTHENTICATION_ERROR"},
        }

    def test_invalid_key_rejected(self, secured: TestClient) -> None:
        response = secured.get("/api/market/price/BTC", headers={"X-API-KEY": "nope"})
        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid API key"

    def test_valid_key_accepted(self, secured: TestClient) -> None:
        response = secured.get("/api/market/price/BTC", headers={"X-API-KEY": "secret-2"})
        assert response.status_code == 200

    def test_health_and_root_exempt(self, secured: TestClient) -> None:
        assert secured.get("/health").status_code == 200
        assert secured.get("/").status_code == 200

    def test_options_exempt(self, secured: TestClient) -> None:
        response = secured.options("/api/market/price/BTC")
        assert response.status_code != 401


# ---------------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------------


def _raw_request(client_ip: str, path: str = "/api/market/price/BTC") -> Request:
    return Request(
        {
            "type": "http",
            "method": "GET",
            "path": path,
            "headers": [],
            "query_string": b"",
            "client": (client_ip, 50_000),
        }
    )


async def _ok(request: Request) -> Response:
    return Response("ok")


class TestRateLimit:
    def test_requests_within_budget_carry_headers(self) -> None:
        client = TestClient(_create_test_app(rate_limit=3))

        response = client.get("/api/market/price/BTC")

        assert response.status_code == 200
        assert response.headers["X-RateLimit-Limit"] == "3"
        assert response.headers["X-RateLimit-Remaining"] == "2"

    def test_over_budget_is_429_envelope(self) -> None:
        clock = FakeClock()
        client = TestClient(_create_test_app(rate_limit=2, clock=clock))
        client.get("/api/market/price/BTC")
        client.get("/api/market/prices")
        clock.advance(10)

        response = client.get("/api/market/price/BTC")

        assert response.status_code == 429
        assert response.json() == {
            "success": False,
            "error": {
                "message": "Too many requests, please try again later.",
                "code": "RATE_LIMIT_EXCEEDED",
            },
        }
        assert response.headers["Retry-After"] == "50"
        assert response.headers["X-RateLimit-Remaining"] == "0"

    def test_budget_refills_after_window(self) -> None:
        clock = FakeClock()
        client = TestClient(_create_test_app(rate_limit=1, clock=clock))
        assert client.get("/api/market/price/BTC").status_code == 200
        assert client.get("/api/market/price/BTC").status_code == 429

        clock.advance(61)

        assert client.get("/api/market/price/BTC").status_code == 200

    def test_rejected_requests_do_not_extend_the_window(self) -> None:
        clock = FakeClock()
        client = TestClient(_create_test_app(rate_limit=1, clock=clock))
        client.get("/api/market/price/BTC")
        clock.advance(30)
        assert client.get("/api/market/price/BTC").status_code == 429

        clock.advance(31)

        assert client.get("/api/market/price/BTC").status_code == 200

    def test_health_and_options_not_counted(self) -> None:
        client = TestClient(_create_test_app(rate_limit=1))
        for _ in range(3):
            assert client.get("/health").status_code == 200
            client.options("/api/market/price/BTC")

        assert client.get("/api/market/price/BTC").status_code == 200

    def test_applies_before_auth(self) -> None:
        client = TestClient(_create_test_app(api_keys=["k"], rate_limit=1))
        assert client.get("/api/market/price/BTC").status_code == 401

        response = client.get("/api/market/price/BTC", headers={"X-API-KEY": "k"})

        assert response.status_code == 429

    @pytest.mark.asyncio
    async def test_budget_is_per_client_ip(self) -> None:
        limiter = RateLimitMiddleware(
            MagicMock(), max_requests=1, window_seconds=60.0, timer=FakeClock()
        )

        assert (await limiter.dispatch(_raw_request("10.0.0.1"), _ok)).status_code == 200
        assert (await limiter.dispatch(_raw_request("10.0.0.1"), _ok)).status_code == 429
        assert (await limiter.dispatch(_raw_request("10.0.0.2"), _ok)).status_code == 200

    @pytest.mark.asyncio
    async def test_idle_clients_are_forgotten(self) -> None:
        clock = FakeClock()
        limiter = RateLimitMiddleware(MagicMock(), max_requests=5, window_seconds=60.0, timer=clock)
        await limiter.dispatch(_raw_request("10.0.0.1"), _ok)
        assert limiter.tracked_clients == 1

        clock.advance(61)
        await limiter.dispatch(_raw_request("10.0.0.2"), _ok)

        assert limiter.tracked_clients == 1

    @pytest.mark.parametrize(("max_requests", "window"), [(0, 60.0), (5, 0.0)])
    def test_rejects_invalid_construction(self, max_requests: int, window: float) -> None:
        with pytest.raises(ValueError):
            RateLimitMiddleware(MagicMock(), max_requests=max_requests, window_seconds=window)


class TestUnexpectedErrors:
    def test_unexpected_exception_is_generic_500(self) -> None:
        broken = FakeProvider(name="broken", error=RuntimeError("secret internals"))
        client = TestClient(_create_test_app(primary=broken))

        response = client.get("/api/market/price/BTC")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == {"message": "Internal server error", "code": "INTERNAL_ERROR"}
        assert "secret internals" not in response.text
