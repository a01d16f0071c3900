"""Unit tests for MarketDataService cache keys, batching and invalidation."""

from __future__ import annotations

import pytest

from nova.providers.cache.memory_cache import MemoryCacheProvider
from nova.services.fallback_resolver import FallbackResolver
from nova.services.market_data_service import (
    TIMEFRAMES,
    CacheTTLs,
    MarketDataService,
    historical_key,
    market_key,
    price_key,
)
from nova.utils.errors import AllProvidersFailedError, ProviderError
from tests.conftest import FakeClock, FakeProvider


@pytest.fixture
def service(
    resolver: FallbackResolver,
    primary_provider: FakeProvider,
    fallback_provider: FakeProvider,
) -> MarketDataService:
    return MarketDataService(
        resolver=resolver,
        primary=primary_provider,
        fallback=fallback_provider,
        ttls=CacheTTLs(price=300, market_data=900, historical=3600),
    )


class TestCacheKeys:
    def test_key_format(self) -> None:
        assert price_key("BTC") == "price:btc"
        assert market_key("Eth") == "market:eth"
        assert historical_key("SOL", "7d") == "historical:sol:7d"


class TestSingleReads:
    @pytest.mark.asyncio
    async def test_get_price_caches_under_price_key(
        self, service: MarketDataService, cache: MemoryCacheProvider
    ) -> None:
        assert await service.get_price("BTC") == 50_000.0
        assert cache.get("price:btc") == 50_000.0

    @pytest.mark.asyncio
    async def test_symbol_case_shares_entry(
        self, service: MarketDataService, primary_provider: FakeProvider
    ) -> None:
        await service.get_price("BTC")
        await service.get_price("btc")
        assert len(primary_provider.calls) == 1

    @pytest.mark.asyncio
    async def test_price_ttl_applied(
        self,
        service: MarketDataService,
        clock: FakeClock,
        primary_provider: FakeProvider,
    ) -> None:
        await service.get_price("BTC")
        clock.advance(299)
        await service.get_price("BTC")
        clock.advance(2)
        await service.get_price("BTC")
        assert len(primary_provider.calls) == 2

    @pytest.mark.asyncio
    async def test_historical_keyed_by_timeframe(
        self, service: MarketDataService, cache: MemoryCacheProvider
    ) -> None:
        points = await service.get_historical_prices("ETH", "7d")
        assert len(points) == 2
        assert cache.has("historical:eth:7d")
        assert not cache.has("historical:eth:30d")

    @pytest.mark.asyncio
    async def test_market_data_uses_fallback(
        self, service: MarketDataService, cache: MemoryCacheProvider
    ) -> None:
        snapshot = await service.get_market_data("SOL")
        assert snapshot.provider == "fallback"
        assert cache.get("market:sol") == snapshot

    @pytest.mark.asyncio
    async def test_total_failure_propagates(self, service: MarketDataService) -> None:
        with pytest.raises(AllProvidersFailedError):
            await service.get_price("DOGE")

    def test_provider_names(self, service: MarketDataService) -> None:
        assert service.primary_provider_name == "primary"
        assert service.fallback_provider_name == "fallback"

    def test_fallback_name_none_without_fallback(
        self, resolver: FallbackResolver, primary_provider: FakeProvider
    ) -> None:
        service = MarketDataService(resolver=resolver, primary=primary_provider)
        assert service.fallback_provider_name is None


class TestBatchReads:
    @pytest.mark.asyncio
    async def test_get_prices_maps_failures_to_none(self, service: MarketDataService) -> None:
        prices = await service.get_prices(["BTC", "sol", "DOGE"])
        assert prices == {"BTC": 50_000.0, "SOL": 120.0, "DOGE": None}

    @pytest.mark.asyncio
    async def test_get_prices_deduplicates(
        self, service: MarketDataService, primary_provider: FakeProvider
    ) -> None:
        prices = await service.get_prices(["BTC", "btc", " BTC "])
        assert list(prices) == ["BTC"]
        assert len(primary_provider.calls) == 1

    @pytest.mark.asyncio
    async def test_get_markets_data(self, service: MarketDataService) -> None:
        data = await service.get_markets_data(["ETH", "XYZ"])
        assert data["ETH"] is not None
        assert data["ETH"].price == 3_000.0
        assert data["XYZ"] is None

    @pytest.mark.asyncio
    async def test_unexpected_errors_are_not_swallowed(
        self, resolver: FallbackResolver
    ) -> None:
        broken = FakeProvider(name="broken", error=RuntimeError("bug"))
        service = MarketDataService(resolver=resolver, primary=broken)
        with pytest.raises(RuntimeError):
            await service.get_prices(["BTC"])

    @pytest.mark.asyncio
    async def test_single_provider_failure_maps_to_none(
        self, resolver: FallbackResolver
    ) -> None:
        down = FakeProvider(name="down", error=ProviderError("down"))
        service = MarketDataService(resolver=resolver, primary=down)
        assert await service.get_prices(["BTC"]) == {"BTC": None}


class TestCacheManagement:
    @pytest.mark.asyncio
    async def test_invalidate_cache_removes_all_keys_for_symbol(
        self, service: MarketDataService, cache: MemoryCacheProvider
    ) -> None:
        await service.get_price("BTC")
        await service.get_market_data("BTC")
        for timeframe in TIMEFRAMES:
            await service.get_historical_prices("BTC", timeframe)
        await service.get_price("ETH")

        removed = service.invalidate_cache("btc")

        assert removed == 2 + len(TIMEFRAMES)
        assert cache.keys() == ["price:eth"]

    @pytest.mark.asyncio
    async def test_clear_all_caches(
        self, service: MarketDataService, cache: MemoryCacheProvider
    ) -> None:
        await service.get_price("BTC")
        await service.get_price("ETH")
        service.clear_all_caches()
        assert len(cache) == 0
