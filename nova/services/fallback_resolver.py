"""Cache-first resolver with primary/fallback provider failover.

Every market-data read in the gateway goes through :meth:`FallbackResolver.resolve`:

    1. Cache lookup.  A live entry is returned without touching any provider.
    2. Primary provider.  Success is cached and returned.
    3. Fallback provider (when configured).  Success is cached and returned.
    4. Both failed -> :class:`AllProvidersFailedError` carrying both errors.
       No fallback configured -> the primary's :class:`ProviderError`.

Each provider is tried at most once per call, and each call is bounded by
``timeout``; a timeout counts as a provider failure.  Nothing is cached on
failure.  Concurrent misses on the same key may both hit the primary; the
last write wins.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from nova.interfaces.cache_provider import ICacheProvider
from nova.interfaces.market_data_provider import IMarketDataProvider
from nova.utils.errors import AllProvidersFailedError, ProviderError
from nova.utils.logging import get_logger

T = TypeVar("T")

_DEFAULT_TIMEOUT = 10.0


class FallbackResolver:
    """Resolve cache keys against two interchangeable providers.

    Parameters
    ----------
    cache:
        Shared cache instance; owned by the application, not the resolver.
    timeout:
        Seconds allowed for each provider call.
    """

    def __init__(self, cache: ICacheProvider, timeout: float = _DEFAULT_TIMEOUT) -> None:
        self._cache = cache
        self._timeout = timeout
        self._logger = get_logger(__name__)

    @property
    def cache(self) -> ICacheProvider:
        return self._cache

    async def resolve(
        self,
        cache_key: str,
        primary: IMarketDataProvider,
        fallback: IMarketDataProvider | None,
        fetch: Callable[[IMarketDataProvider], Awaitable[T]],
        ttl: float | None = None,
    ) -> T:
        """Return the payload for *cache_key*, fetching on a cache miss.

        Parameters
        ----------
        cache_key:
            Key under which the payload is cached (e.g. ``"price:btc"``).
        primary:
            Provider tried first on a miss.
        fallback:
            Provider tried when the primary fails, or ``None``.
        fetch:
            Coroutine function taking a provider and returning the payload.
        ttl:
            Cache lifetime in seconds; ``None`` uses the cache default.

        Raises
        ------
        AllProvidersFailedError
            If both providers failed.
        ProviderError
            If the primary failed and no fallback is configured.
        """
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            result = await self._call(primary, fetch, cache_key)
        except ProviderError as primary_exc:
            self._logger.warning(
                "primary_provider_failed",
                key=cache_key,
                provider=primary.get_provider_name(),
                error=str(primary_exc),
            )
            if fallback is None:
                raise
            try:
                result = await self._call(fallback, fetch, cache_key)
            except ProviderError as fallback_exc:
                self._logger.error(
                    "fallback_provider_failed",
                    key=cache_key,
                    provider=fallback.get_provider_name(),
                    error=str(fallback_exc),
                )
                raise AllProvidersFailedError(
                    primary_error=primary_exc,
                    fallback_error=fallback_exc,
                    resource=cache_key,
                ) from fallback_exc
            self._logger.info(
                "fallback_provider_used",
                key=cache_key,
                provider=fallback.get_provider_name(),
            )

        self._cache.set(cache_key, result, ttl)
        return result

    def invalidate(self, cache_key: str) -> bool:
        """Drop *cache_key* so the next resolve goes to the providers."""
        return self._cache.delete(cache_key)

    async def _call(
        self,
        provider: IMarketDataProvider,
        fetch: Callable[[IMarketDataProvider], Awaitable[T]],
        cache_key: str,
    ) -> T:
        name = provider.get_provider_name()
        try:
            return await asyncio.wait_for(fetch(provider), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            raise ProviderError(
                message=f"timeout after {self._timeout:g}s resolving {cache_key}",
                provider_name=name,
                code="TIMEOUT",
            ) from exc
