"""Shared HTTP plumbing for REST-backed market-data providers.

Both upstream APIs are plain JSON-over-GET, so the request/response error
mapping lives here once: transport errors, timeouts, non-2xx statuses and
undecodable bodies all surface as :class:`ProviderError` tagged with the
provider name.  Subclasses only build URLs and map payloads.
"""

from __future__ import annotations

from typing import Any

import httpx

from nova.interfaces.market_data_provider import IMarketDataProvider
from nova.utils.errors import ProviderError
from nova.utils.logging import get_logger


class HTTPMarketDataProvider(IMarketDataProvider):
    """Base class for providers that talk to a JSON REST API.

    The ``httpx.AsyncClient`` is injected so one connection pool is shared
    across providers and tests can substitute a mock.
    """

    _PROVIDER_NAME = "http"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str,
        headers: dict[str, str] | None = None,
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._headers = headers or {}
        self._logger = get_logger(__name__)

    def get_provider_name(self) -> str:
        return self._PROVIDER_NAME

    def is_available(self) -> bool:
        return bool(self._base_url)

    async def _get_json(self, path: str, params: dict[str, Any], resource: str) -> Any:
        """GET ``base_url + path`` and return the decoded JSON body.

        *resource* is a short description (e.g. ``"price for BTC"``) used in
        error messages.
        """
        url = f"{self._base_url}{path}"
        name = self.get_provider_name()
        try:
            response = await self._http.get(url, params=params, headers=self._headers)
        except httpx.TimeoutException as exc:
            self._logger.warning("provider_timeout", provider=name, url=url)
            raise ProviderError(
                message=f"Request timed out fetching {resource}",
                provider_name=name,
                code="TIMEOUT",
            ) from exc
        except httpx.HTTPError as exc:
            self._logger.warning("provider_request_failed", provider=name, url=url, error=str(exc))
            raise ProviderError(
                message=f"Failed to get {resource}: {exc}",
                provider_name=name,
            ) from exc

        if response.status_code == 404:
            raise ProviderError(
                message=f"Failed to get {resource}: not found",
                provider_name=name,
                code="NOT_FOUND",
            )
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._logger.warning(
                "provider_http_error", provider=name, url=url, status=response.status_code
            )
            raise ProviderError(
                message=f"Failed to get {resource}: HTTP {response.status_code}",
                provider_name=name,
            ) from exc

        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(
                message=f"Failed to get {resource}: response is not valid JSON",
                provider_name=name,
            ) from exc

    def _malformed(self, resource: str, exc: Exception) -> ProviderError:
        self._logger.warning(
            "provider_malformed_response",
            provider=self.get_provider_name(),
            resource=resource,
            error=str(exc),
        )
        return ProviderError(
            message=f"Failed to get {resource}: malformed response",
            provider_name=self.get_provider_name(),
        )
