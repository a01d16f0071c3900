"""Custom exception hierarchy for the NOVA market gateway.

All application exceptions inherit from :class:`NovaError`, which carries an
optional ``provider_name`` so error handlers can identify which upstream
market-data service (e.g. "coingecko", "binance") caused the failure.  Each
class also declares the HTTP ``status_code`` and machine-readable ``code``
used by the API layer when rendering the error envelope.

    NovaError  (base -- catch-all for any gateway error)
    +-- ProviderError            (a single upstream fetch failed)
    +-- AllProvidersFailedError  (primary and fallback both failed)
    +-- AssetNotFoundError       (symbol not in the catalogue)
    +-- ValidationError          (bad request parameters)
    +-- AuthenticationError      (missing / invalid API key)
    +-- RateLimitError           (per-client request budget exhausted)
    +-- ConfigurationError       (startup / unknown provider name)

Provider failures are caught inside the fallback resolver; only
``AllProvidersFailedError`` (or a lone ``ProviderError`` when no fallback is
configured) reaches the HTTP layer.
"""

from __future__ import annotations


class NovaError(Exception):
    """Base exception for all NOVA gateway errors.

    The ``__str__`` method prefixes the provider name in brackets for
    structured log output, e.g. ``[binance] Failed to get price for BTC``.
    """

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
        code: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        if code is not None:
            self.code = code
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Upstream provider errors
# ---------------------------------------------------------------------------


class ProviderError(NovaError):
    """Raised when a single market-data backend call fails.

    Covers network errors, timeouts, non-2xx responses and malformed
    payloads.  The resolver catches this to try the fallback provider.
    """

    status_code = 502
    code = "PROVIDER_ERROR"

    def __init__(
        self,
        message: str = "Market data provider request failed",
        provider_name: str | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, code=code)


class AllProvidersFailedError(NovaError):
    """Raised when both the primary and the fallback provider failed.

    Both underlying errors are kept for diagnostics and their messages are
    embedded in this error's message.
    """

    status_code = 502
    code = "ALL_PROVIDERS_FAILED"

    def __init__(
        self,
        primary_error: Exception,
        fallback_error: Exception,
        resource: str = "",
    ) -> None:
        self.primary_error = primary_error
        self.fallback_error = fallback_error
        target = f" for {resource}" if resource else ""
        super().__init__(
            message=(
                f"All providers failed{target}: "
                f"primary: {primary_error}; fallback: {fallback_error}"
            ),
        )


# ---------------------------------------------------------------------------
# Request errors
# ---------------------------------------------------------------------------


class AssetNotFoundError(NovaError):
    """Raised when a symbol is not part of the supported-asset catalogue."""

    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        super().__init__(message=f"Asset not found: {symbol}")


class ValidationError(NovaError):
    """Raised when request parameters fail validation."""

    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(self, message: str = "Invalid request parameters") -> None:
        super().__init__(message=message)


class AuthenticationError(NovaError):
    """Raised when an API key is missing or not recognised."""

    status_code = 401
    code = "AUTHENTICATION_ERROR"

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message=message)


class RateLimitError(NovaError):
    """Raised when a client exceeds its request budget for the current window."""

    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, message: str = "Too many requests, please try again later.") -> None:
        super().__init__(message=message)


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------


class ConfigurationError(NovaError):
    """Raised when configuration is invalid or missing at startup."""

    code = "CONFIGURATION_ERROR"

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
