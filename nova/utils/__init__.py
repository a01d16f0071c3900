"""Utility modules for the NOVA market gateway.

- **errors** -- Exception hierarchy rooted at NovaError; every class carries
  the HTTP status and error code rendered by the API layer.
- **logging** -- structlog setup: coloured console output in development,
  structured JSON in production, both driven by Settings.
"""

from nova.utils.errors import (
    AllProvidersFailedError,
    AssetNotFoundError,
    AuthenticationError,
    ConfigurationError,
    NovaError,
    ProviderError,
    RateLimitError,
    ValidationError,
)
from nova.utils.logging import configure_logging, get_logger

__all__ = [
    "AllProvidersFailedError",
    "AssetNotFoundError",
    "AuthenticationError",
    "ConfigurationError",
    "NovaError",
    "ProviderError",
    "RateLimitError",
    "ValidationError",
    "configure_logging",
    "get_logger",
]
