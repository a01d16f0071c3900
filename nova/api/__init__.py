"""NOVA API layer: routes, schemas, dependencies and middleware."""

from nova.api.market_routes import router as market_router
from nova.api.middleware import (
    ApiKeyAuthMiddleware,
    ErrorHandlingMiddleware,
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
    register_exception_handlers,
)
from nova.api.schemas import ErrorResponse, HealthResponse
from nova.api.system_routes import root_router
from nova.api.system_routes import router as system_router

__all__ = [
    "ApiKeyAuthMiddleware",
    "ErrorHandlingMiddleware",
    "RateLimitMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "register_exception_handlers",
    "market_router",
    "root_router",
    "system_router",
    "ErrorResponse",
    "HealthResponse",
]
