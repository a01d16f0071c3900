"""API middleware: CORS, request logging, rate limiting, API-key auth and errors.

Starlette middleware is a stack (last added, first executed).  ``main.py``
adds them so the request flows:

    Client -> CORS -> RequestLogging -> RateLimit -> ApiKeyAuth -> ErrorHandling -> route

RequestLoggingMiddleware therefore records the final status code, including
429s from the rate limiter, 401s from the auth layer and envelopes produced
by ErrorHandling.  Rejected API keys still spend the client's rate budget.
Request validation failures and unknown routes are raised inside FastAPI's
own exception middleware, so they are converted by the handlers registered
in :func:`register_exception_handlers` instead.
"""

from __future__ import annotations

import math
import time
from collections import defaultdict, deque
from collections.abc import Callable

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from nova.api.schemas import ErrorBody, ErrorResponse
from nova.utils.errors import AuthenticationError, NovaError, RateLimitError
from nova.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

API_KEY_HEADER = "X-API-KEY"

# Only the API surface is protected; "/", "/health" and the docs stay open.
_PROTECTED_PREFIX = "/api/"

_HTTP_STATUS_CODES = {
    401: "AUTHENTICATION_ERROR",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


def error_response(status_code: int, message: str, code: str) -> JSONResponse:
    """Build the standard ``{success: false, error: {...}}`` JSON response."""
    body = ErrorResponse(error=ErrorBody(message=message, code=code))
    return JSONResponse(status_code=status_code, content=body.model_dump())


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware to the FastAPI application.

    Parameters
    ----------
    app:
        The FastAPI application instance.
    allowed_origins:
        Explicit list of allowed origins.  Defaults to ``["*"]``; restrict it
        with ``CORS_ORIGINS`` in production.
    """
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Browsers reject credentialed responses with a wildcard origin.
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = response.status_code if response else 500
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=status_code,
                duration_ms=duration_ms,
            )


# ---------------------------------------------------------------------------
# API-key authentication
# ---------------------------------------------------------------------------


class ApiKeyAuthMiddleware(BaseHTTPMiddleware):
    """Require a known ``X-API-KEY`` header on every ``/api/`` request.

    Constructor injection: the accepted keys come from settings in
    ``main.py``.  An empty key list rejects every protected request.
    ``OPTIONS`` requests pass through so CORS preflight works.
    """

    def __init__(self, app: object, api_keys: list[str]) -> None:
        super().__init__(app)
        self._api_keys = frozenset(api_keys)

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        if request.method == "OPTIONS" or not request.url.path.startswith(_PROTECTED_PREFIX):
            return await call_next(request)

        api_key = request.headers.get(API_KEY_HEADER)
        if not api_key:
            exc = AuthenticationError("API key is required")
        elif api_key not in self._api_keys:
            exc = AuthenticationError("Invalid API key")
        else:
            return await call_next(request)

        # Never log the presented key.
        _logger.warning(
            "authentication_failed",
            path=str(request.url.path),
            reason=exc.message,
        )
        return error_response(exc.status_code, exc.message, exc.code)


# ---------------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------------

# Load-balancer health checks must never be throttled.
_RATE_LIMIT_EXEMPT = frozenset({"/health"})
_RATE_LIMIT_SWEEP_INTERVAL = 60.0


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Allow at most *max_requests* per client IP in any *window_seconds*.

    Timestamps are kept per client in a sliding window.  Over the limit the
    request is answered here with a 429 ``RATE_LIMIT_EXCEEDED`` envelope
    and a ``Retry-After`` header; allowed responses carry
    ``X-RateLimit-Limit`` and ``X-RateLimit-Remaining``.  ``OPTIONS`` and
    ``/health`` are not counted.

    State is per process.  With several workers each one enforces its own
    budget.
    """

    def __init__(
        self,
        app: object,
        max_requests: int = 100,
        window_seconds: float = 900.0,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(app)
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self._max_requests = max_requests
        self._window = window_seconds
        self._timer = timer
        self._requests: dict[str, deque[float]] = defaultdict(deque)
        self._last_sweep = timer()

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        if request.method == "OPTIONS" or request.url.path in _RATE_LIMIT_EXEMPT:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = self._timer()
        self._sweep(now)

        # No await between the check and the append, so this is atomic on the loop.
        timestamps = self._requests[client_ip]
        self._expire(timestamps, now)
        if len(timestamps) >= self._max_requests:
            retry_after = max(1, math.ceil(timestamps[0] + self._window - now))
            _logger.warning(
                "rate_limit_exceeded",
                client=client_ip,
                path=str(request.url.path),
                retry_after=retry_after,
            )
            exc = RateLimitError()
            response = error_response(exc.status_code, exc.message, exc.code)
            response.headers["Retry-After"] = str(retry_after)
            self._set_headers(response, remaining=0)
            return response

        timestamps.append(now)
        remaining = self._max_requests - len(timestamps)
        response = await call_next(request)
        self._set_headers(response, remaining=remaining)
        return response

    def _expire(self, timestamps: deque[float], now: float) -> None:
        cutoff = now - self._window
        while timestamps and timestamps[0] <= cutoff:
            timestamps.popleft()

    def _sweep(self, now: float) -> None:
        """Forget clients with no requests left in the window."""
        if now - self._last_sweep < min(self._window, _RATE_LIMIT_SWEEP_INTERVAL):
            return
        self._last_sweep = now
        for client_ip in list(self._requests):
            timestamps = self._requests[client_ip]
            self._expire(timestamps, now)
            if not timestamps:
                del self._requests[client_ip]

    def _set_headers(self, response: Response, remaining: int) -> None:
        response.headers["X-RateLimit-Limit"] = str(self._max_requests)
        response.headers["X-RateLimit-Remaining"] = str(remaining)

    @property
    def tracked_clients(self) -> int:
        return len(self._requests)


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Convert exceptions escaping the routes into the JSON error envelope.

    ``NovaError`` subclasses keep their own status and code.  Anything else
    becomes a 500 ``INTERNAL_ERROR`` with a generic message; the stack trace
    is logged server-side only and never sent to the client.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except NovaError as exc:
            _logger.error(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                code=exc.code,
                provider=exc.provider_name,
                path=str(request.url.path),
            )
            return error_response(exc.status_code, exc.message, exc.code)
        except Exception:
            _logger.exception("unhandled_error", path=str(request.url.path))
            return error_response(500, "Internal server error", "INTERNAL_ERROR")


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "query")
        msg = error.get("msg", "invalid value")
        parts.append(f"{location}: {msg}" if location else msg)
    return "; ".join(parts) or "Invalid request parameters"


async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = _validation_message(exc)
    _logger.info("request_validation_failed", path=str(request.url.path), detail=message)
    return error_response(400, message, "VALIDATION_ERROR")


async def _handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = _HTTP_STATUS_CODES.get(exc.status_code, "HTTP_ERROR")
    if exc.status_code == 404:
        message = f"Not found: {request.method} {request.url.path}"
    else:
        message = str(exc.detail)
    return error_response(exc.status_code, message, code)


def register_exception_handlers(app: FastAPI) -> None:
    """Route FastAPI's validation and HTTP errors through the error envelope."""
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)
