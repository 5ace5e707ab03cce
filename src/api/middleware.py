"""API middleware -- CORS, request logging, and error handling.

Provides helper functions and middleware classes to configure cross-origin
resource sharing for the docs-site widget, structured request logging
(via structlog), and conversion of ``FeedbackError`` subclasses into JSON
``ErrorResponse`` bodies.

Starlette middleware is a stack (last added, first executed):

    app.add_middleware(ErrorHandlingMiddleware)   # added 1st → inner
    app.add_middleware(RequestLoggingMiddleware)  # added 2nd → outer

so RequestLoggingMiddleware sees the final status code, even when
ErrorHandlingMiddleware replaced an exception with a JSON error.
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from src.api.schemas import ErrorResponse
from src.utils.errors import (
    ConfigurationError,
    ConnectorError,
    FeedbackError,
    FeedbackValidationError,
)
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

# Browsers may cache the preflight answer for a day.
_PREFLIGHT_MAX_AGE = 86400


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware so the widget can post from the docs site's origin.

    Parameters
    ----------
    app:
        The FastAPI application instance.
    allowed_origins:
        Explicit list of allowed origins.  Defaults to ``["*"]``.
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins or ["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=_PREFLIGHT_MAX_AGE,
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request with its origin, status and duration.

    Preflight requests are logged at debug level; the widget sends one
    before most submissions.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            log = _logger.debug if request.method == "OPTIONS" else _logger.info
            log(
                "http_request",
                method=request.method,
                path=request.url.path,
                origin=request.headers.get("origin"),
                status=status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


def _status_for(exc: FeedbackError) -> int:
    if isinstance(exc, FeedbackValidationError):
        return 400
    if isinstance(exc, ConfigurationError):
        return 503
    if isinstance(exc, ConnectorError):
        return 502
    return 500


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turn a ``FeedbackError`` that escaped a route into a JSON error body.

    Validation errors map to 400, configuration errors to 503, connector
    errors to 502 and anything else in the hierarchy to 500.  Other
    exceptions fall through to FastAPI's default 500 handler.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except FeedbackError as exc:
            status_code = _status_for(exc)
            _logger.error(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=request.url.path,
                status=status_code,
            )
            body = ErrorResponse(error=type(exc).__name__, detail=exc.message)
            return JSONResponse(status_code=status_code, content=body.model_dump())
