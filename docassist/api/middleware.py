"""API middleware: CORS, request logging, and error handling.

# ─── MIDDLEWARE EXECUTION ORDER (Junior Developer Guide) ───────────────
#
# Starlette middleware is a stack (last added, first executed):
#
#   In main.py:
#     app.add_middleware(ErrorHandlingMiddleware)    # added 1st, inner
#     app.add_middleware(RequestLoggingMiddleware)   # added 2nd, outer
#
#   Request flow:
#     Client → RequestLogging → ErrorHandling → route handler
#
# RequestLoggingMiddleware therefore logs the status code that
# ErrorHandlingMiddleware chose, and the request id it binds is visible
# in every log line emitted while the request is handled.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import time
import uuid

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from docassist.api.schemas import ErrorResponse
from docassist.utils.errors import (
    ConfigurationError,
    DocAssistError,
    DocumentNotFoundError,
    InferenceError,
    RetrievalError,
    UnknownConversationError,
    UnknownEscalationError,
    UnsupportedFormatError,
)
from docassist.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

# Most specific class first; the first isinstance match wins.
_STATUS_BY_ERROR: tuple[tuple[type[DocAssistError], int], ...] = (
    (UnsupportedFormatError, 415),
    (DocumentNotFoundError, 404),
    (UnknownConversationError, 404),
    (UnknownEscalationError, 404),
    (RetrievalError, 502),
    (InferenceError, 502),
    (ConfigurationError, 500),
)


def status_for_error(exc: DocAssistError) -> int:
    """HTTP status code for an application error (500 when unmapped)."""
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware to the FastAPI application.

    # JUNIOR DEV NOTE: the browser chat client is served from a different
    # port (http://localhost:3000 in development) than this API, so the
    # browser refuses responses unless the API names that origin here.
    # Set CORS_ORIGINS to a comma-separated list to change it.

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
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with a request id, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
        structlog.contextvars.bind_contextvars(request_id=request_id)
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=response.status_code if response else 500,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
            structlog.contextvars.unbind_contextvars("request_id")


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turn uncaught ``DocAssistError`` subclasses into JSON error bodies.

    Routes translate the errors they expect into ``HTTPException``; this is
    the net for the rest.  The client sees the error class and message,
    never a stack trace.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except DocAssistError as exc:
            status_code = status_for_error(exc)
            _logger.error(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=str(request.url.path),
                status=status_code,
            )
            body = ErrorResponse(error=type(exc).__name__, detail=exc.message)
            return JSONResponse(status_code=status_code, content=body.model_dump())
