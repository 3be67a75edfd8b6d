"""FastAPI middleware for request tracking and error responses.

Adds:
- X-Request-ID header (echoed from the client or generated)
- X-Process-Time header
- request_id bound into structlog contextvars, so simulator log events
  emitted while serving a request carry it
- JSON error bodies for simulator exceptions
"""

import logging
import time
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import get_settings
from core.exceptions import ParseError, SimulatorException

logger = logging.getLogger(__name__)


class RequestTrackingMiddleware(BaseHTTPMiddleware):
    """Request id, timing and access logging for every HTTP request."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        request.state.request_id = request_id
        started = time.monotonic()

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            try:
                response = await call_next(request)
            except Exception as exc:
                logger.error(
                    f"Unhandled exception on {request.method} {request.url.path}: {exc}",
                    extra={"request_id": request_id},
                    exc_info=True,
                )
                detail = "Internal server error"
                if not get_settings().is_production and str(exc):
                    detail = str(exc)
                return JSONResponse(
                    status_code=500,
                    content={"detail": detail, "request_id": request_id},
                    headers={"X-Request-ID": request_id},
                )

        duration_ms = (time.monotonic() - started) * 1000
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{duration_ms:.2f}ms"

        # Probes would drown the access log
        if not request.url.path.rstrip("/").endswith("/health"):
            level = logging.WARNING if response.status_code >= 400 else logging.INFO
            logger.log(
                level,
                f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms:.0f}ms)",
                extra={"request_id": request_id, "status_code": response.status_code},
            )

        return response


def _error_body(request: Request, detail: str, **extra) -> dict:
    return {
        "detail": detail,
        "request_id": getattr(request.state, "request_id", None),
        **extra,
    }


def setup_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers.

    Every SimulatorException carries its own status code; ParseError also
    reports its machine-readable ``error_code``.
    """

    @app.exception_handler(SimulatorException)
    async def simulator_error_handler(request: Request, exc: SimulatorException):
        extra = {"error_code": exc.code} if isinstance(exc, ParseError) else {}
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, exc.message, **extra),
        )
