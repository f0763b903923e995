# marketplace_api/middleware/logging.py
from __future__ import annotations

import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from marketplace_api.core.logging import get_structlog_logger

logger = get_structlog_logger(__name__)

# Health checks and metric scrapes hit these constantly
_UNLOGGED_PATHS = frozenset({"/health", "/api/health", "/metrics"})


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs one event per request and stamps ``X-Response-Time``.

    Multipart bodies carry seller photos, so only sizes are logged, never
    headers or payloads.
    """

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        quiet = request.url.path in _UNLOGGED_PATHS

        if not quiet:
            logger.info(
                "request.received",
                method=request.method,
                path=request.url.path,
                client_ip=request.client.host if request.client else "unknown",
                content_type=request.headers.get("content-type", ""),
                content_length=int(request.headers.get("content-length") or 0),
                authenticated="authorization" in request.headers,
            )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request.failed",
                method=request.method,
                path=request.url.path,
                elapsed_ms=round((time.perf_counter() - started) * 1000, 2),
                error_type=type(e).__name__,
            )
            raise

        elapsed = time.perf_counter() - started
        response.headers["X-Response-Time"] = f"{elapsed:.3f}"

        if not quiet:
            log = logger.warning if response.status_code >= 400 else logger.info
            log(
                "response.sent",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                elapsed_ms=round(elapsed * 1000, 2),
            )

        return response
