# marketplace_api/main.py
from __future__ import annotations

import time
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from marketplace_api.core.config import settings
from marketplace_api.core.exceptions import BaseAPIException
from marketplace_api.core.logging import configure_structlog, get_structlog_logger
from marketplace_api.middleware.logging import LoggingMiddleware
from marketplace_api.middleware.request_id import RequestIdMiddleware
from marketplace_api.routes import health_router, leads_router, seller_inquiries_router
from marketplace_api.schemas.common import envelope
from marketplace_api.services.container import build_container


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    logger = get_structlog_logger(__name__)

    # Startup
    logger.info("application.starting", environment=settings.environment)

    if getattr(app.state, "container", None) is None:
        app.state.container = await build_container(settings)
        logger.info("container.built", storage_bucket=settings.s3_bucket or None)

    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            integrations=[
                AsyncioIntegration(),
                FastApiIntegration(),
                StarletteIntegration(),
            ],
            traces_sample_rate=1.0 if settings.is_development else 0.1,
            send_default_pii=False,
        )
        logger.info("sentry.initialized")

    logger.info("application.started")
    yield

    # Shutdown
    logger.info("application.shutting_down")
    await app.state.container.aclose()
    logger.info("application.shutdown_complete")


async def api_exception_handler(request: Request, exc: BaseAPIException):
    """Render domain exceptions in the response envelope."""
    logger = get_structlog_logger(__name__)
    logger.warning(
        "api.exception",
        status_code=exc.status_code,
        code=exc.code,
        path=request.url.path,
        method=request.method,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=envelope(
            success=False,
            message=exc.message,
            errors=exc.details.get("errors"),
        ),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are client errors like any other invalid field."""
    logger = get_structlog_logger(__name__)
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", []) if part not in ("body", "query", "path")]
        errors.append({
            "field": ".".join(loc) or "body",
            "message": error.get("msg", "Validation error"),
        })

    logger.warning(
        "validation.error",
        path=request.url.path,
        method=request.method,
        errors=errors,
    )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=envelope(success=False, message="Request validation failed", errors=errors),
    )


async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger = get_structlog_logger(__name__)
    error_id = f"err_{int(time.time())}_{hash(str(exc)) % 10000:04d}"

    logger.error(
        "unhandled.exception",
        error_id=error_id,
        error_type=type(exc).__name__,
        error=str(exc),
        path=request.url.path,
        method=request.method,
    )

    message = f"Internal server error: {exc}" if settings.is_development else "Internal server error"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=envelope(success=False, message=message, error_id=error_id),
        headers={"X-Error-ID": error_id},
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title="Vehicle Marketplace API",
        version="1.0.0",
        description="Seller inquiry intake with background media and registry enrichment",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )

    # Outermost middleware is added last
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.hosts())
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.origins(),
        allow_credentials=True,
        allow_methods=settings.methods(),
        allow_headers=settings.allowed_headers.split(","),
        expose_headers=["X-Request-ID", "X-Response-Time"],
    )

    app.add_exception_handler(BaseAPIException, api_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    app.include_router(health_router, prefix=settings.api_prefix)
    app.include_router(seller_inquiries_router, prefix=settings.api_prefix)
    app.include_router(leads_router, prefix=settings.api_prefix)

    if not settings.is_testing:
        Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": app.title,
            "version": app.version,
            "environment": settings.environment,
            "docs": "/docs" if settings.is_development else None,
            "health": f"{settings.api_prefix}/health",
        }

    return app


# Configure logging before creating app
configure_structlog()

app = create_app()

get_structlog_logger(__name__).info("application.configured", environment=settings.environment)
