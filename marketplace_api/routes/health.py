# health.py
from __future__ import annotations

import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from marketplace_api.core.config import settings
from marketplace_api.core.logging import get_structlog_logger
from marketplace_api.db.session import health_check

logger = get_structlog_logger(__name__)

router = APIRouter(tags=["health"])

_STARTED_AT = time.time()


@router.get("/health")
async def health(request: Request):
    """Liveness plus database connectivity and enrichment backlog."""
    container = request.app.state.container
    checks = {}
    if container.sessionmaker is not None:
        checks["database"] = await health_check(container.sessionmaker)

    healthy = all(check.get("status") == "healthy" for check in checks.values())
    if not healthy:
        logger.warning("health.degraded", checks=checks)

    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "environment": settings.environment,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": round(time.time() - _STARTED_AT, 3),
            "enrichment_in_flight": container.scheduler.pending,
            "checks": checks,
        },
    )
