"""
Health check endpoints for monitoring and orchestration (K8s, Docker, etc.)

Provides multiple health check endpoints:
- /health: Basic liveness check (always returns 200)
- /health/live: Alias for /health
- /health/ready: Readiness check (storage reachable, background tasks running)
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app.api.dependencies import Container, get_container

logger = logging.getLogger(__name__)

router = APIRouter()

SERVICE_NAME = "or-reservations-api"


@router.get("/health")
async def health_check():
    """
    Basic liveness probe.

    Returns 200 OK if the application is running.
    """
    return {"status": "ok", "service": SERVICE_NAME}


@router.get("/health/live")
async def health_check_live():
    """Alias for /health for Kubernetes liveness probe."""
    return {"status": "ok", "service": SERVICE_NAME}


@router.get("/health/ready")
async def health_check_ready(container: Container = Depends(get_container)):
    """
    Readiness probe for K8s/orchestration.

    Checks if the application is ready to accept traffic.
    - Storage connectivity (SQL mode only)
    - Background tasks running (when enabled)

    Returns 503 if not ready to accept requests.
    """
    health_status = {"status": "ready", "checks": {}}

    if container.engine is not None:
        try:
            async with container.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            health_status["checks"]["database"] = "healthy"
        except Exception as e:
            logger.error("Readiness check: Database unhealthy", exc_info=e)
            health_status["checks"]["database"] = "unhealthy"
            health_status["status"] = "not_ready"
    else:
        health_status["checks"]["storage"] = "in_memory"

    if container.settings.enable_background_workers:
        stopped = [task.name for task in container.tasks if not task.is_running]
        health_status["checks"]["background_tasks"] = "stopped: " + ", ".join(stopped) if stopped else "running"
        if stopped:
            health_status["status"] = "not_ready"

    if health_status["status"] != "ready":
        return JSONResponse(status_code=503, content=health_status)
    return health_status
