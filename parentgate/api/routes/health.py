"""
Health check endpoints.

Provides system health information for monitoring.
"""

from fastapi import APIRouter, HTTPException
import structlog

from parentgate import __version__
from parentgate.api.dependencies import ContextDep
from parentgate.core.config import settings
from parentgate.persistence.database import check_database_health

log = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(context: ContextDep):
    """
    Health check endpoint.

    Returns:
        Database connectivity plus a summary of the gate's lock state.
        Locks are normal operation and never make the service unhealthy.
    """
    db_health = await check_database_health(context.db_path)
    gate_status = context.gate.status()

    overall_status = "healthy" if db_health["status"] == "healthy" else "unhealthy"

    return {
        "status": overall_status,
        "version": __version__,
        "debug": settings.debug,
        "components": {
            "database": db_health,
            "gate": {
                "mode": gate_status.mode.value,
                "time_locked": gate_status.time_locked,
                "locked_out": gate_status.lockout.locked,
                "emergency_override_active": gate_status.emergency_override_active,
            },
        },
    }


@router.get("/health/live")
async def liveness():
    """
    Kubernetes-style liveness probe.

    Returns 200 if the application is running.
    """
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness(context: ContextDep):
    """
    Kubernetes-style readiness probe.

    Returns 200 if the application is ready to serve requests.
    """
    db_health = await check_database_health(context.db_path)

    if db_health["status"] != "healthy":
        raise HTTPException(status_code=503, detail="Database not ready")

    return {"status": "ready"}
