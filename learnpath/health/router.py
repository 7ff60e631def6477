"""Health check endpoints."""

from fastapi import APIRouter, Request

from learnpath.config import get_settings
from learnpath.core.database import CassandraConnection


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - checks if the application is running."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(request: Request) -> dict[str, str | bool]:
    """Readiness probe - reports whether the services and stores are wired."""
    settings = get_settings()
    services_ready = bool(getattr(request.app.state, "structure_service", None))
    lock_manager = getattr(request.app.state, "lock_manager", None)
    return {
        "status": "ready" if services_ready else "starting",
        "environment": settings.environment,
        "cassandra": CassandraConnection.is_connected(),
        "distributed_locks": bool(lock_manager and lock_manager.distributed),
    }


@router.get("")
async def health() -> dict[str, str]:
    """General health check endpoint."""
    settings = get_settings()
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }
