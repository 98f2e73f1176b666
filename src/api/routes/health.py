"""Health check endpoints."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from api.v1.dependencies import get_connectivity_monitor, get_offline_queue
from core.clock import utcnow
from core.config import settings
from infrastructure.database.session import get_async_session
from infrastructure.resilience.connectivity import HttpReachabilityMonitor
from infrastructure.resilience.offline_queue import OfflineQueue

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str
    environment: str
    database: str | None = None
    connectivity: str | None = None
    offline_queue_size: int | None = None
    offline_queue_dropped: int | None = None


@router.get("/health", response_model=HealthResponse, summary="Basic health check")
async def health_check() -> HealthResponse:
    """
    Basic health check for load balancers.

    Returns service status without checking dependencies. Fast and lightweight.
    """
    return HealthResponse(
        status="healthy",
        version="1.0.0",
        timestamp=utcnow().isoformat(),
        environment=settings.app_env,
    )


@router.get(
    "/health/detailed",
    response_model=HealthResponse,
    summary="Detailed health check",
)
async def detailed_health_check(
    db: AsyncSession = Depends(get_async_session),
    connectivity: HttpReachabilityMonitor = Depends(get_connectivity_monitor),
    queue: OfflineQueue = Depends(get_offline_queue),
) -> HealthResponse:
    """
    Detailed health check including store reachability and the offline queue.

    Pending queued writes degrade the status: they mean the store was
    recently unreachable and replay has not finished.
    """
    db_status = "unknown"

    try:
        await db.execute(text("SELECT 1"))
        db_status = "healthy"
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"

    connectivity_status = "online" if await connectivity.is_connected() else "offline"

    overall_status = "healthy"
    if db_status != "healthy" or connectivity_status != "online" or len(queue) > 0:
        overall_status = "degraded"

    return HealthResponse(
        status=overall_status,
        version="1.0.0",
        timestamp=utcnow().isoformat(),
        environment=settings.app_env,
        database=db_status,
        connectivity=connectivity_status,
        offline_queue_size=len(queue),
        offline_queue_dropped=queue.dropped_count,
    )
