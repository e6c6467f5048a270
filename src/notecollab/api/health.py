"""Health check API endpoints."""

from typing import Dict, Any

from fastapi import APIRouter, Depends

from ..core.services import CollaborationHub, HealthService
from ..core.schemas.common import HealthCheckResponse
from ..realtime import get_collaboration_hub

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/", response_model=HealthCheckResponse)
async def health_check(hub: CollaborationHub = Depends(get_collaboration_hub)):
    """Get overall system health status."""
    health_service = HealthService(hub)
    return await health_service.get_health_status()


@router.get("/redis", response_model=Dict[str, Any])
async def redis_health(hub: CollaborationHub = Depends(get_collaboration_hub)):
    """Check Redis connectivity."""
    health_service = HealthService(hub)
    return await health_service.check_redis_health()


@router.get("/metrics", response_model=Dict[str, Any])
async def system_metrics(hub: CollaborationHub = Depends(get_collaboration_hub)):
    """Get system metrics."""
    health_service = HealthService(hub)
    return await health_service.get_system_metrics()
