"""Health API endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query

from healthwatch.api.deps import get_health_monitor
from healthwatch.services.health import (
    AggregateSnapshot,
    ComponentHealth,
    HealthMonitor,
    HealthStatus,
)

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("", response_model=AggregateSnapshot)
async def get_system_health(
    monitor: HealthMonitor = Depends(get_health_monitor),
) -> AggregateSnapshot:
    """Get overall system health.

    Returns:
        Current aggregate snapshot
    """
    return monitor.current_health


@router.get("/live")
async def liveness_check() -> dict[str, Any]:
    """Kubernetes liveness probe endpoint.

    Returns:
        Simple alive status
    """
    return {"status": "alive"}


@router.get("/ready")
async def readiness_check(
    monitor: HealthMonitor = Depends(get_health_monitor),
) -> dict[str, Any]:
    """Kubernetes readiness probe endpoint.

    Returns:
        Ready status based on the aggregate health
    """
    health = monitor.current_health

    if health.status == HealthStatus.UNHEALTHY:
        raise HTTPException(503, "Service not ready")

    return {
        "status": "ready",
        "overall_health": health.status.value,
    }


@router.get("/components")
async def get_components(
    monitor: HealthMonitor = Depends(get_health_monitor),
) -> list[str]:
    """Get list of monitored components."""
    return sorted(monitor.current_health.components)


@router.get("/components/{component_id}", response_model=ComponentHealth)
async def get_component_health(
    component_id: str,
    monitor: HealthMonitor = Depends(get_health_monitor),
) -> ComponentHealth:
    """Get health of a specific component.

    Args:
        component_id: Component to look up

    Returns:
        Component health
    """
    history = monitor.get_component_history(component_id, limit=1)
    if not history:
        raise HTTPException(404, f"Component not found: {component_id}")

    return history[0]


@router.get("/components/{component_id}/history", response_model=list[ComponentHealth])
async def get_component_history(
    component_id: str,
    limit: int = Query(100, ge=1, le=1000),
    monitor: HealthMonitor = Depends(get_health_monitor),
) -> list[ComponentHealth]:
    """Get recorded health of a component (current record only)."""
    return monitor.get_component_history(component_id, limit=limit)


@router.post("/check", response_model=AggregateSnapshot)
async def run_full_health_check(
    monitor: HealthMonitor = Depends(get_health_monitor),
) -> AggregateSnapshot:
    """Run every registered check now.

    Returns:
        Snapshot after all checks completed
    """
    return await monitor.perform_full_health_check()
