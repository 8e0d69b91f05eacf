"""Schemas for the health monitoring service."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Current UTC time."""
    return datetime.now(timezone.utc)


class HealthStatus(str, Enum):
    """Health status levels."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    """Current health record of a component."""

    model_config = ConfigDict(frozen=True)

    component_id: str = Field(..., description="Component identifier")
    status: HealthStatus = Field(..., description="Health status")
    message: str | None = Field(None, description="Status message")
    last_check: datetime = Field(
        default_factory=utc_now, description="Time of last status assignment"
    )
    metadata: dict[str, Any] | None = Field(None, description="Opaque metadata")

    def to_dict(self) -> dict[str, Any]:
        """Render as a JSON-ready mapping."""
        return self.model_dump(mode="json")


class HealthCheckResult(BaseModel):
    """Outcome reported by a component health check."""

    status: HealthStatus = Field(..., description="Reported status")
    message: str | None = Field(None, description="Status message")
    details: dict[str, Any] | None = Field(None, description="Additional details")
    timestamp: datetime = Field(default_factory=utc_now, description="Result time")


class HealthSummary(BaseModel):
    """Component counts by status."""

    total_components: int = Field(0, description="Number of components")
    healthy: int = Field(0, description="Healthy components")
    degraded: int = Field(0, description="Degraded components")
    unhealthy: int = Field(0, description="Unhealthy components")


class AggregateSnapshot(BaseModel):
    """System-wide health at a point in time."""

    model_config = ConfigDict(frozen=True)

    status: HealthStatus = Field(..., description="Overall status")
    timestamp: datetime = Field(default_factory=utc_now, description="Snapshot time")
    components: dict[str, ComponentHealth] = Field(
        default_factory=dict, description="Records by component ID"
    )
    summary: HealthSummary = Field(
        default_factory=HealthSummary, description="Counts by status"
    )


# A health check: produce a status asynchronously, or fail
HealthCheck = Callable[[], Awaitable[HealthCheckResult]]


@dataclass(eq=False)
class RegistrationEntry:
    """A registered component and its optional recurring check.

    Entries compare by identity so a result computed for one registration
    is never applied to a later registration of the same ID.
    """

    component_id: str
    check_interval: float | None = None
    check: HealthCheck | None = None
