"""Aggregation of component records into a system-wide verdict."""

from datetime import datetime
from typing import Mapping

from healthwatch.services.health.schemas import (
    AggregateSnapshot,
    ComponentHealth,
    HealthStatus,
    HealthSummary,
    utc_now,
)


def calculate_overall_status(records: Mapping[str, ComponentHealth]) -> HealthStatus:
    """Compute the overall status of a set of components.

    Unhealthy dominates, then any degraded component degrades the system.
    An empty set is healthy.

    Args:
        records: Current records by component ID

    Returns:
        Overall health status
    """
    statuses = {record.status for record in records.values()}

    if HealthStatus.UNHEALTHY in statuses:
        return HealthStatus.UNHEALTHY
    if HealthStatus.DEGRADED in statuses:
        return HealthStatus.DEGRADED
    return HealthStatus.HEALTHY


def summarize(records: Mapping[str, ComponentHealth]) -> HealthSummary:
    """Count components by status."""
    counts = {status: 0 for status in HealthStatus}
    for record in records.values():
        counts[record.status] += 1

    return HealthSummary(
        total_components=len(records),
        healthy=counts[HealthStatus.HEALTHY],
        degraded=counts[HealthStatus.DEGRADED],
        unhealthy=counts[HealthStatus.UNHEALTHY],
    )


def build_snapshot(
    records: Mapping[str, ComponentHealth],
    timestamp: datetime | None = None,
) -> AggregateSnapshot:
    """Project records into an aggregate snapshot.

    Args:
        records: Current records by component ID
        timestamp: Snapshot time, defaults to now

    Returns:
        The snapshot
    """
    return AggregateSnapshot(
        status=calculate_overall_status(records),
        timestamp=timestamp or utc_now(),
        components=dict(records),
        summary=summarize(records),
    )
