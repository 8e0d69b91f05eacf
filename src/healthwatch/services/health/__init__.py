"""Component health monitoring module."""

from healthwatch.services.health.aggregator import (
    build_snapshot,
    calculate_overall_status,
    summarize,
)
from healthwatch.services.health.exceptions import HealthwatchError, StreamClosedError
from healthwatch.services.health.monitor import (
    COMPONENT_CHANGED_TOPIC,
    COMPONENT_RECOVERED_TOPIC,
    ERROR_OCCURRED_TOPIC,
    OVERALL_UPDATED_TOPIC,
    HealthMonitor,
)
from healthwatch.services.health.providers import HealthCheckMixin, HealthCheckProvider
from healthwatch.services.health.registry import ComponentRegistry
from healthwatch.services.health.scheduler import CheckScheduler
from healthwatch.services.health.schemas import (
    AggregateSnapshot,
    ComponentHealth,
    HealthCheck,
    HealthCheckResult,
    HealthStatus,
    HealthSummary,
    RegistrationEntry,
)
from healthwatch.services.health.staleness import StalenessDetector
from healthwatch.services.health.stream import HealthStream, HealthSubscription

__all__ = [
    "AggregateSnapshot",
    "COMPONENT_CHANGED_TOPIC",
    "COMPONENT_RECOVERED_TOPIC",
    "CheckScheduler",
    "ComponentHealth",
    "ComponentRegistry",
    "ERROR_OCCURRED_TOPIC",
    "HealthCheck",
    "HealthCheckMixin",
    "HealthCheckProvider",
    "HealthCheckResult",
    "HealthMonitor",
    "HealthStatus",
    "HealthStream",
    "HealthSubscription",
    "HealthSummary",
    "HealthwatchError",
    "OVERALL_UPDATED_TOPIC",
    "RegistrationEntry",
    "StalenessDetector",
    "StreamClosedError",
    "build_snapshot",
    "calculate_overall_status",
    "summarize",
]
