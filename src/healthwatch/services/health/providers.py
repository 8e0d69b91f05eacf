"""Helpers for objects that report their own health."""

from typing import Protocol, runtime_checkable

from healthwatch.services.health.monitor import HealthMonitor
from healthwatch.services.health.schemas import HealthCheckResult, HealthStatus


@runtime_checkable
class HealthCheckProvider(Protocol):
    """An object that can check its own health."""

    component_id: str

    async def perform_health_check(self) -> HealthCheckResult:
        """Produce the current status, or raise."""
        ...


class HealthCheckMixin:
    """Reporting shortcuts for classes bound to a health monitor.

    Classes using the mixin set ``component_id`` and ``health_monitor``.
    If they also define ``perform_health_check`` it is registered as the
    recurring check; otherwise the component reports passively.
    """

    component_id: str
    health_monitor: HealthMonitor

    async def register_health_check(self, check_interval: float | None = None) -> bool:
        """Register this object with its health monitor.

        Args:
            check_interval: Interval override for the recurring check (seconds)

        Returns:
            False if the component was already registered
        """
        check = getattr(self, "perform_health_check", None)
        return await self.health_monitor.register_component(
            self.component_id,
            check_interval=check_interval,
            check=check,
        )

    async def unregister_health_check(self) -> None:
        """Remove this object from health monitoring."""
        await self.health_monitor.unregister_component(self.component_id)

    async def report_healthy(self, message: str | None = None) -> None:
        """Report this component as healthy.

        Args:
            message: Optional explanation
        """
        await self.health_monitor.update_component_health(
            self.component_id, HealthStatus.HEALTHY, message
        )

    async def report_degraded(self, message: str) -> None:
        """Report this component as degraded.

        Args:
            message: What is impaired
        """
        await self.health_monitor.update_component_health(
            self.component_id, HealthStatus.DEGRADED, message
        )

    async def report_unhealthy(self, message: str) -> None:
        """Report this component as unhealthy.

        Args:
            message: What failed
        """
        await self.health_monitor.update_component_health(
            self.component_id, HealthStatus.UNHEALTHY, message
        )
