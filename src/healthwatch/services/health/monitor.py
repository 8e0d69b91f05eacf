"""Health monitor - tracks component health and publishes the aggregate.

The monitor owns a component registry, a check scheduler, a staleness
detector and a broadcast stream. Every change to the registry is
re-aggregated, pushed to stream observers and published on the event bus
as ``health.overall.updated``. Status transitions of single components are
published as ``health.component.changed``.

Failures of collaborators (check callbacks, event handlers) are turned
into health data or logged; they never propagate to the caller.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Mapping

from healthwatch.core.config import Settings
from healthwatch.services.events import EventBus
from healthwatch.services.health.aggregator import (
    build_snapshot,
    calculate_overall_status,
)
from healthwatch.services.health.registry import ComponentRegistry
from healthwatch.services.health.scheduler import CheckScheduler
from healthwatch.services.health.schemas import (
    AggregateSnapshot,
    ComponentHealth,
    HealthCheck,
    HealthCheckResult,
    HealthStatus,
    RegistrationEntry,
    utc_now,
)
from healthwatch.services.health.staleness import StalenessDetector
from healthwatch.services.health.stream import HealthStream

logger = logging.getLogger(__name__)

# Outbound topics
COMPONENT_CHANGED_TOPIC = "health.component.changed"
OVERALL_UPDATED_TOPIC = "health.overall.updated"

# Inbound topics
ERROR_OCCURRED_TOPIC = "error.occurred"
COMPONENT_RECOVERED_TOPIC = "component.recovered"


class HealthMonitor:
    """Process-level health monitoring engine."""

    def __init__(
        self,
        event_bus: EventBus | None = None,
        check_interval: float = 10.0,
        component_timeout: float = 5.0,
        staleness_multiplier: float = 3.0,
        stream_queue_size: int = 100,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize monitor in the inactive state.

        Args:
            event_bus: Bus to publish to and subscribe on
            check_interval: Default check interval and sweep period (seconds)
            component_timeout: Timeout of a single component check (seconds)
            staleness_multiplier: Check intervals of silence before a component is stale
            stream_queue_size: Per-observer buffer of the health stream
            clock: Source of the current time

        Raises:
            ValueError: If stream_queue_size is below 1
        """
        self.event_bus = event_bus
        self.clock = clock
        self.staleness_multiplier = staleness_multiplier
        self.stream_queue_size = stream_queue_size

        self.registry = ComponentRegistry()
        self.scheduler = CheckScheduler(
            on_result=self._apply_check_result,
            default_interval=check_interval,
            timeout=component_timeout,
        )
        self.staleness_detector = StalenessDetector(
            registry=self.registry,
            on_stale=self._mark_stale,
            on_tick=self._emit_health_update,
            interval=check_interval,
            threshold=check_interval * staleness_multiplier,
            clock=clock,
        )

        self._stream = HealthStream(maxsize=stream_queue_size)
        self._subscription_ids: list[str] = []
        self._active = False

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        event_bus: EventBus | None = None,
    ) -> "HealthMonitor":
        """Build a monitor from application settings."""
        return cls(
            event_bus=event_bus,
            check_interval=settings.check_interval_seconds,
            component_timeout=settings.component_timeout_seconds,
            staleness_multiplier=settings.staleness_multiplier,
            stream_queue_size=settings.stream_queue_size,
        )

    # -- State -------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        """Check if the monitor has been initialized."""
        return self._active

    @property
    def check_interval(self) -> float:
        """Default check interval (seconds)."""
        return self.scheduler.default_interval

    @property
    def component_timeout(self) -> float:
        """Timeout of a single component check (seconds)."""
        return self.scheduler.timeout

    @property
    def health_stream(self) -> HealthStream:
        """Broadcast stream of aggregate snapshots."""
        return self._stream

    @property
    def current_health(self) -> AggregateSnapshot:
        """Aggregate snapshot of the current registry."""
        return build_snapshot(self.registry.snapshot(), self.clock())

    def is_healthy(self) -> bool:
        """Check if the overall status is healthy."""
        return calculate_overall_status(self.registry.snapshot()) == HealthStatus.HEALTHY

    def get_component_history(
        self,
        component_id: str,
        limit: int = 100,
    ) -> list[ComponentHealth]:
        """Get recorded health of a component.

        Only the current record is kept, so at most one entry is returned.

        Args:
            component_id: Component to look up
            limit: Maximum number of entries

        Returns:
            List with the current record, or empty
        """
        current = self.registry.get(component_id)
        if current is None or limit < 1:
            return []
        return [current]

    # -- Lifecycle ---------------------------------------------------------

    async def initialize(
        self,
        check_interval: float | None = None,
        component_timeout: float | None = None,
    ) -> None:
        """Activate the monitor.

        Starts the staleness sweep and the inbound event subscriptions.
        Calling it on an active monitor only logs a warning.

        Args:
            check_interval: Override of the default check interval (seconds)
            component_timeout: Override of the check timeout (seconds)
        """
        if self._active:
            logger.warning("Health monitor already initialized")
            return

        if check_interval is not None:
            self.scheduler.default_interval = check_interval
            self.staleness_detector.interval = check_interval
        if component_timeout is not None:
            self.scheduler.timeout = component_timeout
        self.staleness_detector.threshold = self.check_interval * self.staleness_multiplier

        if self._stream.closed:
            self._stream = HealthStream(maxsize=self.stream_queue_size)

        self._active = True
        self.staleness_detector.start()
        self._subscribe_to_events()

        logger.info(
            f"Health monitor initialized with check interval: {self.check_interval}s, "
            f"component timeout: {self.component_timeout}s"
        )

    async def dispose(self) -> None:
        """Deactivate the monitor and release everything it holds.

        Cancels all checks and the staleness sweep, clears the registry,
        drops event subscriptions and closes the health stream. Safe to call
        repeatedly.
        """
        self._active = False

        await self.staleness_detector.stop()
        await self.scheduler.stop()
        await self.registry.clear()

        if self.event_bus is not None:
            for subscription_id in self._subscription_ids:
                self.event_bus.unsubscribe(subscription_id)
        self._subscription_ids.clear()

        self._stream.close()
        logger.info("Health monitor disposed")

    async def __aenter__(self) -> "HealthMonitor":
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.dispose()

    # -- Registration ------------------------------------------------------

    async def register_component(
        self,
        component_id: str,
        check_interval: float | None = None,
        check: HealthCheck | None = None,
    ) -> bool:
        """Register a component for health monitoring.

        Args:
            component_id: Unique component identifier
            check_interval: Interval override for the recurring check (seconds)
            check: Optional async health check run at the interval

        Returns:
            False if the component was already registered
        """
        entry = RegistrationEntry(
            component_id=component_id,
            check_interval=check_interval,
            check=check,
        )
        record = ComponentHealth(
            component_id=component_id,
            status=HealthStatus.HEALTHY,
            message="Component registered",
            last_check=self.clock(),
        )

        if not await self.registry.register(entry, record):
            logger.warning(f"Component already registered: {component_id}")
            return False

        self.scheduler.start(entry)

        logger.debug(f"Registered component for health monitoring: {component_id}")
        await self._emit_health_update()
        return True

    async def unregister_component(self, component_id: str) -> None:
        """Remove a component from health monitoring.

        Args:
            component_id: Component to remove
        """
        await self.registry.unregister(component_id)
        self.scheduler.cancel(component_id)

        logger.debug(f"Unregistered component from health monitoring: {component_id}")
        await self._emit_health_update()

    # -- Updates -----------------------------------------------------------

    async def update_component_health(
        self,
        component_id: str,
        status: HealthStatus | str,
        message: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Record the health of a component.

        Unknown components are created.

        Args:
            component_id: Component identifier
            status: New status
            message: Optional explanation
            metadata: Optional opaque metadata
        """
        await self._apply_update(component_id, HealthStatus(status), message, metadata)

    async def perform_full_health_check(self) -> AggregateSnapshot:
        """Run every registered check now and wait for all of them.

        Returns:
            Snapshot taken after all checks completed
        """
        entries = [e for e in self.registry.entries() if e.check is not None]
        if entries:
            await asyncio.gather(*(self._run_and_apply(e) for e in entries))
        return self.current_health

    async def _run_and_apply(self, entry: RegistrationEntry) -> None:
        result = await self.scheduler.run_check(entry)
        await self._apply_check_result(entry, result)

    async def _apply_check_result(
        self,
        entry: RegistrationEntry,
        result: HealthCheckResult,
    ) -> None:
        applied = await self._apply_update(
            entry.component_id,
            result.status,
            result.message,
            result.details,
            expected_entry=entry,
        )
        if not applied:
            logger.debug(f"Dropped check result for unregistered component: {entry.component_id}")

    async def _mark_stale(
        self,
        observed: ComponentHealth,
        status: HealthStatus,
        message: str,
    ) -> bool:
        return await self._apply_update(
            observed.component_id, status, message, expected_record=observed
        )

    async def _apply_update(
        self,
        component_id: str,
        status: HealthStatus,
        message: str | None,
        metadata: dict[str, Any] | None = None,
        expected_entry: RegistrationEntry | None = None,
        expected_record: ComponentHealth | None = None,
    ) -> bool:
        record = ComponentHealth(
            component_id=component_id,
            status=status,
            message=message,
            last_check=self.clock(),
            metadata=metadata,
        )
        stored, previous = await self.registry.put(
            record,
            expected_entry=expected_entry,
            expected_record=expected_record,
        )
        if not stored:
            return False

        previous_status = previous.status if previous else None
        if previous_status != status:
            logger.info(
                f"Component {component_id} health changed: "
                f"{previous_status.value if previous_status else None} -> {status.value}"
            )
            await self._publish(
                COMPONENT_CHANGED_TOPIC,
                {
                    "componentId": component_id,
                    "previousStatus": previous_status.value if previous_status else None,
                    "newStatus": status.value,
                    "message": message,
                },
            )

        await self._emit_health_update()
        return True

    # -- Publishing --------------------------------------------------------

    async def _emit_health_update(self) -> None:
        if not self._active:
            return

        snapshot = self.current_health
        self._stream.publish(snapshot)

        await self._publish(
            OVERALL_UPDATED_TOPIC,
            {
                "status": snapshot.status.value,
                "timestamp": snapshot.timestamp.isoformat(),
                "summary": snapshot.summary.model_dump(),
            },
        )

    async def _publish(self, topic: str, data: dict[str, Any]) -> None:
        if self.event_bus is None:
            return
        try:
            await self.event_bus.publish(topic, data)
        except Exception as e:
            logger.error(f"Failed to publish {topic}: {e}")

    # -- Inbound events ----------------------------------------------------

    def _subscribe_to_events(self) -> None:
        if self.event_bus is None:
            return
        self._subscription_ids = [
            self.event_bus.subscribe(ERROR_OCCURRED_TOPIC, self._on_error_occurred),
            self.event_bus.subscribe(COMPONENT_RECOVERED_TOPIC, self._on_component_recovered),
        ]

    def _known_component(self, data: Any) -> str | None:
        if not isinstance(data, Mapping):
            return None
        component_id = data.get("componentId")
        if not component_id or component_id not in self.registry:
            logger.debug(f"Ignoring event for unknown component: {component_id}")
            return None
        return component_id

    async def _on_error_occurred(self, data: Any) -> None:
        component_id = self._known_component(data)
        if component_id is None:
            return
        await self.update_component_health(
            component_id,
            HealthStatus.UNHEALTHY,
            f"Error: {data.get('error')}",
            metadata=dict(data),
        )

    async def _on_component_recovered(self, data: Any) -> None:
        component_id = self._known_component(data)
        if component_id is None:
            return
        await self.update_component_health(
            component_id,
            HealthStatus.HEALTHY,
            "Component recovered",
            metadata=dict(data),
        )
