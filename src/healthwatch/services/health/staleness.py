"""Staleness detector - downgrades components that stopped reporting."""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable

from healthwatch.services.health.registry import ComponentRegistry
from healthwatch.services.health.schemas import ComponentHealth, HealthStatus, utc_now

logger = logging.getLogger(__name__)


class StalenessDetector:
    """Periodically sweeps the registry for silent components.

    A component whose record is older than the threshold, and which is not
    already unhealthy, is reported as degraded through ``on_stale``. Each
    tick ends with ``on_tick`` so the aggregate is republished even when
    nothing changed.
    """

    def __init__(
        self,
        registry: ComponentRegistry,
        on_stale: Callable[[ComponentHealth, HealthStatus, str], Awaitable[bool]],
        on_tick: Callable[[], Awaitable[Any]] | None = None,
        interval: float = 10.0,
        threshold: float = 30.0,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize detector.

        Args:
            registry: Registry to sweep
            on_stale: Coroutine called with (observed record, status, message);
                returns False when the record changed in the meantime
            on_tick: Coroutine called after every sweep
            interval: Sweep period (seconds)
            threshold: Silence after which a component is stale (seconds)
            clock: Source of the current time
        """
        self.registry = registry
        self.on_stale = on_stale
        self.on_tick = on_tick
        self.interval = interval
        self.threshold = threshold
        self.clock = clock
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        """Check if the sweep loop is running."""
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the sweep loop."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._sweep_loop(), name="health-staleness")

    async def stop(self) -> None:
        """Stop the sweep loop."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    async def sweep(self) -> list[str]:
        """Downgrade every stale component once.

        Returns:
            IDs of components that were downgraded
        """
        now = self.clock()
        stale: list[str] = []

        for component_id, record in self.registry.snapshot().items():
            elapsed = (now - record.last_check).total_seconds()
            if elapsed <= self.threshold or record.status == HealthStatus.UNHEALTHY:
                continue

            applied = await self.on_stale(
                record,
                HealthStatus.DEGRADED,
                f"No health update for {int(elapsed)} seconds",
            )
            if applied:
                stale.append(component_id)

        if stale:
            logger.info(f"Stale components: {', '.join(stale)}")
        return stale

    async def _sweep_loop(self) -> None:
        while True:
            try:
                await asyncio.sleep(self.interval)
                await self.sweep()
                if self.on_tick:
                    await self.on_tick()
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Staleness sweep error")
