"""Check scheduler - runs component health checks at their intervals.

Each registration that supplies a check gets its own asyncio task, so a
slow check for one component never delays another. Every run is bounded
by a timeout, and failures are converted into unhealthy results instead
of propagating.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable

from healthwatch.services.health.schemas import (
    HealthCheckResult,
    HealthStatus,
    RegistrationEntry,
)

logger = logging.getLogger(__name__)


# Receives the entry a check ran for and its (possibly synthesized) result
ResultHandler = Callable[[RegistrationEntry, HealthCheckResult], Awaitable[Any]]


class CheckScheduler:
    """Schedules and executes recurring component health checks."""

    def __init__(
        self,
        on_result: ResultHandler,
        default_interval: float = 10.0,
        timeout: float = 5.0,
    ):
        """Initialize scheduler.

        Args:
            on_result: Coroutine called with every check result
            default_interval: Interval for entries without an override (seconds)
            timeout: Maximum duration of a single check (seconds)
        """
        self.on_result = on_result
        self.default_interval = default_interval
        self.timeout = timeout
        self._tasks: dict[str, asyncio.Task[None]] = {}

    @property
    def scheduled_count(self) -> int:
        """Number of components with a recurring check."""
        return len(self._tasks)

    def is_scheduled(self, component_id: str) -> bool:
        """Check if a component has a recurring check."""
        return component_id in self._tasks

    def start(self, entry: RegistrationEntry) -> bool:
        """Start the recurring check of an entry.

        Args:
            entry: Registration with a check callback

        Returns:
            False if the entry has no check
        """
        if entry.check is None:
            return False

        self.cancel(entry.component_id)
        interval = entry.check_interval or self.default_interval
        self._tasks[entry.component_id] = asyncio.create_task(
            self._check_loop(entry, interval),
            name=f"health-check-{entry.component_id}",
        )

        logger.debug(f"Scheduled check for {entry.component_id} every {interval}s")
        return True

    def cancel(self, component_id: str) -> bool:
        """Stop the recurring check of a component.

        Args:
            component_id: Component whose check to stop

        Returns:
            True if a check was scheduled
        """
        task = self._tasks.pop(component_id, None)
        if task is None:
            return False
        task.cancel()
        return True

    async def stop(self) -> None:
        """Stop all recurring checks."""
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.debug(f"Check scheduler stopped ({len(tasks)} checks cancelled)")

    async def run_check(self, entry: RegistrationEntry) -> HealthCheckResult:
        """Run one check of an entry, bounded by the timeout.

        Args:
            entry: Registration with a check callback

        Returns:
            The reported result, or an unhealthy result on error or timeout
        """
        if entry.check is None:
            raise ValueError(f"Component {entry.component_id} has no health check")

        try:
            async with asyncio.timeout(self.timeout):
                result = await entry.check()
        except TimeoutError:
            logger.warning(
                f"Health check for {entry.component_id} timed out after {self.timeout}s"
            )
            return HealthCheckResult(
                status=HealthStatus.UNHEALTHY,
                message=f"Health check timed out after {self.timeout}s",
                details={"error": "timeout", "timeout_seconds": self.timeout},
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Health check for {entry.component_id} failed: {e}")
            return HealthCheckResult(
                status=HealthStatus.UNHEALTHY,
                message=f"Health check failed: {e}",
                details={"error": str(e)},
            )

        if not isinstance(result, HealthCheckResult):
            return HealthCheckResult(
                status=HealthStatus.UNHEALTHY,
                message=f"Health check returned {type(result).__name__}",
                details={"error": "invalid result"},
            )
        return result

    async def _check_loop(self, entry: RegistrationEntry, interval: float) -> None:
        """Persistent loop that runs a single check at its interval.

        Ends as soon as the task is no longer the scheduled one for its
        component, even if a cancellation was absorbed by the check.
        """
        while self._is_current(entry.component_id):
            try:
                await asyncio.sleep(interval)
                result = await self.run_check(entry)
                if not self._is_current(entry.component_id):
                    break
                await self.on_result(entry, result)

                logger.debug(f"Check {entry.component_id}: {result.status.value}")
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception(f"Health check loop error: {entry.component_id}")

    def _is_current(self, component_id: str) -> bool:
        return self._tasks.get(component_id) is asyncio.current_task()
