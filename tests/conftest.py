"""Pytest configuration and fixtures."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from healthwatch.services.events import EventBus
from healthwatch.services.health import HealthMonitor


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2025, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class EventRecorder:
    """Collects payloads published on a topic."""

    def __init__(self, bus: EventBus, topic: str):
        self.events: list[dict] = []
        bus.subscribe(topic, self.events.append)

    def __len__(self) -> int:
        return len(self.events)

    @property
    def last(self) -> dict:
        return self.events[-1]


@pytest.fixture
def clock():
    """Create fake clock."""
    return FakeClock()


@pytest.fixture
def event_bus():
    """Create fresh event bus."""
    return EventBus()


@pytest.fixture
def recorder(event_bus):
    """Create event recorders on the test event bus."""

    def make(topic: str) -> EventRecorder:
        return EventRecorder(event_bus, topic)

    return make


@pytest_asyncio.fixture
async def monitor(event_bus, clock):
    """Create initialized health monitor driven by the fake clock."""
    health_monitor = HealthMonitor(
        event_bus=event_bus,
        check_interval=10.0,
        component_timeout=0.2,
        clock=clock,
    )
    await health_monitor.initialize()
    yield health_monitor
    # Leaked check tasks fail the test instead of hanging the run
    async with asyncio.timeout(5):
        await health_monitor.dispose()


@pytest.fixture(scope="function")
def settings():
    """Create settings instance for testing."""
    from healthwatch.core.config import Settings

    return Settings(environment="testing")


@pytest.fixture
def app():
    """Create FastAPI application for testing."""
    from healthwatch.main import create_app

    return create_app()


@pytest.fixture
def client(app):
    """Create test client with the application lifespan running."""
    with TestClient(app) as client:
        yield client
