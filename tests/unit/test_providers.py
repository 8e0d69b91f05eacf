"""Tests for health check providers."""

import pytest

from healthwatch.services.health import (
    HealthCheckMixin,
    HealthCheckProvider,
    HealthCheckResult,
    HealthMonitor,
    HealthStatus,
)


class StorageBackend(HealthCheckMixin):
    """Component with its own health check."""

    def __init__(self, monitor: HealthMonitor):
        self.component_id = "storage"
        self.health_monitor = monitor
        self.available = True

    async def perform_health_check(self) -> HealthCheckResult:
        if not self.available:
            raise IOError("volume not mounted")
        return HealthCheckResult(status=HealthStatus.HEALTHY, message="mounted")


class TrayIcon(HealthCheckMixin):
    """Component that only reports passively."""

    def __init__(self, monitor: HealthMonitor):
        self.component_id = "tray"
        self.health_monitor = monitor


class TestHealthCheckProvider:
    """Tests for the provider protocol."""

    @pytest.mark.asyncio
    async def test_protocol_matches_check_providers(self, monitor):
        """Test objects with a check satisfy the protocol."""
        assert isinstance(StorageBackend(monitor), HealthCheckProvider)
        assert not isinstance(TrayIcon(monitor), HealthCheckProvider)


class TestHealthCheckMixin:
    """Tests for HealthCheckMixin."""

    @pytest.mark.asyncio
    async def test_register_with_check(self, monitor):
        """Test providers register their check."""
        backend = StorageBackend(monitor)

        assert await backend.register_health_check() is True
        assert monitor.scheduler.is_scheduled("storage")

        backend.available = False
        snapshot = await monitor.perform_full_health_check()

        assert snapshot.components["storage"].status == HealthStatus.UNHEALTHY
        assert "volume not mounted" in snapshot.components["storage"].message

    @pytest.mark.asyncio
    async def test_passive_component(self, monitor):
        """Test passive components register without a check."""
        tray = TrayIcon(monitor)

        await tray.register_health_check()

        assert "tray" in monitor.current_health.components
        assert not monitor.scheduler.is_scheduled("tray")

    @pytest.mark.asyncio
    async def test_report_helpers(self, monitor):
        """Test reporting shortcuts."""
        tray = TrayIcon(monitor)
        await tray.register_health_check()

        await tray.report_degraded("icon missing")
        assert monitor.current_health.components["tray"].status == HealthStatus.DEGRADED

        await tray.report_unhealthy("crashed")
        assert monitor.current_health.components["tray"].status == HealthStatus.UNHEALTHY

        await tray.report_healthy()
        assert monitor.current_health.components["tray"].status == HealthStatus.HEALTHY

    @pytest.mark.asyncio
    async def test_unregister(self, monitor):
        """Test unregistering through the mixin."""
        backend = StorageBackend(monitor)
        await backend.register_health_check()

        await backend.unregister_health_check()

        assert "storage" not in monitor.current_health.components
        assert not monitor.scheduler.is_scheduled("storage")
