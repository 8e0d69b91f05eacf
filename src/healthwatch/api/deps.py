"""Shared API dependencies."""

from fastapi import Request

from healthwatch.services.health import HealthMonitor


def get_health_monitor(request: Request) -> HealthMonitor:
    """Get the health monitor owned by the application."""
    return request.app.state.health_monitor
