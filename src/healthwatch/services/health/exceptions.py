"""Health monitoring exceptions."""


class HealthwatchError(Exception):
    """Base exception for the health monitoring core."""


class StreamClosedError(HealthwatchError):
    """Raised when subscribing to a closed health stream."""
