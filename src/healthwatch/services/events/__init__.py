"""Event bus module."""

from healthwatch.services.events.bus import (
    EventBus,
    EventBusStats,
    Handler,
    Subscription,
)

__all__ = [
    "EventBus",
    "EventBusStats",
    "Handler",
    "Subscription",
]
