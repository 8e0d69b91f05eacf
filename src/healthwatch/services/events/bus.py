"""Topic-based event bus for routing health events to subscribers."""

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable
from uuid import uuid4

logger = logging.getLogger(__name__)


# Handler type: sync or async callable receiving the event payload
Handler = Callable[[Any], Awaitable[None] | None]


@dataclass
class Subscription:
    """A handler registered on a topic."""

    subscription_id: str
    topic: str
    handler: Handler
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class EventBusStats:
    """Statistics for the event bus."""

    events_published: int = 0
    events_unhandled: int = 0
    errors: int = 0
    events_by_topic: dict[str, int] = field(default_factory=dict)


class EventBus:
    """Routes topic events to subscribed handlers.

    Supports:
    - Multiple handlers per topic, run in subscription order
    - Sync and async handlers
    - Error isolation between handlers
    """

    def __init__(self):
        """Initialize event bus."""
        self._topics: dict[str, list[Subscription]] = {}
        self._subscriptions: dict[str, Subscription] = {}
        self._stats = EventBusStats()

    @property
    def stats(self) -> EventBusStats:
        """Get bus statistics."""
        return self._stats

    def subscribe(
        self,
        topic: str,
        handler: Handler,
        subscription_id: str | None = None,
    ) -> str:
        """Subscribe a handler to a topic.

        Args:
            topic: Topic name
            handler: Callable invoked with each payload
            subscription_id: Optional explicit subscription ID

        Returns:
            Subscription ID usable with unsubscribe()
        """
        subscription_id = subscription_id or str(uuid4())
        if subscription_id in self._subscriptions:
            self.unsubscribe(subscription_id)

        subscription = Subscription(
            subscription_id=subscription_id,
            topic=topic,
            handler=handler,
        )
        self._topics.setdefault(topic, []).append(subscription)
        self._subscriptions[subscription_id] = subscription

        logger.debug(
            f"Subscribed {subscription_id} to {topic} "
            f"(total={len(self._topics[topic])})"
        )
        return subscription_id

    def unsubscribe(self, subscription_id: str) -> bool:
        """Remove a subscription.

        Args:
            subscription_id: ID returned by subscribe()

        Returns:
            True if the subscription existed
        """
        subscription = self._subscriptions.pop(subscription_id, None)
        if subscription is None:
            return False

        remaining = [
            s for s in self._topics.get(subscription.topic, [])
            if s.subscription_id != subscription_id
        ]
        if remaining:
            self._topics[subscription.topic] = remaining
        else:
            self._topics.pop(subscription.topic, None)

        return True

    async def publish(self, topic: str, data: Any) -> int:
        """Publish an event to all handlers of a topic.

        Args:
            topic: Topic name
            data: Event payload

        Returns:
            Number of handlers that processed the event without error
        """
        self._stats.events_published += 1
        self._stats.events_by_topic[topic] = self._stats.events_by_topic.get(topic, 0) + 1

        # Snapshot so handlers may (un)subscribe while we iterate
        subscriptions = list(self._topics.get(topic, []))
        if not subscriptions:
            self._stats.events_unhandled += 1
            logger.debug(f"No subscribers for topic: {topic}")
            return 0

        handled = 0
        for subscription in subscriptions:
            try:
                result = subscription.handler(data)
                if inspect.isawaitable(result):
                    await result
                handled += 1
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Handler error for {topic}: {e}")
                self._stats.errors += 1

        return handled

    def get_topics(self) -> list[str]:
        """Get list of topics with subscribers."""
        return list(self._topics.keys())

    def get_subscriber_count(self, topic: str) -> int:
        """Get number of subscribers for a topic."""
        return len(self._topics.get(topic, []))

    def clear(self, topic: str | None = None) -> None:
        """Clear subscriptions.

        Args:
            topic: Specific topic to clear, or None for all
        """
        if topic:
            for subscription in self._topics.pop(topic, []):
                self._subscriptions.pop(subscription.subscription_id, None)
        else:
            self._topics.clear()
            self._subscriptions.clear()
