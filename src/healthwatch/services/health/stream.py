"""Broadcast stream of aggregate health snapshots."""

import asyncio
import logging
from uuid import uuid4

from healthwatch.services.health.exceptions import StreamClosedError
from healthwatch.services.health.schemas import AggregateSnapshot

logger = logging.getLogger(__name__)

_CLOSED = object()


def _check_maxsize(maxsize: int) -> None:
    if maxsize < 1:
        raise ValueError(f"Stream buffer size must be at least 1, got {maxsize}")


class HealthSubscription:
    """One observer of a health stream.

    Buffers at most ``maxsize`` snapshots. When the buffer is full the
    oldest snapshot is discarded, so a slow observer never blocks the
    publisher.
    """

    def __init__(self, stream: "HealthStream", maxsize: int):
        self.subscription_id = str(uuid4())
        self.dropped = 0
        self._stream = stream
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize=maxsize + 1)
        self._maxsize = maxsize
        self._closed = False

    @property
    def closed(self) -> bool:
        """Check if the subscription has ended."""
        return self._closed

    @property
    def pending(self) -> int:
        """Number of buffered snapshots."""
        return self._queue.qsize()

    def _push(self, item: object) -> None:
        # One slot is reserved for the close marker
        if item is not _CLOSED:
            while self._queue.qsize() >= self._maxsize:
                self._queue.get_nowait()
                self.dropped += 1
        self._queue.put_nowait(item)

    def _end(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._push(_CLOSED)

    async def get(self) -> AggregateSnapshot | None:
        """Wait for the next snapshot.

        Returns:
            The snapshot, or None once the stream is closed
        """
        if self._closed and self._queue.empty():
            return None
        item = await self._queue.get()
        if item is _CLOSED:
            return None
        return item  # type: ignore[return-value]

    def close(self) -> None:
        """Stop receiving snapshots."""
        self._stream._remove(self)
        self._end()

    def __aiter__(self) -> "HealthSubscription":
        return self

    async def __anext__(self) -> AggregateSnapshot:
        snapshot = await self.get()
        if snapshot is None:
            raise StopAsyncIteration
        return snapshot


class HealthStream:
    """Fans out snapshots to current observers, without replay."""

    def __init__(self, maxsize: int = 100):
        """Initialize stream.

        Args:
            maxsize: Per-observer buffer size

        Raises:
            ValueError: If maxsize is below 1
        """
        _check_maxsize(maxsize)
        self.maxsize = maxsize
        self._subscriptions: dict[str, HealthSubscription] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        """Check if the stream is closed."""
        return self._closed

    @property
    def subscriber_count(self) -> int:
        """Number of current observers."""
        return len(self._subscriptions)

    def subscribe(self, maxsize: int | None = None) -> HealthSubscription:
        """Register a new observer.

        Args:
            maxsize: Buffer size override for this observer

        Returns:
            The subscription

        Raises:
            StreamClosedError: If the stream has been closed
            ValueError: If maxsize is below 1
        """
        if self._closed:
            raise StreamClosedError("Health stream is closed")
        if maxsize is None:
            maxsize = self.maxsize
        _check_maxsize(maxsize)

        subscription = HealthSubscription(self, maxsize)
        self._subscriptions[subscription.subscription_id] = subscription
        logger.debug(f"Health stream observer added. Active: {self.subscriber_count}")
        return subscription

    def publish(self, snapshot: AggregateSnapshot) -> int:
        """Deliver a snapshot to every current observer.

        Args:
            snapshot: Snapshot to deliver

        Returns:
            Number of observers it was delivered to
        """
        if self._closed:
            return 0

        subscriptions = list(self._subscriptions.values())
        for subscription in subscriptions:
            subscription._push(snapshot)
        return len(subscriptions)

    def close(self) -> None:
        """End the stream for all observers. Safe to call repeatedly."""
        if self._closed:
            return
        self._closed = True

        subscriptions = list(self._subscriptions.values())
        self._subscriptions.clear()
        for subscription in subscriptions:
            subscription._end()

        logger.debug(f"Health stream closed ({len(subscriptions)} observers)")

    def _remove(self, subscription: HealthSubscription) -> None:
        self._subscriptions.pop(subscription.subscription_id, None)
