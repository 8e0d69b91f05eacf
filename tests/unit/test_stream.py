"""Tests for the health broadcast stream."""

import asyncio

import pytest

from healthwatch.services.health import (
    AggregateSnapshot,
    HealthStatus,
    HealthStream,
    StreamClosedError,
)


def snapshot(status: HealthStatus = HealthStatus.HEALTHY) -> AggregateSnapshot:
    """Create a snapshot."""
    return AggregateSnapshot(status=status)


class TestHealthStream:
    """Tests for HealthStream."""

    @pytest.mark.asyncio
    async def test_delivers_to_all_observers(self):
        """Test every current observer receives a snapshot."""
        stream = HealthStream()
        first = stream.subscribe()
        second = stream.subscribe()

        delivered = stream.publish(snapshot(HealthStatus.DEGRADED))

        assert delivered == 2
        assert (await first.get()).status == HealthStatus.DEGRADED
        assert (await second.get()).status == HealthStatus.DEGRADED

    @pytest.mark.asyncio
    async def test_no_replay_for_late_observers(self):
        """Test observers joining later miss earlier snapshots."""
        stream = HealthStream()
        stream.publish(snapshot(HealthStatus.UNHEALTHY))

        late = stream.subscribe()
        stream.publish(snapshot(HealthStatus.HEALTHY))

        assert late.pending == 1
        assert (await late.get()).status == HealthStatus.HEALTHY

    def test_publish_without_observers(self):
        """Test publishing with no observers."""
        assert HealthStream().publish(snapshot()) == 0

    @pytest.mark.asyncio
    async def test_slow_observer_drops_oldest(self):
        """Test a full buffer drops the oldest snapshot instead of blocking."""
        stream = HealthStream(maxsize=2)
        slow = stream.subscribe()

        stream.publish(snapshot(HealthStatus.HEALTHY))
        stream.publish(snapshot(HealthStatus.DEGRADED))
        stream.publish(snapshot(HealthStatus.UNHEALTHY))

        assert slow.dropped == 1
        assert slow.pending == 2
        assert (await slow.get()).status == HealthStatus.DEGRADED
        assert (await slow.get()).status == HealthStatus.UNHEALTHY

    @pytest.mark.asyncio
    async def test_subscription_buffer_override(self):
        """Test per-observer buffer size."""
        stream = HealthStream(maxsize=10)
        subscription = stream.subscribe(maxsize=1)

        stream.publish(snapshot(HealthStatus.HEALTHY))
        stream.publish(snapshot(HealthStatus.DEGRADED))

        assert subscription.pending == 1
        assert (await subscription.get()).status == HealthStatus.DEGRADED

    @pytest.mark.asyncio
    async def test_async_iteration_ends_on_close(self):
        """Test iteration yields snapshots then stops when closed."""
        stream = HealthStream()
        subscription = stream.subscribe()
        stream.publish(snapshot(HealthStatus.HEALTHY))
        stream.publish(snapshot(HealthStatus.DEGRADED))
        stream.close()

        received = [s.status async for s in subscription]

        assert received == [HealthStatus.HEALTHY, HealthStatus.DEGRADED]

    @pytest.mark.asyncio
    async def test_close_wakes_waiting_observer(self):
        """Test a blocked observer is released by close."""
        stream = HealthStream()
        subscription = stream.subscribe()

        waiter = asyncio.create_task(subscription.get())
        await asyncio.sleep(0)
        stream.close()

        assert await asyncio.wait_for(waiter, timeout=1) is None

    def test_subscribe_after_close_fails(self):
        """Test subscribing to a closed stream raises."""
        stream = HealthStream()
        stream.close()

        with pytest.raises(StreamClosedError):
            stream.subscribe()

    @pytest.mark.parametrize("maxsize", [0, -1])
    def test_invalid_buffer_size_rejected(self, maxsize):
        """Test streams need room for at least one snapshot."""
        with pytest.raises(ValueError):
            HealthStream(maxsize=maxsize)

    def test_invalid_subscription_buffer_rejected(self):
        """Test per-observer buffer overrides are validated."""
        stream = HealthStream()

        with pytest.raises(ValueError):
            stream.subscribe(maxsize=0)
        assert stream.subscriber_count == 0

    def test_close_is_idempotent(self):
        """Test closing twice is safe."""
        stream = HealthStream()
        stream.subscribe()

        stream.close()
        stream.close()

        assert stream.closed is True
        assert stream.subscriber_count == 0
        assert stream.publish(snapshot()) == 0

    @pytest.mark.asyncio
    async def test_subscription_close(self):
        """Test an observer can leave the stream."""
        stream = HealthStream()
        subscription = stream.subscribe()

        subscription.close()
        stream.publish(snapshot())

        assert stream.subscriber_count == 0
        assert subscription.closed is True
        assert await subscription.get() is None
