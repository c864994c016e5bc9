"""Unit tests for the progress channel."""

import pytest

from core.progress import ProgressChannel


class TestProgressChannelPublish:
    """Tests for event publication."""

    def test_listener_receives_events_in_order(self):
        channel = ProgressChannel(total=6)
        events = []
        channel.listen(events.append)

        channel.publish(1, "prepare")
        channel.publish(2, "system")

        assert [(e.step, e.total, e.label) for e in events] == [(1, 6, "prepare"), (2, 6, "system")]

    def test_step_must_follow_previous(self):
        channel = ProgressChannel(total=6)
        channel.publish(1, "prepare")

        with pytest.raises(ValueError):
            channel.publish(3, "vscode")
        with pytest.raises(ValueError):
            channel.publish(1, "prepare")

    def test_step_cannot_exceed_total(self):
        channel = ProgressChannel(total=1)
        channel.publish(1, "prepare")

        with pytest.raises(ValueError):
            channel.publish(2, "system")

    def test_publish_after_close_fails(self):
        channel = ProgressChannel()
        channel.close()

        with pytest.raises(RuntimeError):
            channel.publish(1, "prepare")

    def test_failing_listener_does_not_stop_others(self):
        channel = ProgressChannel()
        events = []

        def broken(event):
            raise RuntimeError("listener bug")

        channel.listen(broken)
        channel.listen(events.append)
        channel.publish(1, "prepare")

        assert len(events) == 1

    def test_unlisten(self):
        channel = ProgressChannel()
        events = []
        unlisten = channel.listen(events.append)

        channel.publish(1, "prepare")
        unlisten()
        channel.publish(2, "system")

        assert [e.step for e in events] == [1]

    def test_close_is_idempotent(self):
        channel = ProgressChannel()
        channel.close()
        channel.close()
        assert channel.closed is True


class TestProgressSubscription:
    """Tests for async subscribers."""

    @pytest.mark.asyncio
    async def test_subscriber_drains_then_stops(self):
        channel = ProgressChannel()
        subscription = channel.subscribe()

        channel.publish(1, "prepare")
        channel.publish(2, "system")
        channel.close()

        events = [event async for event in subscription]
        assert [e.label for e in events] == ["prepare", "system"]

    @pytest.mark.asyncio
    async def test_subscribe_to_closed_channel_yields_nothing(self):
        channel = ProgressChannel()
        channel.publish(1, "prepare")
        channel.close()

        subscription = channel.subscribe()

        assert await subscription.get() is None
        assert await subscription.get() is None

    @pytest.mark.asyncio
    async def test_unsubscribe_stops_delivery(self):
        channel = ProgressChannel()
        subscription = channel.subscribe()
        channel.publish(1, "prepare")
        subscription.unsubscribe()
        channel.publish(2, "system")

        events = [event async for event in subscription]
        assert [e.step for e in events] == [1]
