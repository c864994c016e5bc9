"""
Progress Channel - broadcasts switch progress from the orchestrator.

One channel exists per switch attempt. Subscribers attach before the first
emission and then see every event of that attempt, in order, exactly once.
The channel is closed when the attempt concludes and never replays.
"""

import asyncio
import logging
from typing import Callable, List, Optional

from models.switch import ProgressEvent
from utils.constants import SWITCH_TOTAL_STEPS

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]

_CLOSED = object()


class ProgressSubscription:
    """Async iterator over the events of one channel."""

    def __init__(self, channel: "ProgressChannel"):
        self._channel = channel
        self._queue: asyncio.Queue = asyncio.Queue()
        self._finished = False

    def _deliver(self, event: ProgressEvent) -> None:
        self._queue.put_nowait(event)

    def _close(self) -> None:
        self._queue.put_nowait(_CLOSED)

    async def get(self) -> Optional[ProgressEvent]:
        """Next event, or None once the channel is closed."""
        if self._finished:
            return None
        item = await self._queue.get()
        if item is _CLOSED:
            self._finished = True
            return None
        return item

    def __aiter__(self):
        return self

    async def __anext__(self) -> ProgressEvent:
        event = await self.get()
        if event is None:
            raise StopAsyncIteration
        return event

    def unsubscribe(self) -> None:
        self._channel._remove(self)
        self._close()


class ProgressChannel:
    """Single-producer, multi-subscriber broadcast of ProgressEvent."""

    def __init__(self, total: int = SWITCH_TOTAL_STEPS):
        self.total = total
        self.last_step = 0
        self._subscriptions: List[ProgressSubscription] = []
        self._listeners: List[ProgressCallback] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self) -> ProgressSubscription:
        """Attach an async subscriber. A closed channel yields nothing."""
        subscription = ProgressSubscription(self)
        if self._closed:
            subscription._close()
        else:
            self._subscriptions.append(subscription)
        return subscription

    def listen(self, callback: ProgressCallback) -> Callable[[], None]:
        """
        Attach a callback invoked synchronously for every event.

        Args:
            callback: Called with each ProgressEvent

        Returns:
            Function that detaches the callback
        """
        if not self._closed:
            self._listeners.append(callback)

        def unlisten():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unlisten

    def _remove(self, subscription: ProgressSubscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def publish(self, step: int, label: str) -> ProgressEvent:
        """
        Emit the event for entering ``step``.

        Steps must be contiguous and start at 1 within one channel.

        Raises:
            RuntimeError: if the channel is closed
            ValueError: if ``step`` does not follow the previous step
        """
        if self._closed:
            raise RuntimeError("Progress channel is closed")
        if step != self.last_step + 1 or step > self.total:
            raise ValueError(f"Progress step {step} does not follow step {self.last_step}")

        event = ProgressEvent(step=step, total=self.total, label=label)
        self.last_step = step
        logger.debug(f"Progress {step}/{self.total}: {label}")

        for subscription in list(self._subscriptions):
            subscription._deliver(event)
        for callback in list(self._listeners):
            try:
                callback(event)
            except Exception:
                logger.exception(f"Progress listener failed on step {step}")

        return event

    def close(self) -> None:
        """Close the channel; subscribers finish after draining their events."""
        if self._closed:
            return
        self._closed = True
        for subscription in self._subscriptions:
            subscription._close()
        self._subscriptions.clear()
        self._listeners.clear()
