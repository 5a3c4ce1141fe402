"""Bounded mailbox feeding events to the activation controller"""

import asyncio
import logging
import concurrent.futures
from concurrent.futures import Future
from typing import NamedTuple, Optional, Union

from .constants import CLIENT_REQUEST_CAP

logger = logging.getLogger(__name__)


class Trigger:
    """Overlay was requested"""

    def __repr__(self):
        return "Trigger()"


class UserSelected(NamedTuple):
    """User picked a window in the overlay"""
    window_id: int


class UserCancelled:
    """User dismissed the overlay without picking"""

    def __repr__(self):
        return "UserCancelled()"


Event = Union[Trigger, UserSelected, UserCancelled]


class ChannelFull(Exception):
    """Mailbox has no free slot"""


class TriggerChannel:
    """FIFO mailbox with a fixed number of slots

    Events are delivered in arrival order and never merged. Senders either
    wait for a free slot (send) or get ChannelFull back (try_send), so a
    burst of requests queues up to the capacity and is refused beyond it.
    """

    def __init__(self, capacity: int = CLIENT_REQUEST_CAP):
        if capacity < 1:
            raise ValueError("Channel capacity must be at least 1")
        self.capacity = capacity
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self._queue = asyncio.Queue(maxsize=capacity)

    def __len__(self) -> int:
        return self._queue.qsize()

    def attach(self, loop: asyncio.AbstractEventLoop):
        """Bind the channel to the loop that consumes it

        Args:
            loop: Event loop running the consumer
        """
        self.loop = loop

    def try_send(self, event: Event):
        """Enqueue without waiting

        Raises:
            ChannelFull: If all slots are taken
        """
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(f"Channel full ({self.capacity} pending), refusing {event!r}")
            raise ChannelFull(f"{self.capacity} requests already pending") from None

    async def send(self, event: Event):
        """Enqueue, waiting for a free slot if needed"""
        await self._queue.put(event)

    async def _try_send(self, event: Event):
        self.try_send(event)

    def send_threadsafe(self, event: Event, wait: bool = False, timeout: Optional[float] = None) -> Future:
        """Enqueue from a thread other than the consumer's

        Args:
            event: Event to deliver
            wait: If True, wait on the loop for a free slot instead of
                failing when the channel is full
            timeout: How long to wait for the loop to accept the event
                (only used when wait is False). On expiry the pending send
                is cancelled, so a timed-out event is never queued later

        Returns:
            Future that completes once the event is queued

        Raises:
            ChannelFull: If wait is False and all slots are taken
            TimeoutError: If the loop did not take the event in time
            RuntimeError: If no consumer loop is attached
        """
        if self.loop is None or self.loop.is_closed():
            raise RuntimeError("Channel has no running consumer")

        if wait:
            return asyncio.run_coroutine_threadsafe(self.send(event), self.loop)

        future = asyncio.run_coroutine_threadsafe(self._try_send(event), self.loop)
        try:
            future.result(timeout)
        except concurrent.futures.TimeoutError:
            if future.cancel():
                logger.warning(f"Consumer loop busy, dropped {event!r} after {timeout}s")
                raise
            # Already picked up by the loop, the outcome is final now
            future.result()
        return future

    async def receive(self) -> Event:
        """Wait for the next event"""
        event = await self._queue.get()
        self._queue.task_done()
        return event
