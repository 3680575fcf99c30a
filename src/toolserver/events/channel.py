"""Single-consumer event channel with heartbeat and deterministic teardown."""
import asyncio
import uuid
from collections.abc import AsyncIterator

import structlog

from toolserver.events.types import ChannelEvent, ChannelState

logger = structlog.get_logger()

# End-of-stream marker placed on the queue by close().
_END_OF_STREAM = None


class EventChannel:
    """Outbound event stream for one connection.

    Producers (the heartbeat task, scheduled one-shot events, or any
    external trigger) only ever enqueue through push(); a single drain
    loop in events() hands events to the transport. push() checks
    liveness and enqueues without suspending, so nothing is enqueued
    once close() has run, even if a timer fires concurrently with it.

    Attributes:
        id: Channel identifier used in logs.
    """

    def __init__(
        self,
        channel_id: str | None = None,
        heartbeat_interval: float = 30.0,
        queue_size: int = 100,
    ) -> None:
        """Initialize channel in the INIT state.

        Args:
            channel_id: Identifier, generated when omitted.
            heartbeat_interval: Seconds between heartbeat events.
            queue_size: Maximum pending events before the oldest is dropped.
        """
        self.id = channel_id or str(uuid.uuid4())
        self._heartbeat_interval = heartbeat_interval
        self._queue: asyncio.Queue[ChannelEvent | None] = asyncio.Queue(
            maxsize=queue_size,
        )
        self._state = ChannelState.INIT
        self._heartbeat_task: asyncio.Task[None] | None = None
        self._pending: set[asyncio.Task[None]] = set()
        self._cancelled: list[asyncio.Task[None]] = []
        self._dropped_count = 0

    @property
    def state(self) -> ChannelState:
        """Current lifecycle state."""
        return self._state

    @property
    def is_open(self) -> bool:
        """Whether events are still accepted."""
        return self._state is ChannelState.OPEN

    @property
    def dropped_events(self) -> int:
        """Number of events discarded because the queue was full."""
        return self._dropped_count

    @property
    def active_timers(self) -> int:
        """Number of heartbeat and scheduled tasks still running."""
        return sum(1 for task in self._timers() if not task.done())

    def open(self) -> None:
        """Emit the connect event and start the heartbeat.

        Must be called from a running event loop.

        Raises:
            RuntimeError: If the channel was already opened or closed.
        """
        if self._state is not ChannelState.INIT:
            raise RuntimeError(f"Channel {self.id} cannot be opened from {self._state.value}")

        self._state = ChannelState.OPEN
        self.push(ChannelEvent.connected())
        self._heartbeat_task = asyncio.create_task(
            self._heartbeat_loop(),
            name=f"sse-heartbeat-{self.id}",
        )
        logger.debug(
            "sse_channel_opened",
            channel_id=self.id,
            heartbeat_interval=self._heartbeat_interval,
        )

    def push(self, event: ChannelEvent) -> bool:
        """Enqueue an event if the channel is open.

        Args:
            event: Event to deliver.

        Returns:
            True if enqueued, False if the channel is not open.
        """
        if self._state is not ChannelState.OPEN:
            logger.debug(
                "sse_push_rejected",
                channel_id=self.id,
                event_type=event.event.value,
                state=self._state.value,
            )
            return False

        self._enqueue(event)
        return True

    def schedule(self, event: ChannelEvent, delay: float) -> asyncio.Task[None] | None:
        """Push an event once after a delay.

        Args:
            event: Event to deliver.
            delay: Seconds to wait before pushing.

        Returns:
            The timer task, or None if the channel is not open.
        """
        if self._state is not ChannelState.OPEN:
            return None

        task = asyncio.create_task(self._deliver_later(event, delay))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def events(self) -> AsyncIterator[ChannelEvent]:
        """Drain queued events until the end-of-stream marker.

        Yields:
            Events in the order they were pushed.
        """
        while True:
            item = await self._queue.get()
            if item is _END_OF_STREAM:
                return
            yield item

    def close(self, reason: str = "closed") -> bool:
        """Tear the channel down.

        Cancels every timer, discards undelivered events and enqueues the
        end-of-stream marker. Only the first call has any effect.

        Args:
            reason: Why the channel closed, for logs.

        Returns:
            True if this call closed the channel, False if already closed.
        """
        if self._state in (ChannelState.CLOSING, ChannelState.CLOSED):
            return False

        self._state = ChannelState.CLOSING

        timers = self._timers()
        for task in timers:
            task.cancel()
        self._cancelled = timers
        self._pending.clear()

        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_END_OF_STREAM)

        self._state = ChannelState.CLOSED
        logger.debug(
            "sse_channel_closed",
            channel_id=self.id,
            reason=reason,
            cancelled_timers=len(timers),
            dropped_events=self._dropped_count,
        )
        return True

    async def aclose(self, reason: str = "closed") -> None:
        """Close the channel and wait for its timers to finish cancelling.

        Args:
            reason: Why the channel closed, for logs.
        """
        self.close(reason)
        timers, self._cancelled = self._cancelled, []
        if timers:
            await asyncio.gather(*timers, return_exceptions=True)

    def _timers(self) -> list[asyncio.Task[None]]:
        timers = list(self._pending)
        if self._heartbeat_task is not None:
            timers.append(self._heartbeat_task)
        return timers

    def _enqueue(self, event: ChannelEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            # Overflow drops the oldest event.
            self._queue.get_nowait()
            self._queue.put_nowait(event)
            self._dropped_count += 1

    async def _heartbeat_loop(self) -> None:
        while True:
            await asyncio.sleep(self._heartbeat_interval)
            if not self.push(ChannelEvent.heartbeat()):
                return

    async def _deliver_later(self, event: ChannelEvent, delay: float) -> None:
        await asyncio.sleep(delay)
        self.push(event)
