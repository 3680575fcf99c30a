"""Registry of live SSE channels and their transport adapter."""

from collections.abc import AsyncIterator, Iterable

import structlog
from sse_starlette import ServerSentEvent

from toolserver.events.channel import EventChannel
from toolserver.events.types import ChannelEvent

logger = structlog.get_logger()

SSE_SEPARATOR = "\n"


class ChannelLimitError(Exception):
    """Raised when a new channel would exceed the configured maximum."""


class ChannelHub:
    """Creates, tracks and tears down one EventChannel per SSE connection.

    Each connection gets its own channel; events are never fanned out
    across connections. The hub exists so process shutdown can close
    every channel that is still open.

    Attributes:
        heartbeat_interval: Seconds between heartbeat events.
    """

    def __init__(
        self,
        heartbeat_interval: float = 30.0,
        queue_size: int = 100,
        max_channels: int = 100,
        tool_update_delay: float = 5.0,
        tools: Iterable[str] = (),
    ) -> None:
        """Initialize channel hub.

        Args:
            heartbeat_interval: Seconds between heartbeats on each channel.
            queue_size: Pending event capacity of each channel.
            max_channels: Maximum number of simultaneously open channels.
            tool_update_delay: Seconds after connect before each tool's
                readiness event is pushed.
            tools: Names of tools announced on every new channel.
        """
        self.heartbeat_interval = heartbeat_interval
        self._queue_size = queue_size
        self._max_channels = max_channels
        self._tool_update_delay = tool_update_delay
        self._tools = tuple(tools)
        self._channels: dict[str, EventChannel] = {}

    @property
    def active_connections(self) -> int:
        """Number of open SSE channels."""
        return len(self._channels)

    def check_capacity(self) -> None:
        """Fail fast when no further channel can be opened.

        Raises:
            ChannelLimitError: If the maximum number of channels is open.
        """
        if len(self._channels) >= self._max_channels:
            logger.warning(
                "sse_channel_limit_reached",
                max_channels=self._max_channels,
            )
            raise ChannelLimitError("Maximum event channels reached")

    def open_channel(self) -> EventChannel:
        """Create and open a channel for a new connection.

        Returns:
            Open channel with its connect event queued and tool readiness
            events scheduled.

        Raises:
            ChannelLimitError: If the maximum number of channels is open.
        """
        self.check_capacity()

        channel = EventChannel(
            heartbeat_interval=self.heartbeat_interval,
            queue_size=self._queue_size,
        )
        self._channels[channel.id] = channel
        channel.open()

        for tool in self._tools:
            channel.schedule(ChannelEvent.tool_update(tool), self._tool_update_delay)

        logger.info(
            "sse_client_connected",
            channel_id=channel.id,
            active_connections=self.active_connections,
        )
        return channel

    def release(self, channel: EventChannel, reason: str) -> None:
        """Forget a channel and close it.

        Safe to call more than once for the same channel.

        Args:
            channel: Channel to release.
            reason: Why it is being released, for logs.
        """
        self._channels.pop(channel.id, None)
        if channel.close(reason):
            logger.info(
                "sse_client_disconnected",
                channel_id=channel.id,
                reason=reason,
                active_connections=self.active_connections,
            )

    async def create_sse_generator(self) -> AsyncIterator[ServerSentEvent]:
        """Open a channel and adapt its drain loop to server-sent events.

        The channel only exists while this generator runs: it is opened on
        first iteration and released when the consumer goes away, which the
        transport signals by cancelling or closing the generator. A
        generator that is never iterated never holds a channel.

        Yields:
            One ``data: <json>`` message per channel event.
        """
        try:
            channel = self.open_channel()
        except ChannelLimitError:
            return

        try:
            async for event in channel.events():
                yield ServerSentEvent(data=event.to_json(), sep=SSE_SEPARATOR)
        finally:
            self.release(channel, reason="consumer_disconnected")

    async def shutdown(self) -> None:
        """Close every open channel and wait for their timers to stop."""
        channels = list(self._channels.values())
        self._channels.clear()

        for channel in channels:
            await channel.aclose(reason="server_shutdown")

        logger.info("channel_hub_shutdown", closed_channels=len(channels))
