"""Events subsystem for per-connection SSE channels."""
from toolserver.events.channel import EventChannel
from toolserver.events.hub import ChannelHub, ChannelLimitError
from toolserver.events.types import ChannelEvent, ChannelEventType, ChannelState

__all__ = [
    "ChannelEvent",
    "ChannelEventType",
    "ChannelHub",
    "ChannelLimitError",
    "ChannelState",
    "EventChannel",
]
