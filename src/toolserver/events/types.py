"""Event types pushed over SSE channels."""
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field


class ChannelEventType(str, Enum):
    """Kinds of events a channel emits."""

    CONNECTED = "connected"
    HEARTBEAT = "heartbeat"
    TOOL_UPDATE = "tool_update"


class ChannelState(str, Enum):
    """Lifecycle states of an event channel."""

    INIT = "init"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


class ChannelEvent(BaseModel):
    """One message pushed to a channel consumer.

    Only the fields relevant to an event kind are set; unset fields are
    left out of the serialized message.

    Attributes:
        event: Event kind.
        timestamp: Emission time (UTC), carried by heartbeats.
        message: Human-readable note, carried by the connect event.
        tool: Tool name for tool updates.
        status: Tool status for tool updates.
    """

    event: ChannelEventType = Field(description="Event kind")
    timestamp: datetime | None = Field(default=None, description="Event timestamp (UTC)")
    message: str | None = None
    tool: str | None = None
    status: str | None = None

    @classmethod
    def connected(cls) -> "ChannelEvent":
        """Build the event sent first on every new channel."""
        return cls(
            event=ChannelEventType.CONNECTED,
            message="SSE connection established",
        )

    @classmethod
    def heartbeat(cls) -> "ChannelEvent":
        """Build a liveness event stamped with the current UTC time."""
        return cls(event=ChannelEventType.HEARTBEAT, timestamp=datetime.now(UTC))

    @classmethod
    def tool_update(cls, tool: str, status: str = "ready") -> "ChannelEvent":
        """Build a readiness notice for one tool."""
        return cls(event=ChannelEventType.TOOL_UPDATE, tool=tool, status=status)

    def to_json(self) -> str:
        """Serialize to the JSON payload of an SSE data line."""
        return self.model_dump_json(exclude_none=True)
