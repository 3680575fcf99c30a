"""Channel hub and SSE endpoint tests."""

import asyncio
import json
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from toolserver.app import create_app
from toolserver.config import Settings
from toolserver.events import ChannelHub, ChannelLimitError, ChannelState
from toolserver.routes import mcp

TIMEOUT = 2.0


@pytest.mark.asyncio
async def test_sse_generator_frames_events() -> None:
    """Events are framed as bare data lines ending in a blank line."""
    hub = ChannelHub(heartbeat_interval=60, tool_update_delay=0.01, tools=["file_searcher"])
    stream = hub.create_sse_generator()

    connected = await asyncio.wait_for(anext(stream), timeout=TIMEOUT)
    update = await asyncio.wait_for(anext(stream), timeout=TIMEOUT)

    raw = connected.encode()
    assert raw.startswith(b"data: ")
    assert raw.endswith(b"\n\n")
    assert json.loads(raw[len(b"data: "):].decode())["event"] == "connected"
    assert json.loads(update.data) == {
        "event": "tool_update",
        "tool": "file_searcher",
        "status": "ready",
    }
    assert hub.active_connections == 1

    await stream.aclose()
    assert hub.active_connections == 0


@pytest.mark.asyncio
async def test_unstarted_generator_holds_no_channel() -> None:
    """A stream torn down before its first read leaves nothing running."""
    hub = ChannelHub(heartbeat_interval=0.01)
    stream = hub.create_sse_generator()

    await stream.aclose()
    await asyncio.sleep(0.05)

    assert hub.active_connections == 0


@pytest.mark.asyncio
async def test_cancelled_stream_releases_channel() -> None:
    """Cancelling the task that drains the stream closes its channel."""
    hub = ChannelHub(heartbeat_interval=60)
    stream = hub.create_sse_generator()
    await asyncio.wait_for(anext(stream), timeout=TIMEOUT)

    async def read_next():
        return await anext(stream)

    reader = asyncio.create_task(read_next())
    await asyncio.sleep(0.01)
    reader.cancel()
    with pytest.raises(asyncio.CancelledError):
        await reader

    assert hub.active_connections == 0


@pytest.mark.asyncio
async def test_generator_over_limit_ends_quietly() -> None:
    """If capacity vanished before streaming starts, the stream just ends."""
    hub = ChannelHub(heartbeat_interval=60, max_channels=1)
    first = hub.open_channel()

    frames = [frame async for frame in hub.create_sse_generator()]

    assert frames == []
    assert hub.active_connections == 1
    assert first.is_open
    await hub.shutdown()


@pytest.mark.asyncio
async def test_channel_limit() -> None:
    """Opening beyond the cap fails without disturbing open channels."""
    hub = ChannelHub(heartbeat_interval=60, max_channels=1)
    first = hub.open_channel()

    with pytest.raises(ChannelLimitError):
        hub.open_channel()
    with pytest.raises(ChannelLimitError):
        hub.check_capacity()

    assert first.is_open
    await hub.shutdown()


@pytest.mark.asyncio
async def test_release_twice_is_safe() -> None:
    """Disconnect and shutdown may both release the same channel."""
    hub = ChannelHub(heartbeat_interval=60)
    channel = hub.open_channel()

    hub.release(channel, reason="consumer_disconnected")
    hub.release(channel, reason="consumer_disconnected")
    await hub.shutdown()

    assert channel.state is ChannelState.CLOSED
    assert hub.active_connections == 0


@pytest.mark.asyncio
async def test_shutdown_closes_every_channel() -> None:
    """Process shutdown stops all channel timers."""
    hub = ChannelHub(heartbeat_interval=0.01)
    channels = [hub.open_channel() for _ in range(3)]

    await hub.shutdown()

    assert hub.active_connections == 0
    assert all(channel.state is ChannelState.CLOSED for channel in channels)
    assert all(channel.active_timers == 0 for channel in channels)


@pytest.mark.asyncio
async def test_sse_endpoint_response(settings: Settings) -> None:
    """The endpoint returns an event stream with the required headers."""
    app = create_app(settings)
    request = SimpleNamespace(app=app)

    response = await mcp.event_stream(request)

    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.headers["cache-control"] == "no-cache"
    assert response.headers["connection"] == "keep-alive"
    assert response.headers["access-control-allow-origin"] == "*"
    assert app.state.channel_hub.active_connections == 0


@pytest.mark.asyncio
async def test_client_disconnect_releases_channel(settings: Settings) -> None:
    """A consumer disconnect seen by the transport tears the channel down."""
    app = create_app(settings)
    hub: ChannelHub = app.state.channel_hub
    response = await mcp.event_stream(SimpleNamespace(app=app))

    bodies: list[bytes] = []
    first_frame = asyncio.Event()

    async def send(message: dict) -> None:
        if message["type"] == "http.response.body" and message.get("body"):
            bodies.append(message["body"])
            first_frame.set()

    async def receive() -> dict:
        await first_frame.wait()
        return {"type": "http.disconnect"}

    scope = {
        "type": "http",
        "http_version": "1.1",
        "method": "GET",
        "path": "/mcp/sse",
        "headers": [],
    }
    await asyncio.wait_for(response(scope, receive, send), timeout=TIMEOUT)

    assert json.loads(bodies[0].decode().removeprefix("data: "))["event"] == "connected"
    assert hub.active_connections == 0


def test_sse_endpoint_rejects_over_limit(settings: Settings) -> None:
    """With no channel capacity left the endpoint answers 503."""
    settings.sse_max_channels = 0
    client = TestClient(create_app(settings))

    response = client.get("/mcp/sse")

    assert response.status_code == 503
