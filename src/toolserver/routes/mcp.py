"""Tool discovery and SSE channel endpoints."""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, Request, status
from sse_starlette.sse import EventSourceResponse

from toolserver.events import ChannelLimitError
from toolserver.events.hub import SSE_SEPARATOR
from toolserver.tools import InitializeResponse, ToolListResponse

if TYPE_CHECKING:
    from toolserver.events import ChannelHub
    from toolserver.tools import ToolRegistry

router = APIRouter(prefix="/mcp", tags=["mcp"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "Access-Control-Allow-Origin": "*",
    "X-Accel-Buffering": "no",
}


@router.get("/initialize", response_model=InitializeResponse)
async def initialize(request: Request) -> InitializeResponse:
    """Return the capability descriptor for a connecting client.

    Args:
        request: FastAPI request (provides access to app state).

    Returns:
        Initialization status with every registered tool.
    """
    registry: ToolRegistry = request.app.state.tool_registry
    return InitializeResponse(
        tools=registry.definitions(),
        timestamp=datetime.now(UTC),
    )


@router.get("/tools", response_model=ToolListResponse)
async def list_tools(request: Request) -> ToolListResponse:
    """List registered tools."""
    registry: ToolRegistry = request.app.state.tool_registry
    tools = registry.definitions()
    return ToolListResponse(tools=tools, count=len(tools))


@router.get("/sse")
async def event_stream(request: Request) -> EventSourceResponse:
    """Open a persistent event channel for this connection.

    Sends a connect event immediately, a heartbeat every configured
    interval and a readiness event per tool shortly after connecting.
    The stream only ends when the client disconnects.

    Args:
        request: FastAPI request object.

    Returns:
        SSE response whose channel opens when streaming starts.

    Raises:
        HTTPException: 503 if the maximum number of channels is open.
    """
    hub: ChannelHub = request.app.state.channel_hub

    try:
        hub.check_capacity()
    except ChannelLimitError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Too many open event channels",
        ) from e

    return EventSourceResponse(
        hub.create_sse_generator(),
        headers=SSE_HEADERS,
        sep=SSE_SEPARATOR,
    )
