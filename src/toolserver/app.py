"""FastAPI application factory and lifespan management."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from toolserver.config import Settings
from toolserver.events import ChannelHub
from toolserver.filesearch import PathSandboxedWalker
from toolserver.middleware.cors import configure_cors
from toolserver.middleware.logging import RequestLoggingMiddleware
from toolserver.routes import file_search, health, mcp
from toolserver.tools import load_tool_registry

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle events.

    Closes every open SSE channel on shutdown so no heartbeat task
    outlives the server.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = app.state.settings
    logger.info(
        "api_startup",
        host=settings.host,
        port=settings.port,
        trusted_root=str(app.state.walker.root),
        tools=app.state.tool_registry.names,
    )

    try:
        yield
    finally:
        await app.state.channel_hub.shutdown()
        logger.info("api_shutdown")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Factory function to create configured FastAPI application.

    Args:
        settings: Configuration instance. Creates default if None.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = Settings()

    tool_registry = load_tool_registry(settings.tools_file)

    app = FastAPI(
        title="MCP Tool Server",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.debug else None,
    )
    app.state.settings = settings
    app.state.tool_registry = tool_registry
    app.state.walker = PathSandboxedWalker(
        settings.trusted_root,
        max_depth=settings.search_max_depth,
        max_entries=settings.search_max_entries,
        follow_symlinks=settings.search_follow_symlinks,
        timeout=settings.search_timeout,
    )
    app.state.channel_hub = ChannelHub(
        heartbeat_interval=settings.sse_heartbeat_interval,
        queue_size=settings.sse_queue_size,
        max_channels=settings.sse_max_channels,
        tool_update_delay=settings.sse_tool_update_delay,
        tools=tool_registry.names,
    )

    configure_cors(app, settings.cors_origins)
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(health.router)
    app.include_router(mcp.router)
    app.include_router(file_search.router)

    return app
