"""Static tool descriptors served by the discovery endpoints."""
from toolserver.tools.registry import (
    ToolRegistry,
    ToolRegistryError,
    load_tool_registry,
    parse_tool_table,
)
from toolserver.tools.schemas import (
    InitializeResponse,
    ToolDefinition,
    ToolListResponse,
    ToolParameter,
)

__all__ = [
    "InitializeResponse",
    "ToolDefinition",
    "ToolListResponse",
    "ToolParameter",
    "ToolRegistry",
    "ToolRegistryError",
    "load_tool_registry",
    "parse_tool_table",
]
