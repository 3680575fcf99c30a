"""Pydantic schemas for tool discovery responses."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class ToolParameter(BaseModel):
    """Description of one tool parameter."""

    type: str = Field(min_length=1, description="JSON type name")
    required: bool | None = None
    description: str | None = None


class ToolDefinition(BaseModel):
    """Static descriptor of a callable tool."""

    name: str = Field(min_length=1)
    description: str
    parameters: dict[str, ToolParameter] = Field(default_factory=dict)


class InitializeResponse(BaseModel):
    """Capability descriptor returned on client initialization."""

    status: Literal["success"] = "success"
    message: str = "MCP initialized successfully"
    tools: list[ToolDefinition]
    timestamp: datetime


class ToolListResponse(BaseModel):
    """Bare tool listing."""

    tools: list[ToolDefinition]
    count: int
