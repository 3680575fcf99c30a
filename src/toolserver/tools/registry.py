"""Static tool table loaded from YAML."""
from collections.abc import Iterator
from importlib import resources
from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError

from toolserver.tools.schemas import ToolDefinition

logger = structlog.get_logger()

BUNDLED_TOOLS_FILE = "tools.yaml"


class ToolRegistryError(Exception):
    """Raised when the tool table cannot be read or is malformed."""

    def __init__(self, message: str, source: str) -> None:
        """Initialize registry error.

        Args:
            message: Error description.
            source: File the table was read from.
        """
        super().__init__(message)
        self.source = source


class ToolRegistry:
    """Read-only mapping of tool name to descriptor.

    Loaded once at startup and shared by every discovery endpoint.
    """

    def __init__(self, tools: dict[str, ToolDefinition]) -> None:
        """Initialize registry.

        Args:
            tools: Tool descriptors keyed by name.
        """
        self._tools = dict(tools)

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self._tools.values())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    @property
    def names(self) -> list[str]:
        """Registered tool names in table order."""
        return list(self._tools)

    def get(self, name: str) -> ToolDefinition | None:
        """Look up a tool by name."""
        return self._tools.get(name)

    def definitions(self) -> list[ToolDefinition]:
        """All descriptors in table order."""
        return list(self._tools.values())


def parse_tool_table(text: str, source: str) -> ToolRegistry:
    """Parse and validate a YAML tool table.

    The document holds a ``tools`` mapping of name to descriptor body;
    the name is copied into each descriptor.

    Args:
        text: YAML document.
        source: Where the document came from, for errors.

    Returns:
        Validated registry.

    Raises:
        ToolRegistryError: If the YAML is invalid or a descriptor fails
            validation.
    """
    try:
        document = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ToolRegistryError(f"Invalid YAML: {e}", source) from e

    table = document.get("tools") if isinstance(document, dict) else None
    if not isinstance(table, dict):
        raise ToolRegistryError("Expected a 'tools' mapping", source)

    tools: dict[str, ToolDefinition] = {}
    for name, body in table.items():
        try:
            tools[str(name)] = ToolDefinition.model_validate({**(body or {}), "name": name})
        except ValidationError as e:
            raise ToolRegistryError(f"Invalid tool '{name}': {e}", source) from e

    return ToolRegistry(tools)


def load_tool_registry(path: str | Path | None = None) -> ToolRegistry:
    """Load the tool table from a file, or the bundled table if none given.

    Args:
        path: Optional YAML file replacing the bundled table.

    Returns:
        Validated registry.

    Raises:
        ToolRegistryError: If the file cannot be read or parsed.
    """
    if path is None:
        source = f"{__package__}/{BUNDLED_TOOLS_FILE}"
        text = resources.files(__package__).joinpath(BUNDLED_TOOLS_FILE).read_text(encoding="utf-8")
    else:
        source = str(path)
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise ToolRegistryError(f"Cannot read tool table: {e.strerror}", source) from e

    registry = parse_tool_table(text, source)
    logger.debug("tool_registry_loaded", source=source, tools=registry.names)
    return registry
