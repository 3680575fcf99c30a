"""Server configuration loaded from environment variables."""
from pathlib import Path

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Server configuration loaded from environment variables.

    Attributes:
        host: Bind address for the HTTP server.
        port: Port number for the HTTP server.
        debug: Enable debug logging and API documentation.
        base_dir: Directory that every file search is confined to.
        cors_origins_raw: Raw comma-separated CORS origins string.
        shutdown_timeout: Seconds to wait for graceful shutdown.
        search_max_depth: Deepest level a recursive search descends to.
        search_max_entries: Maximum entries collected by one search.
        search_timeout: Wall-clock seconds allowed per search, 0 disables.
        search_follow_symlinks: Follow symlinks that stay inside base_dir.
        sse_heartbeat_interval: Seconds between SSE heartbeat events.
        sse_tool_update_delay: Seconds after connect before tool readiness is sent.
        sse_queue_size: Maximum pending events per channel.
        sse_max_channels: Maximum number of concurrent SSE channels.
        tools_file: Optional YAML file replacing the bundled tool table.
    """

    model_config = SettingsConfigDict(
        env_prefix="TOOLSERVER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    base_dir: str = "."
    cors_origins_raw: str = "*"
    shutdown_timeout: float = 30.0

    search_max_depth: int = 32
    search_max_entries: int = 10_000
    search_timeout: float = 30.0
    search_follow_symlinks: bool = False

    sse_heartbeat_interval: float = 30.0
    sse_tool_update_delay: float = 5.0
    sse_queue_size: int = 100
    sse_max_channels: int = 100

    tools_file: str | None = None

    @computed_field
    @property
    def trusted_root(self) -> Path:
        """Absolute, symlink-free form of base_dir.

        Returns:
            Canonical path all searches are validated against.
        """
        return Path(self.base_dir).expanduser().resolve()

    @computed_field
    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string.

        Returns:
            List of allowed origin URLs.
        """
        return [
            origin.strip()
            for origin in self.cors_origins_raw.split(",")
            if origin.strip()
        ]
