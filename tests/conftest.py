"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from fastapi.testclient import TestClient

from toolserver.app import create_app
from toolserver.config import Settings
from toolserver.filesearch import PathSandboxedWalker


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Trusted root holding data/{a.txt, sub/{b.txt}}."""
    root = tmp_path / "project"
    sub = root / "data" / "sub"
    sub.mkdir(parents=True)
    (root / "data" / "a.txt").write_text("alpha")
    (sub / "b.txt").write_text("bravo!")
    return root.resolve()


@pytest.fixture
def walker(project_root: Path) -> PathSandboxedWalker:
    """Walker confined to the project root."""
    return PathSandboxedWalker(project_root)


@pytest.fixture
def settings(project_root: Path) -> Settings:
    """Create test settings."""
    return Settings(
        _env_file=None,
        host="127.0.0.1",
        port=8000,
        debug=True,
        base_dir=str(project_root),
        sse_heartbeat_interval=0.05,
        sse_tool_update_delay=0.01,
    )


@pytest.fixture
def client(settings: Settings) -> TestClient:
    """Create test client with configured app."""
    app = create_app(settings)
    return TestClient(app)
