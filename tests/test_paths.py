"""Path containment tests."""

import os
from pathlib import Path

import pytest

from toolserver.filesearch import SecurityError, is_within, resolve_within_root


def test_root_is_within_itself(project_root: Path) -> None:
    """The root itself passes containment."""
    assert is_within(project_root, project_root)


def test_sibling_with_shared_prefix_is_outside(tmp_path: Path) -> None:
    """/app-evil is not inside /app."""
    assert not is_within(tmp_path / "app", tmp_path / "app-evil")
    assert is_within(tmp_path / "app", tmp_path / "app" / "evil")


def test_relative_path_resolves_under_root(project_root: Path) -> None:
    """Relative requests are interpreted against the root."""
    assert resolve_within_root(project_root, "data/sub") == project_root / "data" / "sub"


def test_parent_traversal_rejected(project_root: Path) -> None:
    """Escaping with .. raises and keeps the raw value."""
    raw = f"{project_root}/../etc"
    with pytest.raises(SecurityError) as exc_info:
        resolve_within_root(project_root, raw)
    assert exc_info.value.path == raw


def test_dotdot_that_stays_inside_is_allowed(project_root: Path) -> None:
    """.. segments are fine when the result is still inside the root."""
    assert resolve_within_root(project_root, "data/sub/..") == project_root / "data"


def test_null_byte_rejected(project_root: Path) -> None:
    """Null bytes never reach the filesystem."""
    with pytest.raises(SecurityError, match="null byte"):
        resolve_within_root(project_root, "data\0")


def test_symlink_escape_rejected(project_root: Path, tmp_path: Path) -> None:
    """A link inside the root that points outside is rejected."""
    outside = tmp_path / "outside"
    outside.mkdir()
    os.symlink(outside, project_root / "escape")

    with pytest.raises(SecurityError):
        resolve_within_root(project_root, "escape")


def test_tilde_is_not_expanded(project_root: Path) -> None:
    """~name stays a root-relative path component."""
    assert resolve_within_root(project_root, "~someone") == project_root / "~someone"
