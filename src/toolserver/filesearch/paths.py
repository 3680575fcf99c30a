"""Security-first path resolution against the trusted root."""
from pathlib import Path


class SecurityError(Exception):
    """Raised when a path operation violates security constraints."""

    def __init__(self, message: str, path: str) -> None:
        """Initialize security error.

        Args:
            message: Error description.
            path: The offending path value, as supplied by the caller.
        """
        super().__init__(message)
        self.path = path


def is_within(root: Path, candidate: Path) -> bool:
    """Check whether candidate is root itself or lies beneath it.

    Comparison is per path segment, so ``/app-evil`` is not inside ``/app``.
    Both paths must already be absolute and normalized.

    Args:
        root: Canonical trusted root.
        candidate: Canonical path to test.

    Returns:
        True if candidate is contained in root.
    """
    return candidate == root or candidate.is_relative_to(root)


def resolve_within_root(root: Path, directory: str) -> Path:
    """Resolve a caller-supplied directory to a canonical path inside root.

    Relative values are taken relative to root; ``~`` is an ordinary
    character, not a home directory. ``.``, ``..`` and symlink
    components are resolved before the containment check, so a link that
    points outside the root is rejected like any other escape.

    Args:
        root: Canonical trusted root.
        directory: Untrusted directory value from the request.

    Returns:
        Canonical absolute path within root.

    Raises:
        SecurityError: If the value contains a null byte or resolves
            outside the root.
    """
    if "\0" in directory:
        raise SecurityError("Path contains null byte", directory)

    requested = Path(directory)
    if not requested.is_absolute():
        requested = root / requested

    resolved = requested.resolve()

    if not is_within(root, resolved):
        raise SecurityError("Path resolves outside trusted root", directory)

    return resolved
