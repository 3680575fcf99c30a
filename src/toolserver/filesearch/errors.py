"""Classification of file search failures into stable wire messages."""
import errno
from enum import Enum


class SearchErrorKind(str, Enum):
    """Failure categories a search can report to the caller."""

    ACCESS_DENIED = "access_denied"
    NOT_FOUND = "not_found"
    NOT_A_DIRECTORY = "not_a_directory"
    PERMISSION_DENIED = "permission_denied"
    LIMIT_EXCEEDED = "limit_exceeded"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"
    UNCLASSIFIED = "unclassified"


ERROR_MESSAGES: dict[SearchErrorKind, str] = {
    SearchErrorKind.ACCESS_DENIED: "Access denied: Can only search directories within the project",
    SearchErrorKind.NOT_FOUND: "Directory not found",
    SearchErrorKind.NOT_A_DIRECTORY: "Provided path is not a directory",
    SearchErrorKind.PERMISSION_DENIED: "Permission denied to access directory",
    SearchErrorKind.TIMED_OUT: "Search timed out",
    SearchErrorKind.CANCELLED: "Search cancelled",
}


class SearchError(Exception):
    """Raised inside the walker to abort a search with a classified error.

    Attributes:
        kind: Failure category.
        detail: Extra text for categories whose message is parameterized.
    """

    def __init__(self, kind: SearchErrorKind, detail: str | None = None) -> None:
        """Initialize search error.

        Args:
            kind: Failure category.
            detail: Parameter for LIMIT_EXCEEDED and UNCLASSIFIED messages.
        """
        super().__init__(kind.value if detail is None else f"{kind.value}: {detail}")
        self.kind = kind
        self.detail = detail

    @property
    def message(self) -> str:
        """Caller-facing message for this error."""
        return error_message(self.kind, self.detail)


def error_message(kind: SearchErrorKind, detail: str | None = None) -> str:
    """Render the caller-facing message for a failure category.

    Args:
        kind: Failure category.
        detail: Parameter for LIMIT_EXCEEDED and UNCLASSIFIED.

    Returns:
        Message placed in the response's error field.
    """
    if kind is SearchErrorKind.LIMIT_EXCEEDED:
        return f"Search limit exceeded: {detail}"
    if kind is SearchErrorKind.UNCLASSIFIED:
        return f"Search failed: {detail or 'unknown error'}"
    return ERROR_MESSAGES[kind]


def classify_os_error(exc: OSError) -> SearchError:
    """Map an OSError on the requested directory to a search error.

    The raw error text never includes the filename, so resolved paths
    do not leak into responses.

    Args:
        exc: Error raised while inspecting or listing the directory.

    Returns:
        Classified search error.
    """
    if isinstance(exc, (FileNotFoundError, NotADirectoryError)):
        # ENOTDIR here means an intermediate component is a regular file.
        return SearchError(SearchErrorKind.NOT_FOUND)
    if isinstance(exc, PermissionError):
        return SearchError(SearchErrorKind.PERMISSION_DENIED)
    if exc.errno == errno.ELOOP:
        return SearchError(SearchErrorKind.NOT_FOUND)
    return SearchError(SearchErrorKind.UNCLASSIFIED, exc.strerror or type(exc).__name__)
