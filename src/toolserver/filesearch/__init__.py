"""Sandboxed file search tool."""

from toolserver.filesearch.errors import SearchError, SearchErrorKind, error_message
from toolserver.filesearch.paths import SecurityError, is_within, resolve_within_root
from toolserver.filesearch.schemas import FileEntry, SearchResponse, SearchResult
from toolserver.filesearch.walker import PathSandboxedWalker

__all__ = [
    "FileEntry",
    "PathSandboxedWalker",
    "SearchError",
    "SearchErrorKind",
    "SearchResponse",
    "SearchResult",
    "SecurityError",
    "error_message",
    "is_within",
    "resolve_within_root",
]
