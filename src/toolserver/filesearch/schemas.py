"""Pydantic schemas for file search results."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from toolserver.filesearch.errors import SearchErrorKind


class FileEntry(BaseModel):
    """Metadata for one file or directory found by a search."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    path: str = Field(description="Absolute path inside the trusted root")
    is_directory: bool
    size: int = Field(ge=0, description="Size in bytes")
    modified_time: datetime = Field(description="Last modification time (UTC)")


class SearchResult(BaseModel):
    """Outcome of a single search.

    Attributes:
        entries: Collected entries in pre-order, possibly partial.
        error: Caller-facing failure message, unset on success.
        error_kind: Category of the failure, unset on success.
    """

    entries: list[FileEntry] = Field(default_factory=list)
    error: str | None = None
    error_kind: SearchErrorKind | None = None


class SearchResponse(BaseModel):
    """Wire shape of the search endpoint."""

    files: list[FileEntry]
    error: str | None = None
