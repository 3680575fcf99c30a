"""File search tool endpoint."""

from typing import TYPE_CHECKING

from fastapi import APIRouter, Query, Request

from toolserver.filesearch import SearchResponse

if TYPE_CHECKING:
    from toolserver.filesearch import PathSandboxedWalker

router = APIRouter(prefix="/tool/file-search", tags=["file-search"])


@router.get(
    "/search",
    response_model=SearchResponse,
    response_model_exclude_none=True,
    summary="Search files in a directory",
    description="Lists files under a directory inside the project root. "
    "Failures are reported in the error field with status 200.",
)
def search_files(
    request: Request,
    directory: str = Query(
        ...,
        min_length=1,
        description="The directory path to search (absolute path within project)",
    ),
    recursive: bool = Query(
        default=True,
        description="Whether to search recursively",
    ),
) -> SearchResponse:
    """Search files in the specified directory.

    Declared sync so FastAPI runs the blocking walk in its threadpool.

    Args:
        request: FastAPI request (provides access to app state).
        directory: Directory to search, absolute or relative to the root.
        recursive: Descend into subdirectories (default True).

    Returns:
        Files found and, on failure, an error message.
    """
    walker: PathSandboxedWalker = request.app.state.walker
    result = walker.search(directory, recursive=recursive)
    return SearchResponse(files=result.entries, error=result.error)
