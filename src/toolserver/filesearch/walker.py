"""Sandboxed directory traversal for the file search tool."""

import stat
import threading
import time
from datetime import UTC, datetime
from os import stat_result
from pathlib import Path

import structlog

from toolserver.filesearch.errors import SearchError, SearchErrorKind, classify_os_error
from toolserver.filesearch.paths import SecurityError, is_within, resolve_within_root
from toolserver.filesearch.schemas import FileEntry, SearchResult

logger = structlog.get_logger()

MAX_DEPTH = 32
MAX_ENTRIES = 10_000


class WalkState:
    """Mutable state container for one traversal.

    Attributes:
        entries: Entries collected so far, in pre-order.
        skipped: Number of subdirectories that could not be read.
        active: Identities (device, inode) of directories on the current
            descent path, used to refuse re-entering one of them.
    """

    def __init__(
        self,
        max_depth: int,
        max_entries: int,
        deadline: float | None = None,
        cancel: threading.Event | None = None,
    ) -> None:
        """Initialize walk state.

        Args:
            max_depth: Deepest level entries may be collected from.
            max_entries: Maximum number of entries to collect.
            deadline: time.monotonic() value after which the walk stops.
            cancel: Token that aborts the walk once set.
        """
        self.entries: list[FileEntry] = []
        self.skipped = 0
        self.active: set[tuple[int, int]] = set()
        self.max_depth = max_depth
        self.max_entries = max_entries
        self._deadline = deadline
        self._cancel = cancel

    def check(self) -> None:
        """Abort if the walk was cancelled or ran out of time.

        Raises:
            SearchError: CANCELLED or TIMED_OUT.
        """
        if self._cancel is not None and self._cancel.is_set():
            raise SearchError(SearchErrorKind.CANCELLED)
        if self._deadline is not None and time.monotonic() > self._deadline:
            raise SearchError(SearchErrorKind.TIMED_OUT)

    def add(self, entry: FileEntry) -> None:
        """Append an entry, enforcing the entry cap.

        Raises:
            SearchError: LIMIT_EXCEEDED when the cap is already reached.
        """
        if len(self.entries) >= self.max_entries:
            raise SearchError(
                SearchErrorKind.LIMIT_EXCEEDED,
                f"more than {self.max_entries} entries",
            )
        self.entries.append(entry)


class PathSandboxedWalker:
    """Lists directory contents without ever leaving a trusted root.

    The walk is depth-first and sequential. Failures on the requested
    directory are reported in the result's error field; failures on a
    nested subdirectory only drop that subtree.
    """

    def __init__(
        self,
        root: Path | str,
        max_depth: int = MAX_DEPTH,
        max_entries: int = MAX_ENTRIES,
        follow_symlinks: bool = False,
        timeout: float | None = None,
    ) -> None:
        """Initialize walker.

        Args:
            root: Trusted root directory. Resolved once and never changed.
            max_depth: Depth cap; children of the requested directory are depth 1.
            max_entries: Entry cap per search.
            follow_symlinks: Descend through symlinks whose target stays
                inside the root. Links are never followed when False.
            timeout: Wall-clock seconds per search, None or 0 for no limit.
        """
        self._root = Path(root).expanduser().resolve()
        self._max_depth = max_depth
        self._max_entries = max_entries
        self._follow_symlinks = follow_symlinks
        self._timeout = timeout or None

    @property
    def root(self) -> Path:
        """Canonical trusted root."""
        return self._root

    def search(
        self,
        directory: str,
        recursive: bool = True,
        cancel: threading.Event | None = None,
    ) -> SearchResult:
        """Collect file metadata under a directory inside the trusted root.

        Args:
            directory: Caller-supplied directory, absolute or root-relative.
            recursive: Descend into subdirectories when True.
            cancel: Optional token checked between directory listings.

        Returns:
            Entries found, plus an error message if the search failed or
            stopped early. Entries collected before a limit, timeout or
            cancellation are kept.
        """
        deadline = time.monotonic() + self._timeout if self._timeout else None
        state = WalkState(self._max_depth, self._max_entries, deadline, cancel)

        try:
            target, target_stat = self._validate(directory)
            self._walk_root(target, target_stat, recursive, state)
        except SearchError as e:
            logger.warning(
                "search_failed",
                directory=directory,
                kind=e.kind.value,
                collected=len(state.entries),
            )
            return SearchResult(
                entries=state.entries,
                error=e.message,
                error_kind=e.kind,
            )

        logger.info(
            "search_completed",
            directory=directory,
            recursive=recursive,
            entry_count=len(state.entries),
            skipped_directories=state.skipped,
        )
        return SearchResult(entries=state.entries)

    def _validate(self, directory: str) -> tuple[Path, stat_result]:
        """Resolve the requested directory and confirm it can be walked.

        Raises:
            SearchError: ACCESS_DENIED, NOT_FOUND, NOT_A_DIRECTORY,
                PERMISSION_DENIED or UNCLASSIFIED.
        """
        try:
            target = resolve_within_root(self._root, directory)
        except SecurityError as e:
            raise SearchError(SearchErrorKind.ACCESS_DENIED) from e
        except RuntimeError as e:
            # Symlink loop while resolving.
            raise SearchError(SearchErrorKind.NOT_FOUND) from e

        try:
            target_stat = target.stat()
        except OSError as e:
            raise classify_os_error(e) from e

        if not stat.S_ISDIR(target_stat.st_mode):
            raise SearchError(SearchErrorKind.NOT_A_DIRECTORY)

        return target, target_stat

    def _walk_root(
        self,
        target: Path,
        target_stat: stat_result,
        recursive: bool,
        state: WalkState,
    ) -> None:
        state.active.add((target_stat.st_dev, target_stat.st_ino))
        try:
            self._walk(target, recursive, 1, state)
        except OSError as e:
            raise classify_os_error(e) from e

    def _walk(self, directory: Path, recursive: bool, depth: int, state: WalkState) -> None:
        """List one directory, recording children and descending if asked.

        Raises:
            OSError: If this directory itself cannot be listed.
            SearchError: On limits, timeout or cancellation.
        """
        state.check()
        children = list(directory.iterdir())

        for child in children:
            try:
                child_stat = child.lstat()
            except OSError as e:
                logger.warning("entry_stat_failed", path=str(child), error=e.strerror)
                continue

            if stat.S_ISLNK(child_stat.st_mode) and self._follow_symlinks:
                child_stat = self._follow_link(child) or child_stat

            is_directory = stat.S_ISDIR(child_stat.st_mode)
            state.add(
                FileEntry(
                    name=child.name,
                    path=str(child),
                    is_directory=is_directory,
                    size=child_stat.st_size,
                    modified_time=datetime.fromtimestamp(child_stat.st_mtime, tz=UTC),
                )
            )

            if recursive and is_directory:
                self._descend(child, child_stat, recursive, depth + 1, state)

    def _descend(
        self,
        directory: Path,
        directory_stat: stat_result,
        recursive: bool,
        depth: int,
        state: WalkState,
    ) -> None:
        """Walk a subdirectory, dropping it on read failure or cycle."""
        if depth > state.max_depth:
            raise SearchError(
                SearchErrorKind.LIMIT_EXCEEDED,
                f"maximum depth {state.max_depth} reached",
            )

        identity = (directory_stat.st_dev, directory_stat.st_ino)
        if identity in state.active:
            logger.warning("directory_cycle_skipped", path=str(directory))
            return

        state.active.add(identity)
        try:
            self._walk(directory, recursive, depth, state)
        except OSError as e:
            state.skipped += 1
            logger.warning(
                "directory_traversal_failed",
                path=str(directory),
                error=e.strerror,
            )
        finally:
            state.active.discard(identity)

    def _follow_link(self, link: Path) -> stat_result | None:
        """Stat a symlink's target if it resolves inside the root.

        Returns:
            Target stat, or None when the link dangles, loops or escapes.
        """
        try:
            target = link.resolve(strict=True)
        except (OSError, RuntimeError):
            return None

        if not is_within(self._root, target):
            logger.warning("symlink_outside_root_skipped", path=str(link))
            return None

        try:
            return target.stat()
        except OSError:
            return None
