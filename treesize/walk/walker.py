from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from functools import partial

from result import Err, Ok

from treesize.models.enums import EntryKind
from treesize.models.tree import (
    CancelCheck,
    DirNode,
    ProgressCallback,
    WalkError,
    WalkErrorCode,
    WalkOptions,
    WalkResult,
    WalkSnapshot,
    WalkStats,
)
from treesize.services.fs import DEFAULT_FS, DirEntry, FileSystem
from treesize.walk.strategy import ExecutionStrategy, Outcome, PooledStrategy

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class _Contribution:
    """What one entry hands back to the directory that listed it."""

    size: int = 0
    child: DirNode | None = None
    files: int = 0
    directories: int = 0
    errors: tuple[WalkError, ...] = ()


_NOTHING = _Contribution()


class _DirVisit:
    """Aggregation point of one directory.

    Each entry task fills its own slot exactly once; whichever task fills the
    last slot folds the directory.
    """

    __slots__ = ("path", "parent", "slot", "_lock", "_results", "_pending")

    def __init__(self, path: str, parent: _DirVisit | None = None, slot: int = 0) -> None:
        self.path = path
        self.parent = parent
        self.slot = slot
        self._lock = threading.Lock()
        self._results: list[Outcome[_Contribution] | None] = []
        self._pending = 0

    def open(self, count: int) -> None:
        self._results = [None] * count
        self._pending = count

    def deliver(self, slot: int, outcome: Outcome[_Contribution]) -> bool:
        """Record *outcome*; True when it was the last one missing."""
        with self._lock:
            if self._results[slot] is not None:
                return False
            self._results[slot] = outcome
            self._pending -= 1
            return self._pending == 0

    @property
    def results(self) -> list[Outcome[_Contribution] | None]:
        return self._results


class _WalkContext:
    def __init__(
        self,
        root: str,
        options: WalkOptions,
        progress_callback: ProgressCallback | None,
        cancel_check: CancelCheck | None,
    ) -> None:
        self.root = root
        self.options = options
        self.result: _Contribution | None = None
        self._progress_callback = progress_callback
        self._cancel_check = cancel_check
        self._stopped = threading.Event()
        self._lock = threading.Lock()
        self._abort_error: WalkError | None = None
        self._files = 0
        self._directories = 0

    @property
    def abort_error(self) -> WalkError | None:
        return self._abort_error

    def abort(self, error: WalkError) -> None:
        with self._lock:
            if self._abort_error is None:
                self._abort_error = error
        self._stopped.set()

    def should_stop(self) -> bool:
        if self._stopped.is_set():
            return True
        if self._cancel_check is not None and self._cancel_check():
            self.abort(WalkError(code=WalkErrorCode.CANCELLED, path=self.root, message="Walk cancelled"))
            return True
        return False

    def contain(self, error: WalkError, collected: tuple[WalkError, ...] = ()) -> _Contribution:
        if self.options.fail_fast:
            self.abort(error)
        else:
            logger.info("Skipping %s: %s", error.path, error.message)
        return _Contribution(errors=(*collected, error))

    def report_progress(self, path: str, files: int) -> None:
        if self._progress_callback is None:
            return
        with self._lock:
            self._files += files
            self._directories += 1
            f, d = self._files, self._directories
        self._progress_callback(path, f, d)


def resolve_root(path: str, fs: FileSystem) -> str | WalkError:
    """Validate and canonicalize a walk root.

    Returns the resolved absolute path, or a ``WalkError`` on failure.
    """
    expanded = fs.expanduser(path)
    if not fs.exists(expanded):
        return WalkError(
            code=WalkErrorCode.NOT_FOUND,
            path=expanded,
            message="Path does not exist",
        )

    resolved = fs.resolve(expanded)
    try:
        root_stat = fs.stat(resolved)
    except OSError as exc:
        return WalkError(
            code=WalkErrorCode.ROOT_STAT_FAILED,
            path=resolved,
            message=f"Cannot stat root: {exc}",
        )
    if not root_stat.is_dir:
        return WalkError(
            code=WalkErrorCode.NOT_DIRECTORY,
            path=resolved,
            message="Path is not a directory",
        )
    return resolved


class TreeWalker:
    """Computes the recursive size of a directory tree.

    Every entry of a directory is one task handed to the execution strategy.
    A subdirectory entry lists the subdirectory and schedules its entries in
    turn; nothing waits for a subtree. Results flow upward instead: each
    directory is folded by the task that delivers its last entry result, and
    the folded node is delivered into the parent's slot. Only the directory's
    own aggregation point combines its results, so sizes are never shared
    between threads and tree depth never grows the call stack.
    """

    def __init__(self, strategy: ExecutionStrategy | None = None, fs: FileSystem = DEFAULT_FS) -> None:
        self._strategy = strategy if strategy is not None else PooledStrategy()
        self._fs = fs

    @property
    def workers(self) -> int:
        return self._strategy.workers

    def walk(
        self,
        path: str,
        options: WalkOptions | None = None,
        progress_callback: ProgressCallback | None = None,
        cancel_check: CancelCheck | None = None,
    ) -> WalkResult:
        resolved = resolve_root(path, self._fs)
        if isinstance(resolved, WalkError):
            return Err(resolved)

        ctx = _WalkContext(resolved, options or WalkOptions(), progress_callback, cancel_check)
        root = _DirVisit(resolved)
        with self._strategy:
            self._strategy.submit(partial(self._visit_root, root, ctx), partial(self._settle, None, 0, ctx))
            self._strategy.drain()

        if ctx.abort_error is not None:
            return Err(ctx.abort_error)
        visit = ctx.result
        if visit is None:
            return Err(
                WalkError(
                    code=WalkErrorCode.CONCURRENCY_FAILURE,
                    path=resolved,
                    message="Walk finished without a result for the root",
                )
            )
        if visit.child is None:
            # The root itself failed; its own error is always recorded last.
            return Err(visit.errors[-1])
        stats = WalkStats(files=visit.files, directories=visit.directories, errors=len(visit.errors))
        return Ok(WalkSnapshot(root=visit.child, stats=stats, errors=visit.errors))

    def _visit_root(self, root: _DirVisit, ctx: _WalkContext) -> None:
        if not ctx.should_stop():
            self._list_dir(root, ctx)

    def _list_dir(self, visit: _DirVisit, ctx: _WalkContext) -> None:
        logger.debug("Listing %s", visit.path)
        try:
            entries = list(self._fs.scandir(visit.path))
        except OSError as exc:
            error = WalkError(
                code=WalkErrorCode.LISTING_FAILED,
                path=visit.path,
                message=f"Cannot list directory: {exc}",
            )
            self._complete(visit, ctx.contain(error), ctx)
            return

        visit.open(len(entries))
        if not entries:
            self._complete(visit, self._fold(visit, ctx), ctx)
            return
        for slot, entry in enumerate(entries):
            self._strategy.submit(
                partial(self._visit_entry, visit, slot, entry, ctx),
                partial(self._settle, visit, slot, ctx),
            )

    def _visit_entry(self, visit: _DirVisit, slot: int, entry: DirEntry, ctx: _WalkContext) -> _Contribution | None:
        """Return the entry's contribution, or None when it is reported elsewhere."""
        if ctx.should_stop():
            return None
        try:
            st = self._fs.stat(entry.path)
        except OSError as exc:
            return ctx.contain(
                WalkError(
                    code=WalkErrorCode.METADATA_FAILED,
                    path=entry.path,
                    message=f"Cannot stat entry: {exc}",
                )
            )
        if st.kind is EntryKind.FILE:
            return _Contribution(size=st.size, files=1)
        if st.kind is EntryKind.DIRECTORY:
            # The subdirectory delivers into this slot once it is folded.
            self._list_dir(_DirVisit(entry.path, parent=visit, slot=slot), ctx)
            return None
        return _NOTHING

    def _settle(
        self,
        visit: _DirVisit | None,
        slot: int,
        ctx: _WalkContext,
        outcome: Outcome[_Contribution | None],
    ) -> None:
        if isinstance(outcome, Ok):
            part = outcome.unwrap()
            if part is None:
                return
            delivered: Outcome[_Contribution] = Ok(part)
        else:
            exc = outcome.unwrap_err()
            logger.warning("Task under %s did not report a result: %r", visit.path if visit else ctx.root, exc)
            if visit is None:
                return
            delivered = Err(exc)
        if visit is not None and visit.deliver(slot, delivered):
            self._complete(visit, self._fold(visit, ctx), ctx)

    def _fold(self, visit: _DirVisit, ctx: _WalkContext) -> _Contribution:
        size = 0
        files = 0
        directories = 1
        direct_files = 0
        children: list[DirNode] = []
        errors: list[WalkError] = []
        failed: Exception | None = None
        for outcome in visit.results:
            if isinstance(outcome, Err):
                failed = failed or outcome.unwrap_err()
                continue
            if outcome is None:
                continue
            part = outcome.unwrap()
            size += part.size
            files += part.files
            directories += part.directories
            errors.extend(part.errors)
            if part.child is not None:
                children.append(part.child)
            elif part.files:
                direct_files += part.files

        if failed is not None:
            return ctx.contain(
                WalkError(
                    code=WalkErrorCode.CONCURRENCY_FAILURE,
                    path=visit.path,
                    message=f"A task failed to report its result: {failed!r}",
                ),
                tuple(errors),
            )
        ctx.report_progress(visit.path, direct_files)
        return _Contribution(
            size=size,
            child=DirNode(path=visit.path, size=size, children=tuple(children)),
            files=files,
            directories=directories,
            errors=tuple(errors),
        )

    def _complete(self, visit: _DirVisit, contribution: _Contribution, ctx: _WalkContext) -> None:
        """Hand a folded directory to its parent, folding every ancestor it completes."""
        while True:
            parent = visit.parent
            if parent is None:
                ctx.result = contribution
                return
            if not parent.deliver(visit.slot, Ok(contribution)):
                return
            contribution = self._fold(parent, ctx)
            visit = parent
