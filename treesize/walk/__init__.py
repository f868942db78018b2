from __future__ import annotations

from typing import Protocol

from treesize.models.enums import ExecutionMode
from treesize.models.tree import CancelCheck, ProgressCallback, WalkOptions, WalkResult
from treesize.services.fs import DEFAULT_FS, FileSystem
from treesize.walk.strategy import ExecutionStrategy, PooledStrategy, SequentialStrategy
from treesize.walk.walker import TreeWalker, resolve_root


class Walker(Protocol):
    @property
    def workers(self) -> int: ...

    def walk(
        self,
        path: str,
        options: WalkOptions | None = None,
        progress_callback: ProgressCallback | None = None,
        cancel_check: CancelCheck | None = None,
    ) -> WalkResult: ...


def default_walker(
    workers: int | None = None,
    mode: ExecutionMode = ExecutionMode.POOLED,
    fs: FileSystem = DEFAULT_FS,
) -> TreeWalker:
    """Return a walker for *mode*; pooled walkers default to one worker per CPU."""
    strategy: ExecutionStrategy
    if mode is ExecutionMode.SEQUENTIAL:
        strategy = SequentialStrategy()
    else:
        strategy = PooledStrategy(workers=workers)
    return TreeWalker(strategy=strategy, fs=fs)


def walk_tree(
    path: str,
    options: WalkOptions | None = None,
    *,
    workers: int | None = None,
    mode: ExecutionMode = ExecutionMode.POOLED,
    fs: FileSystem = DEFAULT_FS,
) -> WalkResult:
    return default_walker(workers=workers, mode=mode, fs=fs).walk(path, options)


__all__ = [
    "ExecutionStrategy",
    "PooledStrategy",
    "SequentialStrategy",
    "TreeWalker",
    "Walker",
    "default_walker",
    "resolve_root",
    "walk_tree",
]
