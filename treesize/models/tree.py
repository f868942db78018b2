from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from result import Result


ProgressCallback = Callable[[str, int, int], None]
CancelCheck = Callable[[], bool]


@dataclass(slots=True, frozen=True)
class DirNode:
    path: str
    size: int = 0
    children: tuple[DirNode, ...] = ()

    @property
    def name(self) -> str:
        return os.path.basename(os.path.normpath(self.path)) or self.path


@dataclass(slots=True, frozen=True)
class WalkStats:
    files: int = 0
    directories: int = 0
    errors: int = 0


@dataclass(slots=True, frozen=True)
class WalkOptions:
    fail_fast: bool = False


class WalkErrorCode(str, Enum):
    NOT_FOUND = "not_found"
    NOT_DIRECTORY = "not_directory"
    ROOT_STAT_FAILED = "root_stat_failed"
    LISTING_FAILED = "listing_failed"
    METADATA_FAILED = "metadata_failed"
    CONCURRENCY_FAILURE = "concurrency_failure"
    CANCELLED = "cancelled"
    INTERNAL = "internal"


@dataclass(slots=True, frozen=True)
class WalkError:
    code: WalkErrorCode
    path: str
    message: str


@dataclass(slots=True, frozen=True)
class WalkSnapshot:
    root: DirNode
    stats: WalkStats
    errors: tuple[WalkError, ...] = ()

    @property
    def degraded(self) -> bool:
        """True when some subtree or entry could not be read."""
        return bool(self.errors)


WalkResult = Result[WalkSnapshot, WalkError]
