from __future__ import annotations

from enum import Enum


class EntryKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"
    OTHER = "other"


class ExecutionMode(str, Enum):
    POOLED = "pooled"
    SEQUENTIAL = "sequential"
