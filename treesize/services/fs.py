from __future__ import annotations

import os
import stat as statmod
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Protocol

from treesize.models.enums import EntryKind


@dataclass(slots=True, frozen=True)
class StatResult:
    size: int
    kind: EntryKind

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY


@dataclass(slots=True, frozen=True)
class DirEntry:
    path: str
    name: str


class FileSystem(Protocol):
    def expanduser(self, path: str) -> str: ...

    def exists(self, path: str) -> bool: ...

    def resolve(self, path: str) -> str: ...

    def stat(self, path: str) -> StatResult:
        """Stat *path* without following a trailing symlink."""
        ...

    def scandir(self, path: str) -> Iterable[DirEntry]: ...

    def read_text(self, path: str, encoding: str = "utf-8") -> str: ...


def _kind(mode: int) -> EntryKind:
    if statmod.S_ISREG(mode):
        return EntryKind.FILE
    if statmod.S_ISDIR(mode):
        return EntryKind.DIRECTORY
    return EntryKind.OTHER


class OsFileSystem:
    def expanduser(self, path: str) -> str:
        return str(Path(path).expanduser())

    def exists(self, path: str) -> bool:
        return Path(path).exists()

    def resolve(self, path: str) -> str:
        return str(Path(path).resolve())

    def stat(self, path: str) -> StatResult:
        st = os.stat(path, follow_symlinks=False)
        return StatResult(size=st.st_size, kind=_kind(st.st_mode))

    def scandir(self, path: str) -> Iterable[DirEntry]:
        # Materialized so that a read error mid-listing fails the whole listing.
        with os.scandir(path) as entries:
            return [DirEntry(path=e.path, name=e.name) for e in entries]

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        return Path(path).read_text(encoding=encoding)


DEFAULT_FS: FileSystem = OsFileSystem()
