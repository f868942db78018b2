from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath

from treesize.models.enums import EntryKind
from treesize.services.fs import DirEntry, StatResult


@dataclass
class _MockEntry:
    kind: EntryKind
    size: int = 0
    content: str = ""


class MemoryFileSystem:
    """In-memory tree with hooks for the failures a real disk can produce."""

    def __init__(self) -> None:
        self._entries: dict[str, _MockEntry] = {}
        self._denied: set[str] = set()
        self._vanished: set[str] = set()

    def add_dir(self, path: str) -> MemoryFileSystem:
        self._add(path, _MockEntry(kind=EntryKind.DIRECTORY))
        return self

    def add_file(self, path: str, size: int = 0, content: str = "") -> MemoryFileSystem:
        self._add(path, _MockEntry(kind=EntryKind.FILE, size=size, content=content))
        return self

    def add_symlink(self, path: str) -> MemoryFileSystem:
        # Link targets are irrelevant: the walker never follows them.
        self._add(path, _MockEntry(kind=EntryKind.OTHER, size=4096))
        return self

    def deny(self, path: str) -> MemoryFileSystem:
        """Make listing *path* fail with a permission error."""
        self._denied.add(self._normalize(path))
        return self

    def vanish(self, path: str) -> MemoryFileSystem:
        """Keep *path* in its parent's listing but fail every stat of it."""
        self._vanished.add(self._normalize(path))
        return self

    def _add(self, path: str, entry: _MockEntry) -> None:
        key = self._normalize(path)
        # auto-create parent dirs
        for parent in reversed(PurePosixPath(key).parents):
            pk = str(parent)
            if pk not in self._entries:
                self._entries[pk] = _MockEntry(kind=EntryKind.DIRECTORY)
        self._entries[key] = entry

    def expanduser(self, path: str) -> str:
        return path.replace("~", "/mock/home")

    def exists(self, path: str) -> bool:
        return self._normalize(path) in self._entries

    def resolve(self, path: str) -> str:
        return self._normalize(path)

    def stat(self, path: str) -> StatResult:
        key = self._normalize(path)
        entry = self._entries.get(key)
        if entry is None or key in self._vanished:
            raise FileNotFoundError(f"No such file or directory: '{key}'")
        return StatResult(size=entry.size, kind=entry.kind)

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        key = self._normalize(path)
        entry = self._entries.get(key)
        if entry is None:
            raise FileNotFoundError(f"No such file or directory: '{key}'")
        return entry.content

    def scandir(self, path: str) -> list[DirEntry]:
        key = self._normalize(path)
        entry = self._entries.get(key)
        if entry is None:
            raise FileNotFoundError(f"No such file or directory: '{key}'")
        if entry.kind is not EntryKind.DIRECTORY:
            raise NotADirectoryError(f"Not a directory: '{key}'")
        if key in self._denied:
            raise PermissionError(f"Permission denied: '{key}'")
        prefix = key.rstrip("/") + "/"
        result: list[DirEntry] = []
        for p in self._entries:
            if not p.startswith(prefix) or p == key:
                continue
            remainder = p[len(prefix) :]
            if "/" in remainder:
                continue
            result.append(DirEntry(path=p, name=remainder))
        return result

    @staticmethod
    def _normalize(path: str) -> str:
        return path.rstrip("/") or "/"
