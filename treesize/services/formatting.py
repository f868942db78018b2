from __future__ import annotations

SUFFIXES = ["K", "M", "G", "T", "P", "E"]


def format_human(size: int) -> str:
    """Format *size* the way ``du -h`` does: ``512``, ``1.5K``, ``12M``."""
    if size < 1024:
        return str(max(0, size))
    value = float(size)
    suffix = ""
    for suffix in SUFFIXES:
        value /= 1024.0
        if value < 1024:
            break
    if value < 10:
        return f"{value:.1f}{suffix}"
    return f"{int(round(value))}{suffix}"


def format_size(size: int, *, human: bool = False) -> str:
    return format_human(size) if human else str(size)
