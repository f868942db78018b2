from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from treesize.models.enums import ExecutionMode


@dataclass(slots=True)
class AppConfig:
    workers: int | None = None
    mode: ExecutionMode = ExecutionMode.POOLED
    fail_fast: bool = False
    strict: bool = False
    human_readable: bool = False
    max_errors_shown: int = 20

    def to_dict(self) -> dict[str, Any]:
        return {
            "workers": self.workers,
            "mode": self.mode.value,
            "failFast": self.fail_fast,
            "strict": self.strict,
            "humanReadable": self.human_readable,
            "maxErrorsShown": self.max_errors_shown,
        }


def _parse_mode(value: Any, default: ExecutionMode) -> ExecutionMode:
    try:
        return ExecutionMode(str(value))
    except ValueError:
        return default


def from_dict(data: dict[str, Any], defaults: AppConfig) -> AppConfig:
    workers_raw = data.get("workers", defaults.workers)

    return AppConfig(
        workers=max(1, int(workers_raw)) if workers_raw is not None else None,
        mode=_parse_mode(data.get("mode", defaults.mode.value), defaults.mode),
        fail_fast=bool(data.get("failFast", defaults.fail_fast)),
        strict=bool(data.get("strict", defaults.strict)),
        human_readable=bool(data.get("humanReadable", defaults.human_readable)),
        max_errors_shown=max(0, int(data.get("maxErrorsShown", defaults.max_errors_shown))),
    )
