from __future__ import annotations

from treesize.config.schema import AppConfig
from treesize.models.enums import ExecutionMode


def default_config() -> AppConfig:
    return AppConfig(
        workers=None,
        mode=ExecutionMode.POOLED,
        fail_fast=False,
        strict=False,
        human_readable=False,
        max_errors_shown=20,
    )
