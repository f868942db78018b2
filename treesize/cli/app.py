from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console, Group
from rich.live import Live
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.spinner import Spinner
from rich.text import Text
from result import Err

from treesize.config.defaults import default_config
from treesize.config.loader import load_config, sample_config_json
from treesize.models.enums import ExecutionMode
from treesize.models.tree import WalkError, WalkErrorCode, WalkOptions, WalkResult
from treesize.services.summary import render_report
from treesize.walk import Walker, default_walker

console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)

EXIT_ROOT_FAILED = 1
EXIT_DEGRADED = 2


@dataclass(slots=True)
class _WalkProgress:
    current_path: str
    files: int
    directories: int
    start_time: float


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _truncate_path(path: str, max_width: int = 110) -> str:
    if len(path) <= max_width:
        return path
    keep = max_width - 3
    return f"...{path[-keep:]}"


def _render_walk_panel(progress: _WalkProgress, workers: int, phase: str) -> Panel:
    elapsed = time.perf_counter() - progress.start_time
    body = Group(
        Spinner("dots", text=phase, style="bold #8abeb7"),
        Text.from_markup(f"[#81a2be]Path:[/] {escape(_truncate_path(progress.current_path))}"),
        Text.from_markup(
            f"[#b5bd68]Walked:[/] {progress.directories:,} dirs, {progress.files:,} files"
            + f"    [#f0c674]Workers:[/] {workers}"
            + f"    [#de935f]Elapsed:[/] {elapsed:.1f}s"
        ),
    )
    return Panel(
        body,
        title="[bold #81a2be]treesize - Walking...[/]",
        border_style="#373b41",
    )


def _walk_with_progress(path: Path, options: WalkOptions, walker: Walker) -> WalkResult:
    lock = threading.Lock()
    done = threading.Event()
    result: WalkResult | None = None
    progress = _WalkProgress(
        current_path=str(path),
        files=0,
        directories=0,
        start_time=time.perf_counter(),
    )

    def on_progress(current_path: str, files: int, directories: int) -> None:
        with lock:
            progress.current_path = current_path
            progress.files = files
            progress.directories = directories

    def walk_worker() -> None:
        nonlocal result
        try:
            result = walker.walk(str(path), options, progress_callback=on_progress)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Walk of %s crashed", path)
            result = Err(
                WalkError(
                    code=WalkErrorCode.INTERNAL,
                    path=str(path),
                    message=f"Unhandled walk failure: {exc}",
                )
            )
        finally:
            done.set()

    thread = threading.Thread(target=walk_worker, daemon=True)
    thread.start()

    with Live(
        _render_walk_panel(progress, walker.workers, "Walking directory tree..."),
        console=err_console,
        refresh_per_second=12,
        transient=True,
    ) as live:
        while not done.is_set():
            with lock:
                snapshot = replace(progress)
            live.update(_render_walk_panel(snapshot, walker.workers, "Walking directory tree..."))
            time.sleep(0.08)

    thread.join()
    if result is None:
        return Err(
            WalkError(
                code=WalkErrorCode.INTERNAL,
                path=str(path),
                message="Walk did not complete",
            )
        )
    return result


def run(
    path: Annotated[str, typer.Argument(help="Directory to measure.")] = ".",
    workers: Annotated[int | None, typer.Option("--workers", "-w", help="Number of walk workers.")] = None,
    sequential: Annotated[
        bool | None,
        typer.Option("--sequential/--pooled", help="Walk in a single thread, or on the worker pool."),
    ] = None,
    fail_fast: Annotated[bool, typer.Option("--fail-fast", help="Abort on the first unreadable entry.")] = False,
    strict: Annotated[bool, typer.Option("--strict", help="Exit non-zero when results are partial.")] = False,
    human: Annotated[bool, typer.Option("--human", "-H", help="Print sizes like 1.5K, 12M.")] = False,
    config_path: Annotated[str | None, typer.Option("--config", help="Path to a JSON config file.")] = None,
    sample_config: Annotated[bool, typer.Option("--sample-config", help="Print sample config JSON.")] = False,
    verbose: Annotated[int, typer.Option("--verbose", "-v", count=True, help="Log more (repeat for debug).")] = 0,
) -> None:
    _configure_logging(verbose)

    if sample_config:
        console.print(sample_config_json())
        raise typer.Exit(0)

    config_result = load_config(config_path)
    if isinstance(config_result, Err):
        console.print(f"[yellow]{escape(config_result.unwrap_err())} Using defaults.[/]")
        config = default_config()
    else:
        config = config_result.unwrap()

    overrides: dict[str, object] = {}
    if workers is not None:
        overrides["workers"] = max(1, workers)
    if sequential is not None:
        overrides["mode"] = ExecutionMode.SEQUENTIAL if sequential else ExecutionMode.POOLED
    if fail_fast:
        overrides["fail_fast"] = True
    if strict:
        overrides["strict"] = True
    if human:
        overrides["human_readable"] = True
    if overrides:
        config = replace(config, **overrides)

    start = time.perf_counter()
    walker = default_walker(workers=config.workers, mode=config.mode)
    root = Path(path)
    console.print(f"path: {escape(str(root.expanduser().resolve()))}", highlight=False)

    walk_result = _walk_with_progress(root, WalkOptions(fail_fast=config.fail_fast), walker)
    if isinstance(walk_result, Err):
        error = walk_result.unwrap_err()
        console.print(f"[red]Walk failed for {escape(error.path)}: {escape(error.message)}[/]")
        raise typer.Exit(EXIT_ROOT_FAILED)
    snapshot = walk_result.unwrap()

    render_report(
        console,
        snapshot,
        human=config.human_readable,
        max_errors=config.max_errors_shown,
    )
    console.print(f"Time elapsed is: {time.perf_counter() - start:.3f}s", highlight=False)

    if snapshot.degraded and config.strict:
        raise typer.Exit(EXIT_DEGRADED)


def cli() -> None:
    typer.run(run)


if __name__ == "__main__":
    cli()
