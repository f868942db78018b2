from __future__ import annotations

from rich.console import Console
from rich.markup import escape

from treesize.models.tree import WalkError, WalkSnapshot
from treesize.services.formatting import format_size
from treesize.services.tree import ranked_children


def _error_line(error: WalkError) -> str:
    return f"[red]  {error.code.value}:[/] {escape(error.path)} ({escape(error.message)})"


def render_errors(console: Console, errors: tuple[WalkError, ...], max_shown: int) -> None:
    count = len(errors)
    noun = "error" if count == 1 else "errors"
    console.print(f"[yellow]{count:,} {noun}; results are partial[/]")
    for error in errors[:max_shown]:
        console.print(_error_line(error))
    hidden = count - max_shown
    if hidden > 0:
        console.print(f"[yellow]  ... and {hidden:,} more[/]")


def render_report(
    console: Console,
    snapshot: WalkSnapshot,
    *,
    human: bool = False,
    max_errors: int = 20,
) -> None:
    """Print the total size followed by one ``<name> - <size>`` line per child."""
    total = format_size(snapshot.root.size, human=human)
    if snapshot.degraded:
        console.print(f"size: {total} [yellow](partial)[/]")
    else:
        console.print(f"size: {total}")

    for child in ranked_children(snapshot.root):
        console.print(f"{escape(child.name)} - {format_size(child.size, human=human)}", highlight=False)

    if snapshot.degraded:
        render_errors(console, snapshot.errors, max_errors)
