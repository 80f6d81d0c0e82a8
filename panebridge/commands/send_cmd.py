"""CLI handler for sending editor context to an assistant instance."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from panebridge.commands._helpers import _run, get_app_context, report
from panebridge.models.context import WorkingContext
from panebridge.models.launch import LaunchMode


def _read_file(path: Path) -> str:
    try:
        return path.read_text(errors="replace")
    except OSError as e:
        raise click.FileError(str(path), hint=str(e)) from e


@click.command("send")
@click.argument("file_path", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--line", "-l", "line", default=1, show_default=True, help="Cursor line (1-based)")
@click.option("--column", "-c", "column", default=1, show_default=True, help="Cursor column (1-based)")
@click.option("--selection", "-s", default=None, help="Selected text")
@click.option("--selection-stdin", is_flag=True, help="Read the selected text from stdin")
@click.option("--root", "-r", default="", help="Repository root (skips git lookup)")
@click.option("--new", "-n", "new", is_flag=True, help="Always start a new instance, no continuation")
@click.option("--no-focus", is_flag=True, help="Do not switch to the assistant pane")
@click.option("--no-remember", is_flag=True, help="Do not remember the resolved instance")
def send_command(
    file_path: Path,
    line: int,
    column: int,
    selection: str | None,
    selection_stdin: bool,
    root: str,
    new: bool,
    no_focus: bool,
    no_remember: bool,
):
    """Send FILE_PATH's context to the assistant for its repository."""
    if selection is not None and selection_stdin:
        raise click.UsageError("--selection and --selection-stdin are mutually exclusive")
    if selection_stdin:
        selection = sys.stdin.read()

    file_path = file_path.expanduser().resolve()
    context = WorkingContext(
        file_path=str(file_path),
        repository_root=str(Path(root).expanduser().resolve()) if root else "",
        cursor_line=line,
        cursor_column=column,
        selection_text=selection,
        file_content=_read_file(file_path) if file_path.exists() else "",
    )
    mode = LaunchMode.NEW if new else LaunchMode.CONTINUE

    async def _send():
        app = get_app_context(remember=False if no_remember else None)
        return await app.router.send(
            context, mode=mode, auto_focus=False if no_focus else None,
        )

    report(_run(_send()))
