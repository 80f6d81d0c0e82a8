"""Payload templating for a working context."""

from __future__ import annotations

from panebridge.config import DEFAULT_TEMPLATE
from panebridge.models.context import WorkingContext


def build_payload(context: WorkingContext, template: str = DEFAULT_TEMPLATE) -> str:
    """Render ``context`` through ``template``.

    Without an explicit selection the payload carries the line under the
    cursor, read from the file content.
    """
    selection = context.selection_text
    if selection is None:
        lines = context.file_content.splitlines()
        index = context.cursor_line - 1
        selection = lines[index] if 0 <= index < len(lines) else ""

    return template.format(
        file_path=context.file_path,
        repository_root=context.repository_root,
        cursor_line=context.cursor_line,
        cursor_column=context.cursor_column,
        selection=selection,
        file_content=context.file_content,
    )
