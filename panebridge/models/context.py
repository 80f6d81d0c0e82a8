"""Editor working context and the payload built from it."""

from __future__ import annotations

from dataclasses import dataclass

from panebridge.models.candidate import AssistantCandidate


@dataclass(frozen=True)
class WorkingContext:
    """What the editor hands over: file, cursor, selection, owning repository."""

    file_path: str
    repository_root: str = ""
    cursor_line: int = 1
    cursor_column: int = 1
    selection_text: str | None = None
    file_content: str = ""

    def with_repository_root(self, root: str) -> WorkingContext:
        return WorkingContext(
            file_path=self.file_path,
            repository_root=root,
            cursor_line=self.cursor_line,
            cursor_column=self.cursor_column,
            selection_text=self.selection_text,
            file_content=self.file_content,
        )


@dataclass(frozen=True)
class DeliveryPayload:
    """Formatted text bound for one assistant pane."""

    text: str
    target: AssistantCandidate
