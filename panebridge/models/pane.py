"""Multiplexer pane and OS process snapshots."""

from __future__ import annotations

import re
from dataclasses import dataclass

_WORD_SPLIT = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True)
class PaneRecord:
    """One tmux pane as reported by ``list-panes``.

    A snapshot only: any topology change makes it stale, so it is never kept
    beyond a single routing operation without re-validation.
    """

    pane_id: str
    session: str
    window_name: str = ""
    window_index: str = "0"
    pane_index: str = "0"
    foreground_command: str = ""
    working_directory: str = ""
    process_id: int | None = None

    @property
    def target(self) -> str:
        """Fully qualified ``session:window.pane`` address."""
        return f"{self.session}:{self.window_index}.{self.pane_index}"

    @property
    def window_target(self) -> str:
        return f"{self.session}:{self.window_index}"

    def with_window_name(self, window_name: str) -> PaneRecord:
        """Return a copy with an updated window name."""
        return PaneRecord(
            pane_id=self.pane_id,
            session=self.session,
            window_name=window_name,
            window_index=self.window_index,
            pane_index=self.pane_index,
            foreground_command=self.foreground_command,
            working_directory=self.working_directory,
            process_id=self.process_id,
        )

    def to_doc(self) -> dict:
        return {
            "pane_id": self.pane_id,
            "session": self.session,
            "window_name": self.window_name,
            "window_index": self.window_index,
            "pane_index": self.pane_index,
            "foreground_command": self.foreground_command,
            "working_directory": self.working_directory,
            "process_id": self.process_id,
        }

    @classmethod
    def from_doc(cls, doc: dict) -> PaneRecord:
        return cls(
            pane_id=doc["pane_id"],
            session=doc.get("session", ""),
            window_name=doc.get("window_name", ""),
            window_index=str(doc.get("window_index", "0")),
            pane_index=str(doc.get("pane_index", "0")),
            foreground_command=doc.get("foreground_command", ""),
            working_directory=doc.get("working_directory", ""),
            process_id=doc.get("process_id"),
        )


@dataclass(frozen=True)
class ProcessRecord:
    """Process table entry used to bridge a pane's shell pid to the assistant."""

    pid: int
    parent_pid: int | None = None
    working_directory: str = ""
    command_line: str = ""

    def mentions(self, token: str) -> bool:
        """True if ``token`` appears as a whole word in the command line."""
        return token.lower() in _WORD_SPLIT.split(self.command_line.lower())
