"""Assistant candidate domain model."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from panebridge.models.pane import PaneRecord


class DetectionMethod(str, Enum):
    """How a pane was classified as hosting the assistant."""

    RENDERED_PROMPT_MATCH = "rendered-prompt-match"
    CHILD_PROCESS_MATCH = "child-process-match"
    EXACT_COMMAND_MATCH = "exact-command-match"
    PATH_MATCH = "path-match"
    WINDOW_NAME_MATCH = "window-name-match"
    AGGRESSIVE_FALLBACK = "aggressive-fallback"
    NEWLY_CREATED = "newly-created"

    @property
    def priority(self) -> int:
        """Higher wins when several methods accept the same pane."""
        return _PRIORITY[self]

    @property
    def short_tag(self) -> str:
        return _TAGS[self]

    @classmethod
    def strongest(cls, methods: list[DetectionMethod]) -> DetectionMethod | None:
        if not methods:
            return None
        return max(methods, key=lambda m: m.priority)


_PRIORITY = {
    DetectionMethod.RENDERED_PROMPT_MATCH: 60,
    DetectionMethod.CHILD_PROCESS_MATCH: 50,
    DetectionMethod.EXACT_COMMAND_MATCH: 40,
    DetectionMethod.PATH_MATCH: 30,
    DetectionMethod.WINDOW_NAME_MATCH: 20,
    DetectionMethod.AGGRESSIVE_FALLBACK: 10,
    # Never competes with discovery; it is assigned by the provisioner only.
    DetectionMethod.NEWLY_CREATED: 0,
}

_TAGS = {
    DetectionMethod.RENDERED_PROMPT_MATCH: "[prompt]",
    DetectionMethod.CHILD_PROCESS_MATCH: "[child]",
    DetectionMethod.EXACT_COMMAND_MATCH: "[cmd]",
    DetectionMethod.PATH_MATCH: "[path]",
    DetectionMethod.WINDOW_NAME_MATCH: "[name]",
    DetectionMethod.AGGRESSIVE_FALLBACK: "[auto]",
    DetectionMethod.NEWLY_CREATED: "[new]",
}

DISPLAY_NAME_LENGTH = 40
LAST_LINE_TRUNCATE = 37


def truncate_line(line: str) -> str:
    """Shorten a rendered line for chooser labels."""
    if len(line) > DISPLAY_NAME_LENGTH:
        return line[:LAST_LINE_TRUNCATE] + "..."
    return line


@dataclass(frozen=True)
class AssistantCandidate:
    """A pane believed to host an assistant bound to a repository root."""

    pane: PaneRecord
    detection_method: DetectionMethod
    is_current_session: bool = False
    last_visible_line: str = ""

    @property
    def pane_id(self) -> str:
        return self.pane.pane_id

    @property
    def session(self) -> str:
        return self.pane.session

    @property
    def window_index(self) -> str:
        return self.pane.window_index

    @property
    def is_newly_created(self) -> bool:
        return self.detection_method == DetectionMethod.NEWLY_CREATED

    @property
    def display(self) -> str:
        name = self.last_visible_line or self.pane.window_name or "assistant"
        return (
            f"{self.pane.session}: {self.pane.window_index}.{self.pane.pane_index} "
            f"({name}) {self.detection_method.short_tag}"
        )

    def sort_key(self) -> tuple:
        """Current-session candidates first, then by pane identifier."""
        return (not self.is_current_session, _pane_number(self.pane.pane_id), self.pane.pane_id)

    def with_pane(self, pane: PaneRecord) -> AssistantCandidate:
        """Return a copy bound to a different pane snapshot."""
        return AssistantCandidate(
            pane=pane,
            detection_method=self.detection_method,
            is_current_session=self.is_current_session,
            last_visible_line=self.last_visible_line,
        )

    def to_doc(self) -> dict:
        return {
            "pane": self.pane.to_doc(),
            "detection_method": self.detection_method.value,
            "is_current_session": self.is_current_session,
            "last_visible_line": self.last_visible_line,
        }

    @classmethod
    def from_doc(cls, doc: dict) -> AssistantCandidate:
        return cls(
            pane=PaneRecord.from_doc(doc["pane"]),
            detection_method=DetectionMethod(doc["detection_method"]),
            is_current_session=doc.get("is_current_session", False),
            last_visible_line=doc.get("last_visible_line", ""),
        )


def _pane_number(pane_id: str) -> int:
    digits = pane_id.lstrip("%")
    return int(digits) if digits.isdigit() else -1


def order_candidates(candidates: list[AssistantCandidate]) -> list[AssistantCandidate]:
    """Deterministic chooser order."""
    return sorted(candidates, key=lambda c: c.sort_key())
