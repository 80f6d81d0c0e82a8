"""Readiness probing from rendered pane content.

Terminal output is ambiguous, so the checks run in a fixed order and lean
towards "not ready": pasting into a busy assistant loses the input, while a
false "not ready" only costs the user a retry.
"""

from __future__ import annotations

import logging
import re
from enum import Enum

from panebridge.infra.tmux import TmuxClient
from panebridge.models.candidate import truncate_line
from panebridge.models.result import Readiness

logger = logging.getLogger(__name__)

PROMPT_BORDER = re.compile(r"╭─+╮")
CURSOR_PROMPT = "│ >"
EMPTY_INPUT = re.compile(r"^\s*│\s*>\s*│?\s*$", re.MULTILINE)
FILLED_INPUT = re.compile(r"^\s*│\s*>\s*[^\s│]", re.MULTILINE)
BOX_CHARS = "╭╮╰╯│─"

SPINNER_GLYPHS = ("⣾", "⣽", "⣻", "⢿", "⣯", "⣷")

# (pattern, reason) pairs, checked in order; first hit wins.
BLOCKING_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"Select a workspace"), "In workspace selection menu"),
    (re.compile(r"Do you want to"), "Waiting for confirmation"),
    (re.compile(r"Enter to confirm|❯\s*\d+\.\s"), "In selection menu"),
    (re.compile(r"Press Enter", re.IGNORECASE), "Waiting for Enter key"),
    (re.compile(r"Checking for updates|Auto-updating", re.IGNORECASE), "Checking for updates"),
    (re.compile("[" + "".join(SPINNER_GLYPHS) + "]"), "Still loading"),
    (re.compile(r"esc to interrupt", re.IGNORECASE), "Assistant is responding"),
    (re.compile(r"\bThinking\b|thinking…"), "Assistant is thinking"),
    (
        re.compile(r"API Error|authentication failed|command not found", re.IGNORECASE),
        "Showing an error",
    ),
]


class PromptEvidence(str, Enum):
    """How convincingly the rendered content shows the assistant's prompt."""

    NONE = "none"
    WEAK = "weak"
    STRONG = "strong"


def prompt_evidence(content: str) -> PromptEvidence:
    """Full ``╭─…─╮`` border is strong; a cursor prompt or loose corners is weak."""
    if PROMPT_BORDER.search(content):
        return PromptEvidence.STRONG
    if CURSOR_PROMPT in content or ("╭" in content and "╮" in content):
        return PromptEvidence.WEAK
    return PromptEvidence.NONE


def last_visible_line(content: str) -> str:
    """Nearest non-empty line above the prompt border, shortened for display."""
    lines = content.splitlines()
    border_at = None
    for i in range(len(lines) - 1, -1, -1):
        if PROMPT_BORDER.search(lines[i]):
            border_at = i
            break
    if border_at is None:
        return ""
    for line in reversed(lines[:border_at]):
        text = line.strip().strip(BOX_CHARS).strip()
        if text:
            return truncate_line(text)
    return ""


def evaluate(content: str) -> Readiness:
    """Decide readiness from captured pane text."""
    for pattern, reason in BLOCKING_PATTERNS:
        if pattern.search(content):
            return Readiness(False, reason)
    if EMPTY_INPUT.search(content):
        return Readiness(True)
    if FILLED_INPUT.search(content):
        return Readiness(False, "Input box has existing content")
    if prompt_evidence(content) == PromptEvidence.STRONG:
        return Readiness(True)
    return Readiness(False, "Cannot determine state")


def tail_rows(content: str, rows: int) -> str:
    """The last ``rows`` lines of ``content`` after dropping trailing blank rows.

    ``capture-pane -S -N`` returns the visible screen plus N rows of history;
    only the bottom of that is the live state of the pane.
    """
    lines = content.splitlines()
    while lines and not lines[-1].strip():
        lines.pop()
    return "\n".join(lines[-rows:]) + "\n" if lines else ""


class ReadinessProber:
    """Captures pane content and interprets it."""

    def __init__(self, tmux: TmuxClient, capture_lines: int = 10) -> None:
        self._tmux = tmux
        self.capture_lines = capture_lines

    async def capture(self, pane_id: str, full_screen: bool = False) -> str | None:
        if full_screen:
            return await self._tmux.capture_pane(pane_id, lines=None)
        content = await self._tmux.capture_pane(pane_id, lines=self.capture_lines)
        if content is None:
            return None
        return tail_rows(content, self.capture_lines)

    async def probe_prompt(
        self, pane_id: str, full_screen: bool = False,
    ) -> tuple[PromptEvidence, str]:
        """Prompt evidence plus the captured text (empty on failure)."""
        content = await self.capture(pane_id, full_screen=full_screen)
        if content is None:
            return PromptEvidence.NONE, ""
        return prompt_evidence(content), content

    async def is_ready(self, pane_id: str) -> Readiness:
        content = await self.capture(pane_id)
        if content is None:
            # A timed-out or failed capture is a negative result, not an error
            return Readiness(False, "Pane is no longer available")
        readiness = evaluate(content)
        logger.debug(
            "Readiness of %s: %s (%s)", pane_id, readiness.ready, readiness.reason or "-",
        )
        return readiness
