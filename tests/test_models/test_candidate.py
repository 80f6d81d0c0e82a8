"""Tests for assistant candidate model."""

from panebridge.models.candidate import (
    AssistantCandidate,
    DetectionMethod,
    order_candidates,
    truncate_line,
)
from panebridge.models.pane import PaneRecord


def _candidate(pane_id: str, session: str = "work", current: bool = False, **kwargs):
    pane = PaneRecord(pane_id=pane_id, session=session, window_index="1", pane_index="0")
    return AssistantCandidate(
        pane=pane,
        detection_method=kwargs.get("method", DetectionMethod.EXACT_COMMAND_MATCH),
        is_current_session=current,
        last_visible_line=kwargs.get("line", ""),
    )


class TestDetectionMethod:
    def test_priority_order(self):
        ordered = [
            DetectionMethod.RENDERED_PROMPT_MATCH,
            DetectionMethod.CHILD_PROCESS_MATCH,
            DetectionMethod.EXACT_COMMAND_MATCH,
            DetectionMethod.PATH_MATCH,
            DetectionMethod.WINDOW_NAME_MATCH,
            DetectionMethod.AGGRESSIVE_FALLBACK,
        ]
        priorities = [m.priority for m in ordered]
        assert priorities == sorted(priorities, reverse=True)

    def test_strongest_prefers_prompt(self):
        methods = [DetectionMethod.EXACT_COMMAND_MATCH, DetectionMethod.RENDERED_PROMPT_MATCH]
        assert DetectionMethod.strongest(methods) == DetectionMethod.RENDERED_PROMPT_MATCH

    def test_strongest_empty(self):
        assert DetectionMethod.strongest([]) is None

    def test_values(self):
        assert DetectionMethod("path-match") == DetectionMethod.PATH_MATCH
        assert DetectionMethod.NEWLY_CREATED.value == "newly-created"


class TestAssistantCandidate:
    def test_display_uses_last_line(self):
        c = _candidate("%3", line="Refactored the parser")
        assert c.display == "work: 1.0 (Refactored the parser) [cmd]"

    def test_display_falls_back_to_window_name(self):
        pane = PaneRecord(pane_id="%3", session="work", window_name="claude", window_index="2")
        c = AssistantCandidate(pane=pane, detection_method=DetectionMethod.WINDOW_NAME_MATCH)
        assert c.display == "work: 2.0 (claude) [name]"

    def test_newly_created(self):
        assert _candidate("%1", method=DetectionMethod.NEWLY_CREATED).is_newly_created
        assert not _candidate("%1").is_newly_created

    def test_doc_preserves_fields(self):
        c = _candidate("%9", session="dev", current=True, line="hi")
        restored = AssistantCandidate.from_doc(c.to_doc())
        assert restored == c

    def test_with_pane_keeps_method(self):
        c = _candidate("%1", method=DetectionMethod.PATH_MATCH)
        moved = c.with_pane(PaneRecord(pane_id="%7", session="work"))
        assert moved.pane_id == "%7"
        assert moved.detection_method == DetectionMethod.PATH_MATCH


class TestOrdering:
    def test_current_session_first(self):
        other = _candidate("%1", session="other")
        mine = _candidate("%5", session="work", current=True)
        assert order_candidates([other, mine]) == [mine, other]

    def test_pane_number_order_is_numeric(self):
        a = _candidate("%10")
        b = _candidate("%2")
        assert [c.pane_id for c in order_candidates([a, b])] == ["%2", "%10"]

    def test_ordering_is_deterministic(self):
        cs = [_candidate("%4"), _candidate("%1", current=True), _candidate("%3")]
        assert order_candidates(cs) == order_candidates(list(reversed(cs)))


class TestTruncateLine:
    def test_short_line_unchanged(self):
        assert truncate_line("short") == "short"

    def test_long_line_truncated(self):
        result = truncate_line("x" * 50)
        assert len(result) == 40
        assert result.endswith("...")

    def test_exact_limit_unchanged(self):
        assert truncate_line("y" * 40) == "y" * 40
