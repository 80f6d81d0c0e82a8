"""Tests for pane and process records."""

from panebridge.models.pane import PaneRecord, ProcessRecord


class TestPaneRecord:
    def test_targets(self):
        pane = PaneRecord(pane_id="%4", session="dev", window_index="2", pane_index="1")
        assert pane.target == "dev:2.1"
        assert pane.window_target == "dev:2"

    def test_with_window_name(self):
        pane = PaneRecord(pane_id="%4", session="dev", window_name="node", process_id=12)
        renamed = pane.with_window_name("claude")
        assert renamed.window_name == "claude"
        assert renamed.process_id == 12
        assert pane.window_name == "node"

    def test_from_doc_defaults(self):
        pane = PaneRecord.from_doc({"pane_id": "%1", "window_index": 3})
        assert pane.window_index == "3"
        assert pane.session == ""
        assert pane.process_id is None


class TestProcessRecord:
    def test_mentions_program(self):
        proc = ProcessRecord(pid=1, command_line="/usr/local/bin/claude --continue")
        assert proc.mentions("claude")

    def test_mentions_package_path(self):
        proc = ProcessRecord(
            pid=1, command_line="node /usr/lib/node_modules/@anthropic-ai/claude-code/cli.js",
        )
        assert proc.mentions("anthropic")
        assert proc.mentions("claude")

    def test_does_not_match_substring(self):
        proc = ProcessRecord(pid=1, command_line="vim claudette.txt")
        assert not proc.mentions("claude")
