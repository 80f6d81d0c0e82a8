"""Tests for tmux output parsing and client command lines."""

import logging
from unittest.mock import AsyncMock

import pytest

from panebridge.infra.tmux import CommandResult, TmuxClient, parse_pane_line


@pytest.fixture
def run(monkeypatch):
    mock = AsyncMock(return_value=CommandResult(0, ""))
    monkeypatch.setattr("panebridge.infra.tmux.run_command", mock)
    return mock


class TestParsePaneLine:
    def test_basic(self):
        pane = parse_pane_line("%3 work claude 2 0 claude /home/me/repo 4242")
        assert pane is not None
        assert pane.pane_id == "%3"
        assert pane.session == "work"
        assert pane.window_name == "claude"
        assert pane.window_index == "2"
        assert pane.pane_index == "0"
        assert pane.foreground_command == "claude"
        assert pane.working_directory == "/home/me/repo"
        assert pane.process_id == 4242

    def test_path_with_spaces(self):
        pane = parse_pane_line("%1 s w 0 1 node /home/me/my repo 77")
        assert pane.working_directory == "/home/me/my repo"
        assert pane.process_id == 77

    def test_rejects_short_line(self):
        assert parse_pane_line("%1 s w 0") is None

    def test_rejects_bad_id(self):
        assert parse_pane_line("1 s w 0 0 zsh /tmp 5") is None

    def test_rejects_bad_indices(self):
        assert parse_pane_line("%1 s w x 0 zsh /tmp 5") is None


class TestCommandResult:
    def test_flags(self):
        assert CommandResult(0).ok
        assert CommandResult(124).timed_out
        assert not CommandResult(1).ok


class TestTmuxClient:
    @pytest.mark.asyncio
    async def test_list_panes(self, run):
        run.return_value = CommandResult(
            0,
            "%1 a zsh 0 0 zsh /tmp 10\n\ngarbage\n%2 a claude 1 0 claude /repo 11\n",
        )
        panes = await TmuxClient().list_panes()
        assert [p.pane_id for p in panes] == ["%1", "%2"]

    @pytest.mark.asyncio
    async def test_list_panes_failure_is_empty(self, run):
        run.return_value = CommandResult(1, "", "no server running")
        assert await TmuxClient().list_panes() == []

    @pytest.mark.asyncio
    async def test_pane_exists(self, run):
        run.return_value = CommandResult(0, "%5\n")
        assert await TmuxClient().pane_exists("%5")
        run.return_value = CommandResult(1, "", "can't find pane")
        assert not await TmuxClient().pane_exists("%5")

    @pytest.mark.asyncio
    async def test_pane_exists_empty_id(self, run):
        assert not await TmuxClient().pane_exists("")
        run.assert_not_called()

    @pytest.mark.asyncio
    async def test_capture_includes_history_rows(self, run):
        run.return_value = CommandResult(0, "text")
        content = await TmuxClient(probe_timeout=1.5).capture_pane("%2", lines=10)
        assert content == "text"
        args = run.call_args.args
        assert args == ("tmux", "capture-pane", "-p", "-t", "%2", "-S", "-10")
        assert run.call_args.kwargs["timeout"] == 1.5

    @pytest.mark.asyncio
    async def test_capture_timeout_is_none(self, run, caplog):
        run.return_value = CommandResult(124, "", "timeout")
        with caplog.at_level(logging.WARNING, logger="panebridge.infra.tmux"):
            assert await TmuxClient().capture_pane("%2") is None
        assert "timed out" in caplog.text

    @pytest.mark.asyncio
    async def test_capture_failure_is_none(self, run, caplog):
        run.return_value = CommandResult(1, "", "can't find pane: %2")
        with caplog.at_level(logging.WARNING, logger="panebridge.infra.tmux"):
            assert await TmuxClient().capture_pane("%2") is None
        assert "timed out" not in caplog.text

    @pytest.mark.asyncio
    async def test_new_window(self, run):
        run.return_value = CommandResult(0, "work 4 %9\n")
        created = await TmuxClient().new_window("/repo", "claude", "claude --continue")
        assert created.session == "work"
        assert created.window_index == "4"
        assert created.pane_id == "%9"
        args = run.call_args.args
        assert "-d" in args
        assert args[args.index("-c") + 1] == "/repo"
        assert args[-1] == "claude --continue"

    @pytest.mark.asyncio
    async def test_new_window_failure(self, run):
        run.return_value = CommandResult(1, "", "boom")
        assert await TmuxClient().new_window("/repo", "claude", "claude") is None

    @pytest.mark.asyncio
    async def test_load_buffer_uses_stdin(self, run):
        assert await TmuxClient().load_buffer("buf", "payload")
        assert run.call_args.args == ("tmux", "load-buffer", "-b", "buf", "-")
        assert run.call_args.kwargs["input_text"] == "payload"

    @pytest.mark.asyncio
    async def test_paste_buffer_bracketed(self, run):
        await TmuxClient().paste_buffer("buf", "%3")
        assert run.call_args.args == ("tmux", "paste-buffer", "-b", "buf", "-t", "%3", "-p")
        await TmuxClient().paste_buffer("buf", "%3", bracketed=False)
        assert "-p" not in run.call_args.args
