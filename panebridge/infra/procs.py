"""Process table correlation: pid -> parent, cwd, command line -> pane."""

from __future__ import annotations

import logging
import re

from panebridge.infra.tmux import run_command
from panebridge.models.pane import PaneRecord, ProcessRecord

logger = logging.getLogger(__name__)


def _standalone(token: str) -> re.Pattern[str]:
    """Match ``token`` as a program name: start of line, after whitespace or a slash."""
    return re.compile(rf"(?:^|[\s/]){re.escape(token)}(?:\s|$)")


def parse_ps_line(line: str) -> ProcessRecord | None:
    """Parse a ``pid ppid args...`` line; tolerates padding and trailing spaces."""
    parts = line.strip().split(None, 2)
    if len(parts) < 2 or not parts[0].isdigit() or not parts[1].isdigit():
        return None
    return ProcessRecord(
        pid=int(parts[0]),
        parent_pid=int(parts[1]),
        command_line=parts[2].strip() if len(parts) > 2 else "",
    )


def parse_lsof_cwd(output: str) -> str:
    """Extract the cwd name from ``lsof -Fn`` field output."""
    for line in output.splitlines():
        if line.startswith("n"):
            return line[1:].strip()
    return ""


class ProcessCorrelator:
    """Bridges pane pids and assistant pids through the OS process table."""

    def __init__(self, command_timeout: float = 3.0) -> None:
        self.command_timeout = command_timeout

    async def working_directory(self, pid: int) -> str:
        """cwd of a foreign pid, read from its open-file-descriptor table."""
        result = await run_command(
            "lsof", "-a", "-d", "cwd", "-p", str(pid), "-Fn",
            timeout=self.command_timeout,
        )
        if not result.ok:
            return ""
        return parse_lsof_cwd(result.stdout)

    async def resolve_process(self, pid: int) -> ProcessRecord | None:
        """Parent pid, working directory and command line for ``pid``."""
        result = await run_command(
            "ps", "-o", "pid=,ppid=,args=", "-p", str(pid),
            timeout=self.command_timeout,
        )
        if not result.ok:
            return None
        record = None
        for line in result.stdout.splitlines():
            record = parse_ps_line(line)
            if record:
                break
        if record is None:
            return None
        cwd = await self.working_directory(pid)
        return ProcessRecord(
            pid=record.pid,
            parent_pid=record.parent_pid,
            working_directory=cwd,
            command_line=record.command_line,
        )

    async def child_pids(self, pid: int, name: str) -> list[int]:
        """Direct children of ``pid`` whose process name is exactly ``name``."""
        result = await run_command(
            "pgrep", "-P", str(pid), "-x", name,
            timeout=self.command_timeout,
        )
        if not result.ok:
            return []
        return [int(p) for p in result.stdout.split() if p.isdigit()]

    async def children(self, pid: int) -> list[ProcessRecord]:
        """Direct children of ``pid`` with their command lines."""
        result = await run_command(
            "ps", "-eo", "pid=,ppid=,args=",
            timeout=self.command_timeout,
        )
        if not result.ok:
            return []
        kids = []
        for line in result.stdout.splitlines():
            record = parse_ps_line(line)
            if record and record.parent_pid == pid:
                kids.append(record)
        return kids

    async def find_processes(self, launcher: str) -> list[ProcessRecord]:
        """Every process whose command line names ``launcher`` as a program."""
        result = await run_command(
            "ps", "-eo", "pid=,ppid=,args=",
            timeout=self.command_timeout,
        )
        if not result.ok:
            return []
        pattern = _standalone(launcher)
        found = []
        for line in result.stdout.splitlines():
            record = parse_ps_line(line)
            if record and pattern.search(record.command_line):
                found.append(record)
        return found

    async def find_pane_by_pid(
        self,
        pid: int,
        panes: list[PaneRecord],
        parent_pid: int | None = None,
    ) -> PaneRecord | None:
        """Pane hosting ``pid``, matched on the pane's own pid or the parent pid.

        The assistant may be the pane's foreground process or a child of the
        pane's shell, so both are tried.
        """
        for pane in panes:
            if pane.process_id == pid:
                return pane
        if parent_pid is None:
            record = await self.resolve_process(pid)
            parent_pid = record.parent_pid if record else None
        if parent_pid is None:
            return None
        for pane in panes:
            if pane.process_id == parent_pid:
                return pane
        return None
