"""tmux client: pane listing, capture, window creation, buffers, focus."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from panebridge.models.pane import PaneRecord

logger = logging.getLogger(__name__)

# Fields are space-delimited; the working directory may contain spaces, so
# pane_pid goes last and the path is re-joined from the middle.
PANE_FORMAT = (
    "#{pane_id} #{session_name} #{window_name} #{window_index} #{pane_index} "
    "#{pane_current_command} #{pane_current_path} #{pane_pid}"
)

TIMEOUT_RETURNCODE = 124


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one external command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def timed_out(self) -> bool:
        return self.returncode == TIMEOUT_RETURNCODE


@dataclass(frozen=True)
class CreatedWindow:
    """What ``new-window -P`` reports about the window it just made."""

    session: str
    window_index: str
    pane_id: str


async def run_command(
    *args: str,
    timeout: float = 3.0,
    input_text: str | None = None,
) -> CommandResult:
    """Run an external command, never raising for failure or timeout."""
    try:
        proc = await asyncio.create_subprocess_exec(
            *args,
            stdin=asyncio.subprocess.PIPE if input_text is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except (FileNotFoundError, PermissionError) as e:
        logger.debug("Cannot execute %s: %s", args[0], e)
        return CommandResult(127, "", str(e))

    data = input_text.encode() if input_text is not None else None
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(data), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        logger.debug("Command timed out after %.1fs: %s", timeout, " ".join(args))
        return CommandResult(TIMEOUT_RETURNCODE, "", "timeout")

    result = CommandResult(
        proc.returncode if proc.returncode is not None else 1,
        stdout.decode(errors="replace"),
        stderr.decode(errors="replace"),
    )
    if not result.ok:
        logger.debug(
            "Command failed (rc=%d): %s: %s",
            result.returncode, " ".join(args), result.stderr.strip(),
        )
    return result


def parse_pane_line(line: str) -> PaneRecord | None:
    """Parse one ``list-panes`` line produced with :data:`PANE_FORMAT`."""
    parts = line.rstrip("\n").split(" ")
    if len(parts) < 8 or not parts[0].startswith("%"):
        logger.debug("Unparseable pane line: %r", line)
        return None
    pane_id, session, window_name, window_index, pane_index, command = parts[:6]
    pid_field = parts[-1].strip()
    working_directory = " ".join(parts[6:-1]).rstrip()
    if not window_index.isdigit() or not pane_index.isdigit():
        logger.debug("Unparseable pane indices: %r", line)
        return None
    return PaneRecord(
        pane_id=pane_id,
        session=session,
        window_name=window_name,
        window_index=window_index,
        pane_index=pane_index,
        foreground_command=command,
        working_directory=working_directory,
        process_id=int(pid_field) if pid_field.isdigit() else None,
    )


class TmuxClient:
    """Thin async wrapper over the tmux command line."""

    def __init__(self, command_timeout: float = 3.0, probe_timeout: float = 2.0) -> None:
        self.command_timeout = command_timeout
        self.probe_timeout = probe_timeout

    async def _tmux(
        self, *args: str, timeout: float | None = None, input_text: str | None = None,
    ) -> CommandResult:
        return await run_command(
            "tmux", *args,
            timeout=timeout or self.command_timeout,
            input_text=input_text,
        )

    async def is_available(self) -> bool:
        """True if a tmux server is reachable."""
        result = await self._tmux("info")
        return result.ok

    async def current_session(self) -> str:
        """Session of the calling client; empty outside tmux."""
        result = await self._tmux("display-message", "-p", "#{session_name}")
        return result.stdout.strip() if result.ok else ""

    async def list_panes(self) -> list[PaneRecord]:
        """Every pane on the server. Failure yields an empty list."""
        result = await self._tmux("list-panes", "-a", "-F", PANE_FORMAT)
        if not result.ok:
            logger.debug("list-panes failed; treating as zero panes")
            return []
        panes: list[PaneRecord] = []
        for line in result.stdout.splitlines():
            if not line.strip():
                continue
            pane = parse_pane_line(line)
            if pane:
                panes.append(pane)
        return panes

    async def pane_exists(self, pane_id: str) -> bool:
        """Liveness check for a pane identifier."""
        if not pane_id:
            return False
        result = await self._tmux("display-message", "-p", "-t", pane_id, "#{pane_id}")
        return result.ok and result.stdout.strip() == pane_id

    async def capture_pane(self, pane_id: str, lines: int | None = None) -> str | None:
        """Rendered text of a pane: the visible screen, plus ``lines`` rows of history.

        ``None`` means the capture failed or timed out.
        """
        args = ["capture-pane", "-p", "-t", pane_id]
        if lines:
            args.extend(["-S", f"-{lines}"])
        result = await self._tmux(*args, timeout=self.probe_timeout)
        if result.timed_out:
            logger.warning(
                "capture-pane for %s timed out after %.1fs", pane_id, self.probe_timeout,
            )
            return None
        if not result.ok:
            logger.debug("capture-pane for %s failed: %s", pane_id, result.stderr.strip())
            return None
        return result.stdout

    async def new_window(
        self, cwd: str, window_name: str, command: str,
    ) -> CreatedWindow | None:
        """Create a detached window running ``command`` in ``cwd``."""
        result = await self._tmux(
            "new-window", "-d",
            "-c", cwd,
            "-n", window_name,
            "-P", "-F", "#{session_name} #{window_index} #{pane_id}",
            command,
        )
        if not result.ok:
            logger.warning("tmux new-window failed: %s", result.stderr.strip())
            return None
        parts = result.stdout.strip().split(" ")
        if len(parts) != 3:
            logger.warning("Unexpected new-window output: %r", result.stdout)
            return None
        return CreatedWindow(session=parts[0], window_index=parts[1], pane_id=parts[2])

    async def rename_window(self, target: str, name: str) -> bool:
        result = await self._tmux("rename-window", "-t", target, name)
        return result.ok

    async def select_window(self, target: str) -> bool:
        result = await self._tmux("select-window", "-t", target)
        return result.ok

    async def select_pane(self, target: str) -> bool:
        result = await self._tmux("select-pane", "-t", target)
        return result.ok

    async def switch_client(self, target: str) -> bool:
        result = await self._tmux("switch-client", "-t", target)
        return result.ok

    async def load_buffer(self, buffer_name: str, text: str) -> bool:
        """Load ``text`` into a named paste buffer from stdin."""
        result = await self._tmux("load-buffer", "-b", buffer_name, "-", input_text=text)
        return result.ok

    async def paste_buffer(
        self, buffer_name: str, pane_id: str, bracketed: bool = True,
    ) -> bool:
        args = ["paste-buffer", "-b", buffer_name, "-t", pane_id]
        if bracketed:
            args.append("-p")
        result = await self._tmux(*args)
        return result.ok

    async def delete_buffer(self, buffer_name: str) -> bool:
        result = await self._tmux("delete-buffer", "-b", buffer_name)
        return result.ok
