"""Instance classification: which panes host an assistant for a repository root."""

from __future__ import annotations

import logging
import os

from panebridge.config import AssistantConfig
from panebridge.infra.procs import ProcessCorrelator
from panebridge.infra.tmux import TmuxClient
from panebridge.models.candidate import AssistantCandidate, DetectionMethod, order_candidates
from panebridge.models.pane import PaneRecord
from panebridge.services.readiness import PromptEvidence, ReadinessProber, last_visible_line

logger = logging.getLogger(__name__)


def same_directory(a: str, b: str) -> bool:
    """Exact directory equality; a subdirectory is a different directory."""
    if not a or not b:
        return False
    return os.path.normpath(a) == os.path.normpath(b)


def _command_name(command: str) -> str:
    return command.rsplit("/", 1)[-1]


class InstanceClassifier:
    """Ordered detection heuristics over pane metadata, processes and rendered text."""

    def __init__(
        self,
        tmux: TmuxClient,
        procs: ProcessCorrelator,
        prober: ReadinessProber,
        assistant: AssistantConfig | None = None,
        deny_commands: list[str] | None = None,
    ) -> None:
        self._tmux = tmux
        self._procs = procs
        self._prober = prober
        self._assistant = assistant or AssistantConfig()
        self._deny = set(deny_commands or [])

    @property
    def launcher(self) -> str:
        return self._assistant.launcher

    @property
    def canonical_name(self) -> str:
        return self._assistant.window_name

    async def classify(
        self, pane: PaneRecord, root: str, current_session: str = "",
    ) -> AssistantCandidate | None:
        """Classify one pane against ``root``; None means rejected."""
        if not same_directory(pane.working_directory, root):
            return None

        methods: list[DetectionMethod] = []
        command = pane.foreground_command
        if command == self.launcher:
            methods.append(DetectionMethod.EXACT_COMMAND_MATCH)
        elif command.endswith("/" + self.launcher):
            methods.append(DetectionMethod.PATH_MATCH)
        elif _command_name(command) in self._assistant.host_runtimes:
            if await self._has_launcher_child(pane):
                methods.append(DetectionMethod.CHILD_PROCESS_MATCH)

        # Always probe: it is the strongest confirmation and weeds out
        # processes that merely share the launcher's name.
        evidence, content = await self._prober.probe_prompt(pane.pane_id)
        if evidence == PromptEvidence.STRONG:
            methods.append(DetectionMethod.RENDERED_PROMPT_MATCH)
        elif methods and DetectionMethod.CHILD_PROCESS_MATCH not in methods:
            if not await self._process_confirms(pane):
                logger.debug(
                    "Rejecting %s: %s matched by name only", pane.pane_id, command,
                )
                methods = []

        method = DetectionMethod.strongest(methods)
        if method is None:
            if (
                pane.window_name.lower() == self.canonical_name.lower()
                and evidence != PromptEvidence.NONE
            ):
                method = DetectionMethod.WINDOW_NAME_MATCH
            else:
                return None

        candidate = AssistantCandidate(
            pane=pane,
            detection_method=method,
            is_current_session=bool(current_session) and pane.session == current_session,
            last_visible_line=last_visible_line(content),
        )
        logger.debug("Classified %s as %s", pane.pane_id, method.value)
        if method != DetectionMethod.WINDOW_NAME_MATCH:
            candidate = await self.ensure_canonical_name(candidate)
        return candidate

    async def classify_fallback(
        self, pane: PaneRecord, root: str, current_session: str = "",
    ) -> AssistantCandidate | None:
        """Looser acceptance used only when the ordered pass found nothing."""
        if not same_directory(pane.working_directory, root):
            return None
        if _command_name(pane.foreground_command) in self._deny:
            return None

        evidence, content = await self._prober.probe_prompt(pane.pane_id, full_screen=True)
        accepted = evidence != PromptEvidence.NONE
        if not accepted:
            accepted = await self._process_confirms(pane, self._tokens())
        if not accepted:
            return None

        candidate = AssistantCandidate(
            pane=pane,
            detection_method=DetectionMethod.AGGRESSIVE_FALLBACK,
            is_current_session=bool(current_session) and pane.session == current_session,
            last_visible_line=last_visible_line(content),
        )
        return await self.ensure_canonical_name(candidate)

    async def discover(
        self,
        root: str,
        panes: list[PaneRecord] | None = None,
        current_session: str | None = None,
    ) -> list[AssistantCandidate]:
        """Classify every pane for ``root``, falling back to the aggressive pass."""
        if panes is None:
            panes = await self._tmux.list_panes()
        if current_session is None:
            current_session = await self._tmux.current_session()

        candidates = []
        for pane in panes:
            candidate = await self.classify(pane, root, current_session)
            if candidate:
                candidates.append(candidate)

        if not candidates:
            logger.debug("No candidates for %s; running aggressive fallback", root)
            candidates = await self._aggressive(root, panes, current_session)

        logger.debug("Discovered %d candidate(s) for %s", len(candidates), root)
        return order_candidates(candidates)

    async def _aggressive(
        self, root: str, panes: list[PaneRecord], current_session: str,
    ) -> list[AssistantCandidate]:
        found: dict[str, AssistantCandidate] = {}
        for pane in panes:
            candidate = await self.classify_fallback(pane, root, current_session)
            if candidate:
                found[candidate.pane_id] = candidate

        for proc in await self._procs.find_processes(self.launcher):
            cwd = await self._procs.working_directory(proc.pid)
            if not same_directory(cwd, root):
                continue
            pane = await self._procs.find_pane_by_pid(proc.pid, panes, parent_pid=proc.parent_pid)
            if pane is None or pane.pane_id in found:
                continue
            if not same_directory(pane.working_directory, root):
                continue
            logger.debug("Process %d maps to pane %s", proc.pid, pane.pane_id)
            candidate = AssistantCandidate(
                pane=pane,
                detection_method=DetectionMethod.AGGRESSIVE_FALLBACK,
                is_current_session=bool(current_session) and pane.session == current_session,
            )
            found[pane.pane_id] = await self.ensure_canonical_name(candidate)
        return list(found.values())

    async def ensure_canonical_name(self, candidate: AssistantCandidate) -> AssistantCandidate:
        """Rename the hosting window to the canonical name; best-effort."""
        pane = candidate.pane
        if pane.window_name == self.canonical_name:
            return candidate
        renamed = await self._tmux.rename_window(pane.window_target, self.canonical_name)
        if not renamed:
            logger.debug("Could not rename window %s", pane.window_target)
            return candidate
        logger.debug(
            "Renamed window %s from %r to %r",
            pane.window_target, pane.window_name, self.canonical_name,
        )
        return candidate.with_pane(pane.with_window_name(self.canonical_name))

    def _tokens(self) -> list[str]:
        return [self.launcher, *self._assistant.vendor_tokens]

    async def _has_launcher_child(self, pane: PaneRecord) -> bool:
        if pane.process_id is None:
            return False
        return bool(await self._procs.child_pids(pane.process_id, self.launcher))

    async def _process_confirms(self, pane: PaneRecord, tokens: list[str] | None = None) -> bool:
        """True if the pane process or one of its children names a token."""
        if pane.process_id is None:
            return False
        tokens = tokens or [self.launcher]
        record = await self._procs.resolve_process(pane.process_id)
        if record and any(record.mentions(t) for t in tokens):
            return True
        for child in await self._procs.children(pane.process_id):
            if any(child.mentions(t) for t in tokens):
                return True
        return False
