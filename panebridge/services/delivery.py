"""Delivery channel: load-then-paste into an assistant pane, then focus it."""

from __future__ import annotations

import asyncio
import logging

from panebridge.config import DeliveryConfig
from panebridge.errors import DeliveryFailed, PaneVanished
from panebridge.infra.tmux import TmuxClient
from panebridge.models.candidate import AssistantCandidate
from panebridge.models.context import DeliveryPayload
from panebridge.models.result import DeliveryReport
from panebridge.services.readiness import ReadinessProber
from panebridge.services.retry import Sleep, retry_until

logger = logging.getLogger(__name__)


class DeliveryChannel:
    """Transfers a payload into a pane through a named tmux buffer."""

    def __init__(
        self,
        tmux: TmuxClient,
        delivery: DeliveryConfig | None = None,
        prober: ReadinessProber | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._tmux = tmux
        self._config = delivery or DeliveryConfig()
        self._prober = prober
        self._sleep = sleep

    async def deliver(
        self, payload: DeliveryPayload, auto_focus: bool | None = None,
    ) -> DeliveryReport:
        """Paste ``payload.text`` into ``payload.target``.

        Raises :class:`PaneVanished` when the target cannot be found even by
        window index, and :class:`DeliveryFailed` when the buffer cannot be
        loaded or every paste attempt fails. A failed focus switch after a
        successful paste is reported as a warning, not a failure.
        """
        candidate = payload.target
        if auto_focus is None:
            auto_focus = self._config.auto_switch_pane

        if candidate.is_newly_created:
            await self._sleep(self._config.new_instance_delay)
            await self._wait_for_new_instance(candidate)

        candidate = await self._ensure_target(candidate)
        pane_id = candidate.pane_id

        if not await self._tmux.select_window(candidate.pane.window_target):
            logger.debug("Could not activate window %s", candidate.pane.window_target)

        buffer_name = self._config.buffer_name
        if not await self._tmux.load_buffer(buffer_name, payload.text):
            raise DeliveryFailed("Could not load the payload into a tmux buffer", pane_id=pane_id)

        async def _paste() -> bool:
            return await self._tmux.paste_buffer(
                buffer_name, pane_id, bracketed=self._config.bracketed_paste,
            )

        outcome = await retry_until(
            _paste,
            attempts=self._config.paste_retries,
            base_delay=self._config.retry_base_delay,
            sleep=self._sleep,
            description=f"paste into {pane_id}",
        )
        await self._tmux.delete_buffer(buffer_name)
        if not outcome.succeeded:
            raise DeliveryFailed(
                f"Paste into {pane_id} failed after {outcome.attempts} attempts",
                pane_id=pane_id,
            )
        logger.info("Delivered %d chars to %s", len(payload.text), pane_id)

        focused = False
        warning = ""
        if auto_focus:
            focused = await self.focus(candidate)
            if not focused:
                warning = f"Payload delivered but could not switch to {candidate.pane.target}"
                logger.warning(warning)

        return DeliveryReport(
            ok=True,
            pane_id=pane_id,
            attempts=outcome.attempts,
            focused=focused,
            warning=warning,
        )

    async def focus(self, candidate: AssistantCandidate) -> bool:
        """Select the owning window, then the pane; falls back to the full address."""
        pane = candidate.pane
        if not await self._tmux.pane_exists(pane.pane_id):
            logger.debug("Pane %s vanished before focus", pane.pane_id)
            return False
        if not candidate.is_current_session:
            await self._tmux.switch_client(pane.window_target)
        await self._tmux.select_window(pane.window_target)
        if await self._tmux.select_pane(pane.pane_id):
            return True
        logger.debug("select-pane %s failed, retrying with %s", pane.pane_id, pane.target)
        return await self._tmux.select_pane(pane.target)

    async def resolve_by_window(self, candidate: AssistantCandidate) -> AssistantCandidate | None:
        """Find the pane now living in the candidate's window.

        A pane id can change while its window persists.
        """
        panes = await self._tmux.list_panes()
        in_window = [
            p for p in panes
            if p.session == candidate.session and p.window_index == candidate.window_index
        ]
        if not in_window:
            return None
        for pane in in_window:
            if pane.pane_index == candidate.pane.pane_index:
                return candidate.with_pane(pane)
        return candidate.with_pane(in_window[0])

    async def _ensure_target(self, candidate: AssistantCandidate) -> AssistantCandidate:
        if await self._tmux.pane_exists(candidate.pane_id):
            return candidate
        logger.debug("Pane %s is gone; re-resolving by window index", candidate.pane_id)
        replacement = await self.resolve_by_window(candidate)
        if replacement is None:
            raise PaneVanished(
                f"Pane {candidate.pane_id} ({candidate.pane.target}) no longer exists",
                pane_id=candidate.pane_id,
            )
        logger.info("Re-resolved %s to %s", candidate.pane_id, replacement.pane_id)
        return replacement

    async def _wait_for_new_instance(self, candidate: AssistantCandidate) -> None:
        """Poll a fresh instance for its prompt; gives up quietly after the last cycle."""
        if self._prober is None:
            return
        for cycle in range(self._config.ready_wait_cycles):
            readiness = await self._prober.is_ready(candidate.pane_id)
            if readiness.ready:
                return
            logger.debug(
                "New instance %s not ready (%s), cycle %d/%d",
                candidate.pane_id, readiness.reason, cycle + 1, self._config.ready_wait_cycles,
            )
            await self._sleep(self._config.ready_cycle_delay)
        logger.info("New instance %s never reported ready; delivering anyway", candidate.pane_id)
