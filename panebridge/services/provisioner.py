"""Instance provisioning: start the assistant in a new tmux window."""

from __future__ import annotations

import asyncio
import logging

from panebridge.config import AssistantConfig, ProvisionConfig
from panebridge.errors import ProvisionFailed
from panebridge.infra.tmux import CreatedWindow, TmuxClient
from panebridge.models.candidate import AssistantCandidate, DetectionMethod
from panebridge.models.launch import LaunchSpec
from panebridge.models.pane import PaneRecord
from panebridge.services.retry import Sleep, retry_until

logger = logging.getLogger(__name__)


class InstanceProvisioner:
    """Creates a window running the launcher and confirms its pane exists.

    Only pane existence is awaited here. Waiting for the assistant's input
    prompt is left to delivery.
    """

    def __init__(
        self,
        tmux: TmuxClient,
        assistant: AssistantConfig | None = None,
        provision: ProvisionConfig | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._tmux = tmux
        self._assistant = assistant or AssistantConfig()
        self._provision = provision or ProvisionConfig()
        self._sleep = sleep

    def launch_spec(self, launch_args: tuple[str, ...] | list[str] = ()) -> LaunchSpec:
        return LaunchSpec(program=self._assistant.launcher, args=tuple(launch_args))

    async def provision(
        self,
        root: str,
        launch_args: tuple[str, ...] | list[str] = (),
        current_session: str = "",
    ) -> AssistantCandidate:
        """Start the launcher in ``root`` and return the new pane as a candidate."""
        spec = self.launch_spec(launch_args)
        window_name = self._assistant.window_name
        created = await self._tmux.new_window(root, window_name, spec.full_command)
        if created is None:
            raise ProvisionFailed(f"Could not create a {window_name} window in {root}")
        logger.info(
            "Created window %s:%s (%s) running %s",
            created.session, created.window_index, created.pane_id, spec.full_command,
        )

        await self._sleep(self._provision.startup_delay)

        async def _locate() -> PaneRecord | None:
            panes = await self._tmux.list_panes()
            return locate_created_pane(panes, created, window_name)

        outcome = await retry_until(
            _locate,
            attempts=self._provision.locate_attempts,
            base_delay=self._provision.locate_delay,
            sleep=self._sleep,
            description=f"locating new pane {created.pane_id}",
        )
        pane = outcome.value
        if pane is None:
            raise ProvisionFailed(
                f"New window {created.session}:{created.window_index} disappeared "
                "before its pane could be found",
                pane_id=created.pane_id,
            )

        return AssistantCandidate(
            pane=pane,
            detection_method=DetectionMethod.NEWLY_CREATED,
            is_current_session=bool(current_session) and pane.session == current_session,
        )


def locate_created_pane(
    panes: list[PaneRecord], created: CreatedWindow, window_name: str,
) -> PaneRecord | None:
    """Find the new pane by id and expected window name, else by window index."""
    for pane in panes:
        if pane.pane_id == created.pane_id and pane.window_name == window_name:
            return pane
    for pane in panes:
        if pane.session == created.session and pane.window_index == created.window_index:
            logger.debug(
                "Located new pane by window index %s: %s", created.window_index, pane.pane_id,
            )
            return pane
    return None
