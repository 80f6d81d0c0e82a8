"""Arbitration: turn a repository root into exactly one target instance.

State machine::

    Idle -> Resolving -> {Create, UseSingle, UseCached, Choose} -> Delivering -> Done | Failed
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from panebridge.errors import PanebridgeError, SelectionCancelled
from panebridge.infra.tmux import TmuxClient
from panebridge.models.candidate import AssistantCandidate, order_candidates
from panebridge.services.cache import InstanceCache
from panebridge.services.classifier import InstanceClassifier
from panebridge.services.provisioner import InstanceProvisioner

logger = logging.getLogger(__name__)

CREATE_NEW_LABEL = "Create new instance"


class ArbitrationState(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    CREATE = "create"
    USE_SINGLE = "use_single"
    USE_CACHED = "use_cached"
    CHOOSE = "choose"
    DELIVERING = "delivering"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ArbitrationState.DONE, ArbitrationState.FAILED)


_RESOLVED = (
    ArbitrationState.CREATE,
    ArbitrationState.USE_SINGLE,
    ArbitrationState.USE_CACHED,
)

VALID_TRANSITIONS: dict[ArbitrationState, set[ArbitrationState]] = {
    ArbitrationState.IDLE: {ArbitrationState.RESOLVING},
    ArbitrationState.RESOLVING: {*_RESOLVED, ArbitrationState.CHOOSE, ArbitrationState.FAILED},
    ArbitrationState.CHOOSE: {
        ArbitrationState.CREATE, ArbitrationState.DELIVERING, ArbitrationState.FAILED,
    },
    ArbitrationState.CREATE: {ArbitrationState.DELIVERING, ArbitrationState.FAILED},
    ArbitrationState.USE_SINGLE: {ArbitrationState.DELIVERING, ArbitrationState.FAILED},
    ArbitrationState.USE_CACHED: {ArbitrationState.DELIVERING, ArbitrationState.FAILED},
    ArbitrationState.DELIVERING: {ArbitrationState.DONE, ArbitrationState.FAILED},
    ArbitrationState.DONE: set(),
    ArbitrationState.FAILED: set(),
}


class InvalidTransitionError(Exception):
    """Raised when a state transition is not allowed."""

    def __init__(self, from_state: ArbitrationState, to_state: ArbitrationState) -> None:
        super().__init__(f"Invalid transition: {from_state.value} -> {to_state.value}")
        self.from_state = from_state
        self.to_state = to_state


@dataclass(frozen=True)
class ChoiceOption:
    """One entry offered to the chooser; ``candidate=None`` means create new."""

    label: str
    candidate: AssistantCandidate | None = None

    @property
    def creates_new(self) -> bool:
        return self.candidate is None


class Chooser(Protocol):
    """External choice between several candidates."""

    async def choose(self, options: list[ChoiceOption]) -> int | None:
        """Return the 0-based index of the chosen option, or None to cancel."""
        ...


def build_options(candidates: list[AssistantCandidate]) -> list[ChoiceOption]:
    """Ordered candidates plus the synthetic create-new entry last."""
    options = [ChoiceOption(label=c.display, candidate=c) for c in order_candidates(candidates)]
    options.append(ChoiceOption(label=CREATE_NEW_LABEL))
    return options


@dataclass(frozen=True)
class Resolution:
    """The instance arbitration settled on and how it got there."""

    state: ArbitrationState
    candidate: AssistantCandidate
    candidates: tuple[AssistantCandidate, ...] = ()
    cached: bool = False


class Arbitrator:
    """Resolves a root to one instance: cached, sole, chosen, or newly created."""

    def __init__(
        self,
        tmux: TmuxClient,
        classifier: InstanceClassifier,
        cache: InstanceCache,
        provisioner: InstanceProvisioner,
        chooser: Chooser,
        remember: bool = True,
    ) -> None:
        self._tmux = tmux
        self._classifier = classifier
        self._cache = cache
        self._provisioner = provisioner
        self._chooser = chooser
        self.remember = remember
        self._state = ArbitrationState.IDLE
        self._history: list[ArbitrationState] = [ArbitrationState.IDLE]

    @property
    def state(self) -> ArbitrationState:
        return self._state

    @property
    def history(self) -> list[ArbitrationState]:
        return list(self._history)

    def transition(self, to_state: ArbitrationState) -> None:
        if to_state not in VALID_TRANSITIONS[self._state]:
            raise InvalidTransitionError(self._state, to_state)
        logger.debug("Arbitration %s -> %s", self._state.value, to_state.value)
        self._state = to_state
        self._history.append(to_state)

    def fail(self) -> None:
        """Move to Failed from any non-terminal state."""
        if not self._state.is_terminal and self._state != ArbitrationState.IDLE:
            self.transition(ArbitrationState.FAILED)

    def reset(self) -> None:
        self._state = ArbitrationState.IDLE
        self._history = [ArbitrationState.IDLE]

    async def resolve(
        self,
        root: str,
        launch_args: tuple[str, ...] | list[str] = (),
        use_existing: bool = True,
    ) -> Resolution:
        """Settle on a target for ``root``.

        With ``use_existing=False`` the cache and discovery are skipped and a
        new instance is always provisioned.
        """
        if self._state.is_terminal:
            self.reset()
        self.transition(ArbitrationState.RESOLVING)
        try:
            return await self._resolve(root, tuple(launch_args), use_existing)
        except PanebridgeError:
            self.fail()
            raise

    async def _resolve(
        self, root: str, launch_args: tuple[str, ...], use_existing: bool,
    ) -> Resolution:
        current_session = await self._tmux.current_session()

        if not use_existing:
            self.transition(ArbitrationState.CREATE)
            candidate = await self._provisioner.provision(root, launch_args, current_session)
            return Resolution(ArbitrationState.CREATE, candidate)

        cached = await self.cached_binding(root, current_session)
        if cached is not None:
            self.transition(ArbitrationState.USE_CACHED)
            return Resolution(ArbitrationState.USE_CACHED, cached, (cached,), cached=True)

        candidates = await self._classifier.discover(root, current_session=current_session)

        if not candidates:
            self.transition(ArbitrationState.CREATE)
            candidate = await self._provisioner.provision(root, launch_args, current_session)
            remembered = self._remember(root, candidate)
            return Resolution(ArbitrationState.CREATE, candidate, (), cached=remembered)

        if len(candidates) == 1:
            self.transition(ArbitrationState.USE_SINGLE)
            candidate = candidates[0]
            remembered = self._remember(root, candidate)
            return Resolution(
                ArbitrationState.USE_SINGLE, candidate, tuple(candidates), cached=remembered,
            )

        self.transition(ArbitrationState.CHOOSE)
        options = build_options(candidates)
        index = await self._chooser.choose(options)
        if index is None or not 0 <= index < len(options):
            raise SelectionCancelled(
                f"No instance chosen among {len(candidates)} candidates for {root}"
            )
        option = options[index]
        if option.creates_new:
            self.transition(ArbitrationState.CREATE)
            candidate = await self._provisioner.provision(root, launch_args, current_session)
            return Resolution(ArbitrationState.CREATE, candidate, tuple(candidates))
        # An ambiguous resolution is never remembered.
        return Resolution(ArbitrationState.CHOOSE, option.candidate, tuple(candidates))

    async def cached_binding(
        self, root: str, current_session: str | None = None,
    ) -> AssistantCandidate | None:
        """Cached candidate for ``root`` re-bound to the live pane table.

        The stored pane snapshot may be from an earlier invocation, so the pane
        id is looked up again and its session, window and current-session flag
        are taken from the live record. Entries whose pane is gone are cleared.
        """
        cached = self._cache.get(root)
        if cached is None:
            return None
        live = None
        for pane in await self._tmux.list_panes():
            if pane.pane_id == cached.pane_id:
                live = pane
                break
        if live is None:
            logger.debug("Remembered pane %s for %s is gone", cached.pane_id, root)
            self._cache.clear(root)
            return None

        if current_session is None:
            current_session = await self._tmux.current_session()
        refreshed = AssistantCandidate(
            pane=live,
            detection_method=cached.detection_method,
            is_current_session=bool(current_session) and live.session == current_session,
            last_visible_line=cached.last_visible_line,
        )
        if refreshed.pane != cached.pane:
            logger.debug(
                "Remembered %s moved from %s to %s", cached.pane_id, cached.pane.target, live.target,
            )
        logger.debug("Using remembered %s for %s", cached.pane_id, root)
        return refreshed

    def _remember(self, root: str, candidate: AssistantCandidate) -> bool:
        if not self.remember:
            return False
        self._cache.set(root, candidate)
        return True
