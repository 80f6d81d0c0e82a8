"""Context routing: the operations behind the consumer-facing commands."""

from __future__ import annotations

import logging

from panebridge.config import AppConfig
from panebridge.errors import (
    InstanceNotReady,
    MultiplexerUnavailable,
    NoRepositoryRoot,
    PanebridgeError,
)
from panebridge.infra.git import find_repository_root
from panebridge.infra.payload import build_payload
from panebridge.infra.tmux import TmuxClient
from panebridge.models.candidate import AssistantCandidate
from panebridge.models.context import DeliveryPayload, WorkingContext
from panebridge.models.launch import LaunchMode
from panebridge.models.result import Readiness, ResultReason, RouteResult
from panebridge.services.arbitrator import ArbitrationState, Arbitrator
from panebridge.services.cache import InstanceCache
from panebridge.services.classifier import InstanceClassifier
from panebridge.services.delivery import DeliveryChannel
from panebridge.services.readiness import ReadinessProber

logger = logging.getLogger(__name__)


class ContextRouter:
    """Routes a working context to one assistant instance for its repository."""

    def __init__(
        self,
        config: AppConfig,
        tmux: TmuxClient,
        classifier: InstanceClassifier,
        prober: ReadinessProber,
        cache: InstanceCache,
        arbitrator: Arbitrator,
        delivery: DeliveryChannel,
    ) -> None:
        self._config = config
        self._tmux = tmux
        self._classifier = classifier
        self._prober = prober
        self._cache = cache
        self._arbitrator = arbitrator
        self._delivery = delivery

    @property
    def arbitrator(self) -> Arbitrator:
        return self._arbitrator

    async def send(
        self,
        context: WorkingContext,
        mode: LaunchMode = LaunchMode.CONTINUE,
        auto_focus: bool | None = None,
    ) -> RouteResult:
        """Resolve an instance for the context's repository and deliver to it."""
        if auto_focus is None:
            auto_focus = self._config.delivery.auto_switch_pane
        try:
            root = context.repository_root
            if not root:
                root = await self.resolve_root(context.file_path)
                context = context.with_repository_root(root)
            await self._require_multiplexer()

            launch_args = self._config.assistant.continue_args if mode.uses_existing else []
            resolution = await self._arbitrator.resolve(
                root, launch_args, use_existing=mode.uses_existing,
            )
            candidate = resolution.candidate

            if not candidate.is_newly_created:
                readiness = await self._prober.is_ready(candidate.pane_id)
                if not readiness.ready:
                    await self._show_blocked(candidate, readiness, auto_focus)

            self._arbitrator.transition(ArbitrationState.DELIVERING)
            payload = DeliveryPayload(
                text=build_payload(context, self._config.payload.template),
                target=candidate,
            )
            report = await self._delivery.deliver(payload, auto_focus=auto_focus)
            self._arbitrator.transition(ArbitrationState.DONE)
        except PanebridgeError as e:
            self._arbitrator.fail()
            logger.info("Routing failed (%s): %s", e.reason.value, e)
            return RouteResult.failure(e.reason, str(e), pane_id=e.pane_id)

        if report.warning:
            return RouteResult.success(
                ResultReason.DELIVERED_WITHOUT_FOCUS, report.warning, pane_id=report.pane_id,
            )
        return RouteResult.success(
            ResultReason.DELIVERED,
            f"Sent context to {candidate.pane.target} ({report.pane_id})",
            pane_id=report.pane_id,
        )

    async def discover(self, path: str) -> list[AssistantCandidate]:
        """Candidates for the repository owning ``path``, chooser-ordered."""
        root = await self.resolve_root(path)
        await self._require_multiplexer()
        return await self._classifier.discover(root)

    async def remembered(self, path: str) -> AssistantCandidate | None:
        """The live remembered binding for ``path``'s repository, if any."""
        root = await self.resolve_root(path)
        return await self._arbitrator.cached_binding(root)

    async def reset_binding(self, path: str) -> RouteResult:
        """Forget the remembered instance for ``path``'s repository."""
        try:
            root = await self.resolve_root(path)
        except NoRepositoryRoot as e:
            return RouteResult.failure(e.reason, str(e))
        if self._cache.clear(root):
            return RouteResult.success(ResultReason.BINDING_CLEARED, f"Forgot instance for {root}")
        return RouteResult.success(ResultReason.NO_BINDING, f"No remembered instance for {root}")

    async def probe(self, pane_id: str) -> Readiness:
        return await self._prober.is_ready(pane_id)

    async def resolve_root(self, path: str) -> str:
        """Repository root owning ``path``; raises :class:`NoRepositoryRoot`."""
        if not path:
            raise NoRepositoryRoot("No file or directory given")
        root = await find_repository_root(path)
        if root is None:
            raise NoRepositoryRoot(f"{path} is not inside a git repository")
        return root

    async def _require_multiplexer(self) -> None:
        if not await self._tmux.is_available():
            raise MultiplexerUnavailable("tmux is not running")

    async def _show_blocked(
        self, candidate: AssistantCandidate, readiness: Readiness, auto_focus: bool,
    ) -> None:
        """Focus the blocked pane so the user sees why, then report it."""
        if auto_focus:
            await self._delivery.focus(candidate)
        raise InstanceNotReady(
            f"Assistant in {candidate.pane.target} is not ready: {readiness.reason}",
            pane_id=candidate.pane_id,
        )
