"""AppContext: wires config, tmux and services together."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from panebridge.config import AppConfig, load_config

if TYPE_CHECKING:
    from panebridge.infra.procs import ProcessCorrelator
    from panebridge.infra.tmux import TmuxClient
    from panebridge.services.arbitrator import Arbitrator, Chooser
    from panebridge.services.cache import InstanceCache
    from panebridge.services.classifier import InstanceClassifier
    from panebridge.services.context_router import ContextRouter
    from panebridge.services.delivery import DeliveryChannel
    from panebridge.services.provisioner import InstanceProvisioner
    from panebridge.services.readiness import ReadinessProber
    from panebridge.services.retry import Sleep

logger = logging.getLogger(__name__)


class AppContext:
    """Central wiring for all application dependencies.

    Lazily initializes services on first access. The chooser is supplied by
    the caller because it is a user-interface concern.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        config_path: Path | None = None,
        chooser: Chooser | None = None,
        remember: bool | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.config = config or load_config(config_path)
        self._chooser = chooser
        self._remember = self.config.cache.remember_choice if remember is None else remember
        self._sleep = sleep
        self._tmux: TmuxClient | None = None
        self._procs: ProcessCorrelator | None = None
        self._prober: ReadinessProber | None = None
        self._classifier: InstanceClassifier | None = None
        self._cache: InstanceCache | None = None
        self._provisioner: InstanceProvisioner | None = None
        self._delivery: DeliveryChannel | None = None
        self._arbitrator: Arbitrator | None = None
        self._router: ContextRouter | None = None

    @property
    def tmux(self) -> TmuxClient:
        if self._tmux is None:
            from panebridge.infra.tmux import TmuxClient

            self._tmux = TmuxClient(
                command_timeout=self.config.detection.command_timeout,
                probe_timeout=self.config.detection.probe_timeout,
            )
        return self._tmux

    @property
    def procs(self) -> ProcessCorrelator:
        if self._procs is None:
            from panebridge.infra.procs import ProcessCorrelator

            self._procs = ProcessCorrelator(command_timeout=self.config.detection.command_timeout)
        return self._procs

    @property
    def prober(self) -> ReadinessProber:
        if self._prober is None:
            from panebridge.services.readiness import ReadinessProber

            self._prober = ReadinessProber(
                self.tmux, capture_lines=self.config.detection.capture_lines,
            )
        return self._prober

    @property
    def classifier(self) -> InstanceClassifier:
        if self._classifier is None:
            from panebridge.services.classifier import InstanceClassifier

            self._classifier = InstanceClassifier(
                self.tmux,
                self.procs,
                self.prober,
                assistant=self.config.assistant,
                deny_commands=self.config.detection.deny_commands,
            )
        return self._classifier

    @property
    def cache(self) -> InstanceCache:
        if self._cache is None:
            from panebridge.services.cache import InstanceCache

            self._cache = InstanceCache(Path(self.config.cache.resolved_state_file))
        return self._cache

    @property
    def provisioner(self) -> InstanceProvisioner:
        if self._provisioner is None:
            from panebridge.services.provisioner import InstanceProvisioner

            self._provisioner = InstanceProvisioner(
                self.tmux,
                assistant=self.config.assistant,
                provision=self.config.provision,
                sleep=self._sleep,
            )
        return self._provisioner

    @property
    def delivery(self) -> DeliveryChannel:
        if self._delivery is None:
            from panebridge.services.delivery import DeliveryChannel

            self._delivery = DeliveryChannel(
                self.tmux,
                delivery=self.config.delivery,
                prober=self.prober,
                sleep=self._sleep,
            )
        return self._delivery

    @property
    def arbitrator(self) -> Arbitrator:
        if self._arbitrator is None:
            from panebridge.services.arbitrator import Arbitrator

            if self._chooser is None:
                raise RuntimeError("AppContext has no chooser; pass one to resolve ambiguity")
            self._arbitrator = Arbitrator(
                self.tmux,
                self.classifier,
                self.cache,
                self.provisioner,
                self._chooser,
                remember=self._remember,
            )
        return self._arbitrator

    @property
    def router(self) -> ContextRouter:
        if self._router is None:
            from panebridge.services.context_router import ContextRouter

            self._router = ContextRouter(
                self.config,
                self.tmux,
                self.classifier,
                self.prober,
                self.cache,
                self.arbitrator,
                self.delivery,
            )
        return self._router
