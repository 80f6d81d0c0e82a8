"""Structured outcomes reported to callers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ResultReason(str, Enum):
    DELIVERED = "Delivered"
    DELIVERED_WITHOUT_FOCUS = "DeliveredWithoutFocus"
    BINDING_CLEARED = "BindingCleared"
    NO_BINDING = "NoBinding"
    NO_REPOSITORY_ROOT = "NoRepositoryRoot"
    MULTIPLEXER_UNAVAILABLE = "MultiplexerUnavailable"
    NO_CANDIDATES_AND_PROVISION_FAILED = "NoCandidatesAndProvisionFailed"
    PANE_VANISHED = "PaneVanished"
    INSTANCE_NOT_READY = "InstanceNotReady"
    DELIVERY_FAILED_AFTER_RETRIES = "DeliveryFailedAfterRetries"
    AMBIGUOUS_SELECTION_CANCELLED = "AmbiguousSelectionCancelled"

    @property
    def is_success(self) -> bool:
        return self in (
            ResultReason.DELIVERED,
            ResultReason.DELIVERED_WITHOUT_FOCUS,
            ResultReason.BINDING_CLEARED,
            ResultReason.NO_BINDING,
        )


@dataclass(frozen=True)
class RouteResult:
    """What a consumer command gets back; never raw tmux output."""

    ok: bool
    reason: ResultReason
    message: str = ""
    pane_id: str = ""

    @classmethod
    def success(cls, reason: ResultReason, message: str = "", pane_id: str = "") -> RouteResult:
        return cls(ok=True, reason=reason, message=message, pane_id=pane_id)

    @classmethod
    def failure(cls, reason: ResultReason, message: str = "", pane_id: str = "") -> RouteResult:
        return cls(ok=False, reason=reason, message=message, pane_id=pane_id)


@dataclass(frozen=True)
class Readiness:
    """Result of probing a pane's rendered content."""

    ready: bool
    reason: str | None = None

    def __iter__(self):
        # Allows ``ready, reason = await prober.is_ready(pane_id)``
        yield self.ready
        yield self.reason


@dataclass(frozen=True)
class DeliveryReport:
    """Outcome of one delivery attempt sequence."""

    ok: bool
    pane_id: str
    attempts: int = 0
    focused: bool = False
    warning: str = ""
