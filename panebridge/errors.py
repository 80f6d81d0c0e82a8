"""Error taxonomy for routing operations.

Every error carries the :class:`ResultReason` it maps to, so the router can
turn any failure into a structured :class:`RouteResult` without inspecting
message text.
"""

from __future__ import annotations

from panebridge.models.result import ResultReason


class PanebridgeError(Exception):
    """Base error for all routing failures."""

    reason: ResultReason = ResultReason.DELIVERY_FAILED_AFTER_RETRIES

    def __init__(self, message: str, *, pane_id: str = "") -> None:
        super().__init__(message)
        self.pane_id = pane_id

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r}, reason={self.reason.value!r})"


class NoRepositoryRoot(PanebridgeError):
    reason = ResultReason.NO_REPOSITORY_ROOT


class MultiplexerUnavailable(PanebridgeError):
    reason = ResultReason.MULTIPLEXER_UNAVAILABLE


class ProvisionFailed(PanebridgeError):
    """No candidates existed and a new instance could not be started."""

    reason = ResultReason.NO_CANDIDATES_AND_PROVISION_FAILED


class PaneVanished(PanebridgeError):
    reason = ResultReason.PANE_VANISHED


class InstanceNotReady(PanebridgeError):
    """The assistant is blocked or busy; the caller may retry later."""

    reason = ResultReason.INSTANCE_NOT_READY


class DeliveryFailed(PanebridgeError):
    reason = ResultReason.DELIVERY_FAILED_AFTER_RETRIES


class SelectionCancelled(PanebridgeError):
    reason = ResultReason.AMBIGUOUS_SELECTION_CANCELLED
