"""Tests for result models and error taxonomy."""

from panebridge.errors import (
    InstanceNotReady,
    NoRepositoryRoot,
    PaneVanished,
    ProvisionFailed,
    SelectionCancelled,
)
from panebridge.models.launch import LaunchMode, LaunchSpec
from panebridge.models.result import Readiness, ResultReason, RouteResult


class TestRouteResult:
    def test_success(self):
        r = RouteResult.success(ResultReason.DELIVERED, "ok", pane_id="%1")
        assert r.ok
        assert r.reason == ResultReason.DELIVERED
        assert r.pane_id == "%1"

    def test_failure(self):
        r = RouteResult.failure(ResultReason.PANE_VANISHED, "gone")
        assert not r.ok
        assert not r.reason.is_success

    def test_binding_reasons_are_success(self):
        assert ResultReason.BINDING_CLEARED.is_success
        assert ResultReason.NO_BINDING.is_success


class TestReadiness:
    def test_unpacks(self):
        ready, reason = Readiness(False, "Still loading")
        assert ready is False
        assert reason == "Still loading"


class TestErrors:
    def test_reasons(self):
        assert NoRepositoryRoot("x").reason == ResultReason.NO_REPOSITORY_ROOT
        assert ProvisionFailed("x").reason == ResultReason.NO_CANDIDATES_AND_PROVISION_FAILED
        assert InstanceNotReady("x").reason == ResultReason.INSTANCE_NOT_READY
        assert SelectionCancelled("x").reason == ResultReason.AMBIGUOUS_SELECTION_CANCELLED

    def test_pane_id(self):
        e = PaneVanished("gone", pane_id="%3")
        assert e.pane_id == "%3"
        assert str(e) == "gone"


class TestLaunch:
    def test_full_command_quotes(self):
        assert LaunchSpec(program="claude", args=("--continue",)).full_command == "claude --continue"
        assert LaunchSpec(program="my tool").full_command == "'my tool'"

    def test_mode(self):
        assert LaunchMode.CONTINUE.uses_existing
        assert not LaunchMode.NEW.uses_existing
