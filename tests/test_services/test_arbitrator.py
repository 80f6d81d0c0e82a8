"""Tests for the Arbitrator state machine."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from panebridge.errors import ProvisionFailed, SelectionCancelled
from panebridge.models.candidate import AssistantCandidate, DetectionMethod
from panebridge.models.pane import PaneRecord
from panebridge.services.arbitrator import (
    CREATE_NEW_LABEL,
    ArbitrationState,
    Arbitrator,
    InvalidTransitionError,
    build_options,
)
from panebridge.services.cache import InstanceCache

ROOT = "/repo"


def _candidate(pane_id, session="work", current=False, method=DetectionMethod.EXACT_COMMAND_MATCH):
    return AssistantCandidate(
        pane=PaneRecord(pane_id=pane_id, session=session, window_index="1"),
        detection_method=method,
        is_current_session=current,
    )


NEW = _candidate("%20", method=DetectionMethod.NEWLY_CREATED)


@pytest.fixture
def tmux():
    mock = AsyncMock()
    mock.current_session.return_value = "work"
    mock.list_panes.return_value = [
        PaneRecord(pane_id="%3", session="work", window_index="1"),
        PaneRecord(pane_id="%20", session="work", window_index="1"),
    ]
    return mock


@pytest.fixture
def classifier():
    mock = AsyncMock()
    mock.discover.return_value = []
    return mock


@pytest.fixture
def provisioner():
    mock = AsyncMock()
    mock.provision.return_value = NEW
    return mock


@pytest.fixture
def chooser():
    return AsyncMock()


@pytest.fixture
def cache():
    return InstanceCache()


@pytest.fixture
def arbitrator(tmux, classifier, cache, provisioner, chooser):
    return Arbitrator(tmux, classifier, cache, provisioner, chooser)


def _finish(arbitrator):
    arbitrator.transition(ArbitrationState.DELIVERING)
    arbitrator.transition(ArbitrationState.DONE)


class TestResolve:
    @pytest.mark.asyncio
    async def test_zero_candidates_provisions_once(self, arbitrator, provisioner, cache, chooser):
        resolution = await arbitrator.resolve(ROOT, ["--continue"])
        assert resolution.state == ArbitrationState.CREATE
        assert resolution.candidate == NEW
        provisioner.provision.assert_awaited_once_with(ROOT, ("--continue",), "work")
        chooser.choose.assert_not_called()
        assert cache.get(ROOT) == NEW

    @pytest.mark.asyncio
    async def test_single_candidate_never_chooses(
        self, arbitrator, classifier, chooser, cache, provisioner,
    ):
        only = _candidate("%3")
        classifier.discover.return_value = [only]
        resolution = await arbitrator.resolve(ROOT)
        assert resolution.state == ArbitrationState.USE_SINGLE
        assert resolution.candidate == only
        assert resolution.cached
        chooser.choose.assert_not_called()
        provisioner.provision.assert_not_called()
        assert cache.get(ROOT) == only

    @pytest.mark.asyncio
    async def test_many_candidates_go_to_chooser(self, arbitrator, classifier, chooser, cache):
        other = _candidate("%1", session="other")
        mine = _candidate("%5", current=True)
        classifier.discover.return_value = [other, mine]
        chooser.choose.return_value = 1
        resolution = await arbitrator.resolve(ROOT)

        options = chooser.choose.await_args.args[0]
        assert [o.candidate for o in options[:2]] == [mine, other]
        assert options[-1].creates_new
        assert resolution.state == ArbitrationState.CHOOSE
        assert resolution.candidate == other
        assert cache.get(ROOT) is None

    @pytest.mark.asyncio
    async def test_cancelled_choice(self, arbitrator, classifier, chooser, provisioner):
        classifier.discover.return_value = [_candidate("%1"), _candidate("%2")]
        chooser.choose.return_value = None
        with pytest.raises(SelectionCancelled):
            await arbitrator.resolve(ROOT)
        assert arbitrator.state == ArbitrationState.FAILED
        provisioner.provision.assert_not_called()

    @pytest.mark.asyncio
    async def test_out_of_range_choice_cancels(self, arbitrator, classifier, chooser):
        classifier.discover.return_value = [_candidate("%1"), _candidate("%2")]
        chooser.choose.return_value = 7
        with pytest.raises(SelectionCancelled):
            await arbitrator.resolve(ROOT)

    @pytest.mark.asyncio
    async def test_choose_create_new(self, arbitrator, classifier, chooser, provisioner, cache):
        classifier.discover.return_value = [_candidate("%1"), _candidate("%2")]
        chooser.choose.return_value = 2
        resolution = await arbitrator.resolve(ROOT, ["--continue"])
        assert resolution.state == ArbitrationState.CREATE
        provisioner.provision.assert_awaited_once()
        assert cache.get(ROOT) is None
        assert arbitrator.history == [
            ArbitrationState.IDLE,
            ArbitrationState.RESOLVING,
            ArbitrationState.CHOOSE,
            ArbitrationState.CREATE,
        ]

    @pytest.mark.asyncio
    async def test_force_new_skips_cache_and_discovery(
        self, arbitrator, classifier, cache, provisioner,
    ):
        cache.set(ROOT, _candidate("%3"))
        resolution = await arbitrator.resolve(ROOT, [], use_existing=False)
        assert resolution.state == ArbitrationState.CREATE
        provisioner.provision.assert_awaited_once_with(ROOT, (), "work")
        classifier.discover.assert_not_called()
        assert cache.get(ROOT).pane_id == "%3"

    @pytest.mark.asyncio
    async def test_provision_failure_fails(self, arbitrator, provisioner):
        provisioner.provision.side_effect = ProvisionFailed("no window")
        with pytest.raises(ProvisionFailed):
            await arbitrator.resolve(ROOT)
        assert arbitrator.state == ArbitrationState.FAILED

    @pytest.mark.asyncio
    async def test_not_remembered_when_disabled(
        self, tmux, classifier, cache, provisioner, chooser,
    ):
        arbitrator = Arbitrator(tmux, classifier, cache, provisioner, chooser, remember=False)
        classifier.discover.return_value = [_candidate("%3")]
        resolution = await arbitrator.resolve(ROOT)
        assert not resolution.cached
        assert cache.get(ROOT) is None


class TestCachedBinding:
    @pytest.mark.asyncio
    async def test_second_resolution_uses_cache(self, arbitrator, classifier):
        classifier.discover.return_value = [_candidate("%3")]
        await arbitrator.resolve(ROOT)
        _finish(arbitrator)

        resolution = await arbitrator.resolve(ROOT)
        assert resolution.state == ArbitrationState.USE_CACHED
        assert resolution.candidate.pane_id == "%3"
        classifier.discover.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_stale_binding_is_cleared(self, arbitrator, tmux, classifier, cache):
        cache.set(ROOT, _candidate("%3"))
        tmux.list_panes.return_value = [PaneRecord(pane_id="%4", session="work", window_index="1")]
        fresh = _candidate("%4")
        classifier.discover.return_value = [fresh]

        resolution = await arbitrator.resolve(ROOT)
        tmux.list_panes.assert_awaited_once()
        classifier.discover.assert_awaited_once()
        assert resolution.state == ArbitrationState.USE_SINGLE
        assert resolution.candidate == fresh
        assert cache.get(ROOT) == fresh

    @pytest.mark.asyncio
    async def test_cached_binding_missing(self, arbitrator, tmux):
        assert await arbitrator.cached_binding(ROOT) is None
        tmux.list_panes.assert_not_called()

    @pytest.mark.asyncio
    async def test_moved_pane_uses_live_location(self, arbitrator, tmux, classifier, cache):
        cache.set(ROOT, _candidate("%3", session="a", current=True))
        tmux.list_panes.return_value = [PaneRecord(pane_id="%3", session="b", window_index="5")]
        tmux.current_session.return_value = "c"

        resolution = await arbitrator.resolve(ROOT)
        assert resolution.state == ArbitrationState.USE_CACHED
        assert resolution.candidate.pane.window_target == "b:5"
        assert resolution.candidate.is_current_session is False
        classifier.discover.assert_not_called()

    @pytest.mark.asyncio
    async def test_current_session_recomputed(self, arbitrator, tmux, cache):
        cache.set(ROOT, _candidate("%3", session="work", current=False))
        candidate = await arbitrator.cached_binding(ROOT, "work")
        assert candidate.is_current_session is True
        tmux.current_session.assert_not_called()


class TestStateMachine:
    def test_invalid_transition(self, arbitrator):
        with pytest.raises(InvalidTransitionError):
            arbitrator.transition(ArbitrationState.DELIVERING)

    def test_fail_from_idle_is_noop(self, arbitrator):
        arbitrator.fail()
        assert arbitrator.state == ArbitrationState.IDLE

    @pytest.mark.asyncio
    async def test_terminal_state_resets_on_resolve(self, arbitrator, classifier):
        classifier.discover.return_value = [_candidate("%3")]
        await arbitrator.resolve(ROOT)
        arbitrator.fail()
        assert arbitrator.state == ArbitrationState.FAILED
        await arbitrator.resolve(ROOT)
        assert arbitrator.history[0] == ArbitrationState.IDLE

    def test_build_options(self):
        options = build_options([_candidate("%2"), _candidate("%1", current=True)])
        assert [o.label for o in options][-1] == CREATE_NEW_LABEL
        assert options[0].candidate.pane_id == "%1"
