"""Tests for hdinsight_cli.cluster.monitor — bounded-retry polling."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from hdinsight_cli.cluster.models import ClusterDescriptor
from hdinsight_cli.cluster.monitor import (
    DEFAULT_POLL_INTERVAL,
    MAX_CONSECUTIVE_FAILURES,
    PollingEngine,
    PollState,
    cluster_ready,
    location_not_validated,
    location_validated,
    poll_until,
)
from hdinsight_cli.errors import RemoteRejection, TransportError
from hdinsight_cli.service.client import StatusResult


# ── helpers ──────────────────────────────────────────────────────────────


def _sequence(*items):
    """Probe that returns (or raises) *items* in order, repeating the last."""
    queue = list(items)

    def probe():
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, BaseException):
            raise item
        return item

    return probe


def _is_done(value) -> bool:
    return value == "done"


# ── TestConstants ────────────────────────────────────────────────────────


class TestConstants:
    def test_max_failures(self):
        assert MAX_CONSECUTIVE_FAILURES == 25

    def test_poll_interval(self):
        assert DEFAULT_POLL_INTERVAL == 1.0


# ── TestPollUntil ────────────────────────────────────────────────────────


class TestPollUntil:
    def test_terminal_first_call_no_wait(self):
        sleep = MagicMock()
        result = poll_until(lambda: "done", _is_done, _sleep_fn=sleep)
        assert result == "done"
        sleep.assert_not_called()

    def test_waits_interval_between_probes(self):
        sleep = MagicMock()
        probe = _sequence("pending", "pending", "done")
        assert poll_until(probe, _is_done, _sleep_fn=sleep) == "done"
        assert sleep.call_count == 2
        sleep.assert_called_with(DEFAULT_POLL_INTERVAL)

    def test_fewer_than_ceiling_failures_then_terminal(self):
        sleep = MagicMock()
        failures = [TransportError("down")] * 25
        probe = _sequence(*failures, "done")
        state = PollState()
        result = poll_until(probe, _is_done, state=state, _sleep_fn=sleep)
        assert result == "done"
        assert state.exhausted is False
        assert state.attempts == 26

    def test_ceiling_stops_after_26_failures(self):
        sleep = MagicMock()
        probe = MagicMock(side_effect=TransportError("down"))
        state = PollState()
        result = poll_until(probe, _is_done, state=state, _sleep_fn=sleep)
        assert result is None
        assert probe.call_count == 26
        assert sleep.call_count == 25
        assert state.exhausted is True
        assert state.consecutive_failures == 26
        assert isinstance(state.last_error, TransportError)

    def test_ceiling_ignores_later_success(self):
        sleep = MagicMock()
        failures = [None] * 26
        probe = MagicMock(side_effect=failures + ["done"])
        state = PollState()
        assert poll_until(probe, _is_done, state=state, _sleep_fn=sleep) is None
        assert probe.call_count == 26
        assert state.exhausted is True

    def test_none_counts_as_failure(self):
        probe = MagicMock(return_value=None)
        state = PollState()
        poll_until(probe, _is_done, state=state, _sleep_fn=lambda _: None)
        assert probe.call_count == MAX_CONSECUTIVE_FAILURES + 1

    def test_is_failure_result_returned_on_exhaustion(self):
        bad = StatusResult(status_code=404)
        result = poll_until(
            lambda: bad,
            location_validated,
            is_failure=location_not_validated,
            _sleep_fn=lambda _: None,
        )
        assert result is bad

    def test_success_resets_counter(self):
        # 20 failures, a non-terminal success, 20 more failures, then done:
        # never 26 in a row, so the loop must reach "done".
        items = [None] * 20 + ["pending"] + [None] * 20 + ["done"]
        probe = MagicMock(side_effect=items)
        assert poll_until(probe, _is_done, _sleep_fn=lambda _: None) == "done"
        assert probe.call_count == 42

    def test_state_reset_on_entry(self):
        state = PollState(consecutive_failures=24, attempts=99, exhausted=True)
        probe = _sequence(None, None, "done")
        assert poll_until(probe, _is_done, state=state, _sleep_fn=lambda _: None) == "done"
        assert state.attempts == 3
        assert state.exhausted is False
        assert state.consecutive_failures == 0

    def test_remote_rejection_is_retryable(self):
        probe = _sequence(RemoteRejection("List clusters", 503), "done")
        assert poll_until(probe, _is_done, _sleep_fn=lambda _: None) == "done"

    def test_other_exceptions_propagate(self):
        probe = MagicMock(side_effect=KeyError("boom"))
        with pytest.raises(KeyError):
            poll_until(probe, _is_done, _sleep_fn=lambda _: None)

    def test_custom_ceiling(self):
        probe = MagicMock(return_value=None)
        poll_until(probe, _is_done, max_failures=2, _sleep_fn=lambda _: None)
        assert probe.call_count == 3


# ── TestPollingEngine ────────────────────────────────────────────────────


class TestPollingEngine:
    def test_passes_settings(self):
        sleep = MagicMock()
        engine = PollingEngine(interval=5.0, max_failures=1, sleep_fn=sleep)
        probe = MagicMock(return_value=None)
        state = PollState()
        engine.poll_until(probe, _is_done, state=state)
        assert probe.call_count == 2
        sleep.assert_called_once_with(5.0)
        assert state.exhausted is True

    def test_each_call_starts_fresh(self):
        engine = PollingEngine(max_failures=3, sleep_fn=lambda _: None)
        first = MagicMock(return_value=None)
        engine.poll_until(first, _is_done)
        second = _sequence(None, None, None, "done")
        assert engine.poll_until(second, _is_done) == "done"


# ── Predicates ───────────────────────────────────────────────────────────


class TestClusterReady:
    @pytest.mark.parametrize("state", ["Operational", "Running", "Error"])
    def test_terminal_states(self, state):
        assert cluster_ready(ClusterDescriptor(name="c1", state=state)) is True

    @pytest.mark.parametrize("state", ["Requested", "Registering", "Unknown", "Provisioning"])
    def test_non_terminal_states(self, state):
        assert cluster_ready(ClusterDescriptor(name="c1", state=state)) is False

    def test_error_field_is_terminal(self):
        c = ClusterDescriptor(name="c1", state="Requested", error="Quota exceeded")
        assert cluster_ready(c) is True

    def test_blank_error_not_terminal(self):
        c = ClusterDescriptor(name="c1", state="Requested", error="  ")
        assert cluster_ready(c) is False

    def test_none_not_terminal(self):
        assert cluster_ready(None) is False


class TestLocationValidated:
    def test_200(self):
        assert location_validated(StatusResult(status_code=200)) is True
        assert location_not_validated(StatusResult(status_code=200)) is False

    @pytest.mark.parametrize("code", [202, 404, 500])
    def test_other(self, code):
        assert location_validated(StatusResult(status_code=code)) is False
        assert location_not_validated(StatusResult(status_code=code)) is True
