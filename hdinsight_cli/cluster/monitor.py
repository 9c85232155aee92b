"""Bounded-retry polling for asynchronous service operations.

:func:`poll_until` calls a probe until a terminal predicate is satisfied or
the probe has failed more than :data:`MAX_CONSECUTIVE_FAILURES` times in a
row.  Hitting that ceiling forces the loop to stop and return whatever it
last observed; it is a circuit breaker, not a success signal, so callers
must check the returned value themselves.

Two predicates are provided:

* :func:`cluster_ready` for waiting on cluster creation.
* :func:`location_validated` for waiting on location registration.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Tuple, Type

from hdinsight_cli.errors import RemoteRejection, TransportError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

#: Consecutive failed probes tolerated before the loop gives up.
MAX_CONSECUTIVE_FAILURES: int = 25

#: Seconds between probes.
DEFAULT_POLL_INTERVAL: float = 1.0

#: Probe exceptions counted as a failed attempt instead of propagating.
RETRYABLE_ERRORS: Tuple[Type[BaseException], ...] = (TransportError, RemoteRejection)

Probe = Callable[[], Any]
Predicate = Callable[[Any], bool]


# ---------------------------------------------------------------------------
# PollState
# ---------------------------------------------------------------------------


@dataclass
class PollState:
    """Bookkeeping for a single :func:`poll_until` call."""

    consecutive_failures: int = 0
    last_result: Any = None
    attempts: int = 0
    exhausted: bool = False
    last_error: Optional[BaseException] = field(default=None, repr=False)

    def reset(self) -> None:
        self.consecutive_failures = 0
        self.last_result = None
        self.attempts = 0
        self.exhausted = False
        self.last_error = None


# ---------------------------------------------------------------------------
# Wait loop
# ---------------------------------------------------------------------------


def poll_until(
    probe: Probe,
    is_terminal: Predicate,
    *,
    is_failure: Optional[Predicate] = None,
    state: Optional[PollState] = None,
    interval: float = DEFAULT_POLL_INTERVAL,
    max_failures: int = MAX_CONSECUTIVE_FAILURES,
    retry_on: Tuple[Type[BaseException], ...] = RETRYABLE_ERRORS,
    _sleep_fn: Any = None,
) -> Any:
    """Call *probe* until *is_terminal* accepts its result.

    * A probe that raises one of *retry_on*, returns ``None``, or returns a
      value flagged by *is_failure* counts as one failure; any other probe
      resets the failure counter.
    * Once failures exceed *max_failures* the loop stops and returns the
      last result (``None`` if the last probe raised), with
      ``state.exhausted`` set.
    * Between non-terminal probes the loop waits *interval* seconds.

    Pass a :class:`PollState` as *state* to inspect the session afterwards;
    it is reset on entry.  The *_sleep_fn* parameter is for test injection.
    """
    sleep = _sleep_fn or time.sleep
    if state is None:
        state = PollState()
    state.reset()

    while True:
        state.attempts += 1
        try:
            result = probe()
            state.last_error = None
        except retry_on as exc:
            result = None
            state.last_error = exc
            logger.debug("Probe raised %s", exc)

        state.last_result = result

        failed = result is None or (is_failure is not None and is_failure(result))
        if failed:
            state.consecutive_failures += 1
            if state.consecutive_failures > max_failures:
                state.exhausted = True
                logger.warning(
                    "Polling gave up after %d consecutive failures.",
                    state.consecutive_failures,
                )
                return result
            logger.debug(
                "Probe failed (%d/%d)",
                state.consecutive_failures,
                max_failures,
            )
        else:
            state.consecutive_failures = 0
            if is_terminal(result):
                return result

        sleep(interval)


@dataclass
class PollingEngine:
    """Interval, ceiling and sleep function shared by a workflow's polls."""

    interval: float = DEFAULT_POLL_INTERVAL
    max_failures: int = MAX_CONSECUTIVE_FAILURES
    sleep_fn: Optional[Callable[[float], None]] = None

    def poll_until(
        self,
        probe: Probe,
        is_terminal: Predicate,
        *,
        is_failure: Optional[Predicate] = None,
        state: Optional[PollState] = None,
    ) -> Any:
        return poll_until(
            probe,
            is_terminal,
            is_failure=is_failure,
            state=state,
            interval=self.interval,
            max_failures=self.max_failures,
            _sleep_fn=self.sleep_fn,
        )


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def cluster_ready(cluster: Any) -> bool:
    """Terminal once the cluster is Operational, Running, Error, or has an error."""
    return cluster is not None and cluster.is_terminal


def location_validated(result: Any) -> bool:
    """Terminal once validate-location answers HTTP 200."""
    return result is not None and result.status_code == 200


def location_not_validated(result: Any) -> bool:
    """Any non-200 answer counts against the failure ceiling."""
    return not location_validated(result)
