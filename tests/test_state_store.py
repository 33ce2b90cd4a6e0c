from __future__ import annotations

import itertools
from datetime import UTC, datetime, timedelta

import pytest

from pydoorlink.exceptions import ErrorKind, RetryAction
from pydoorlink.models.connectivity import SessionOrigin
from pydoorlink.state.events import StatusSource, StatusTransition
from pydoorlink.state.policy import should_run_health_checks
from pydoorlink.state.store import ConnectivityState


def _dt() -> datetime:
    return datetime(2026, 1, 1, tzinfo=UTC)


def test_refresh_without_flip_emits_nothing() -> None:
    state = ConnectivityState(clock=_dt)
    seen: list[StatusTransition] = []
    state.subscribe(seen.append)

    assert state.update(connected=False, source=StatusSource.COLD_START, error=ErrorKind.NOT_CONNECTED) is None

    assert seen == []
    assert state.status.last_checked_at == _dt()
    assert state.status.last_error is ErrorKind.NOT_CONNECTED


def test_flip_emits_one_transition() -> None:
    state = ConnectivityState(clock=_dt)
    seen: list[StatusTransition] = []
    state.subscribe(seen.append)

    transition = state.update(connected=True, source=StatusSource.HEALTH_CHECK)
    state.update(connected=True, source=StatusSource.HEALTH_CHECK)

    assert transition is not None
    assert seen == [transition]
    assert not transition.previous.connected
    assert transition.connected
    assert transition.source is StatusSource.HEALTH_CHECK


def test_connected_status_drops_error_fields() -> None:
    state = ConnectivityState(clock=_dt)

    state.update(
        connected=True,
        source=StatusSource.RECOVERY,
        error=ErrorKind.JOIN_FAILED,
        retry_action=RetryAction.RECONNECT,
    )

    assert state.status.last_error is None
    assert state.status.retry_action is None


def test_unchecked_update_keeps_last_probe_time() -> None:
    ticks = itertools.count()
    state = ConnectivityState(clock=lambda: datetime(2026, 1, 1, tzinfo=UTC) + timedelta(seconds=next(ticks)))

    state.update(connected=True, source=StatusSource.COLD_START)
    checked_at = state.status.last_checked_at
    state.update(
        connected=False,
        source=StatusSource.DOOR_COMMAND,
        checked=False,
        error=ErrorKind.COMMAND_FAILED,
        retry_action=RetryAction.RECONNECT,
    )

    assert state.status.last_checked_at == checked_at


@pytest.mark.parametrize(
    ("connected", "origin", "closed", "poll_provisioned", "expected"),
    [
        (True, SessionOrigin.COLD_START, False, False, True),
        (True, SessionOrigin.PROVISIONED, False, False, False),
        (True, SessionOrigin.PROVISIONED, False, True, True),
        (False, SessionOrigin.COLD_START, False, False, False),
        (True, SessionOrigin.COLD_START, True, False, False),
        (True, None, False, True, False),
    ],
)
def test_health_check_policy(
    connected: bool, origin: SessionOrigin | None, closed: bool, poll_provisioned: bool, expected: bool
) -> None:
    assert (
        should_run_health_checks(
            connected=connected,
            origin=origin,
            closed=closed,
            poll_provisioned_sessions=poll_provisioned,
        )
        is expected
    )
