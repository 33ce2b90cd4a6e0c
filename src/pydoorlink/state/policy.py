"""Health-check scheduling policy.

Pure decisions only; the supervisor owns the timers.
"""

from __future__ import annotations

from pydoorlink.models.connectivity import SessionOrigin


def periodic_checks_enabled(origin: SessionOrigin | None, *, poll_provisioned_sessions: bool = False) -> bool:
    """Whether a connected session should be probed periodically.

    Sessions restored on a cold start are always probed.  A session handed
    over by a fresh provisioning is assumed healthy for the rest of the
    process unless *poll_provisioned_sessions* is set.
    """
    if origin is None:
        return False
    if origin is SessionOrigin.PROVISIONED:
        return poll_provisioned_sessions
    return True


def should_run_health_checks(
    *,
    connected: bool,
    origin: SessionOrigin | None,
    closed: bool,
    poll_provisioned_sessions: bool = False,
) -> bool:
    if closed or not connected:
        return False
    return periodic_checks_enabled(origin, poll_provisioned_sessions=poll_provisioned_sessions)
