"""In-memory connectivity status with a subscription channel.

This is the only component allowed to replace the current status.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from pydoorlink.exceptions import ErrorKind, RetryAction
from pydoorlink.models.connectivity import ConnectivityStatus
from pydoorlink.state.events import StatusSource, StatusTransition

_logger = logging.getLogger(__name__)

StatusListener = Callable[[StatusTransition], None]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ConnectivityState:
    """Holds the current :class:`ConnectivityStatus`.

    Listeners are called synchronously, in subscription order, once per
    change of ``connected``.  Updates that leave ``connected`` unchanged
    only refresh the snapshot.
    """

    def __init__(self, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._status = ConnectivityStatus()
        self._listeners: list[StatusListener] = []

    @property
    def status(self) -> ConnectivityStatus:
        return self._status

    @property
    def connected(self) -> bool:
        return self._status.connected

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Register *listener*; returns a callable that removes it again."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def update(
        self,
        *,
        connected: bool,
        source: StatusSource,
        checked: bool = True,
        error: ErrorKind | None = None,
        retry_action: RetryAction | None = None,
    ) -> StatusTransition | None:
        """Replace the status; returns the transition if ``connected`` flipped.

        ``checked`` marks the update as the result of a live probe, which
        refreshes ``last_checked_at``.  Errors are only kept while
        disconnected.
        """
        previous = self._status
        current = ConnectivityStatus(
            connected=connected,
            last_checked_at=self._clock() if checked else previous.last_checked_at,
            last_error=None if connected else error,
            retry_action=None if connected else retry_action,
        )
        self._status = current

        if previous.connected == current.connected:
            return None

        transition = StatusTransition(
            previous=previous,
            current=current,
            source=source,
            observed_at=self._clock(),
        )
        _logger.debug(
            "Connectivity %s -> %s (source=%s, error=%s)",
            previous.connected,
            current.connected,
            source,
            current.last_error,
        )
        for listener in list(self._listeners):
            try:
                listener(transition)
            except Exception:
                _logger.warning("Status listener %r failed", listener, exc_info=True)
        return transition
