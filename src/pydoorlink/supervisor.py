"""Steady-state connectivity to the paired peer."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from pydoorlink._transport import Transport
from pydoorlink.config import DoorLinkConfig
from pydoorlink.exceptions import ErrorKind, RadioError, RetryAction, StorageError
from pydoorlink.models.connectivity import ConnectivityStatus, ProbeResult, SessionOrigin
from pydoorlink.radio import RadioAdapter
from pydoorlink.session import Session
from pydoorlink.state.events import StatusSource
from pydoorlink.state.policy import should_run_health_checks
from pydoorlink.state.store import ConnectivityState, StatusListener
from pydoorlink.storage import SessionStore

_logger = logging.getLogger(__name__)


class ConnectivitySupervisor:
    """Keeps ``ConnectivityStatus.connected`` truthful.

    Three triggers feed the same recovery routine: the cold-start/resume
    check, the periodic health check and explicit reconnect requests.
    Only one recovery attempt runs at a time; callers arriving while one
    is in flight wait for its outcome instead of starting another.

    The supervisor never deletes the stored session.  Only a new
    provisioning replaces it.
    """

    def __init__(
        self,
        config: DoorLinkConfig,
        transport: Transport,
        radio: RadioAdapter,
        sessions: SessionStore,
        *,
        state: ConnectivityState | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._radio = radio
        self._sessions = sessions
        self._state = state if state is not None else ConnectivityState()
        self._session: Session | None = None
        self._origin: SessionOrigin | None = None
        self._recovery: asyncio.Task[ConnectivityStatus] | None = None
        self._health_task: asyncio.Task[None] | None = None
        self._closed = False

    # ------------------------------------------------------------------
    # Read surface
    # ------------------------------------------------------------------

    def status(self) -> ConnectivityStatus:
        return self._state.status

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        return self._state.subscribe(listener)

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def origin(self) -> SessionOrigin | None:
        return self._origin

    @property
    def peer_address(self) -> str | None:
        return self._session.address if self._session is not None else None

    @property
    def health_checks_running(self) -> bool:
        return self._health_task is not None and not self._health_task.done()

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    async def start(self) -> ConnectivityStatus:
        """Cold start: restore the stored session and verify it."""
        self._closed = False
        return await self._resume_check(StatusSource.COLD_START, origin=SessionOrigin.COLD_START)

    async def on_resume(self) -> ConnectivityStatus:
        """Run the resume check after the app returns to the foreground."""
        return await self._resume_check(StatusSource.RESUME)

    async def adopt_session(self, session: Session) -> ConnectivityStatus:
        """Take over a session from a provisioning that just completed.

        The provisioning flow has already confirmed the peer answers on the
        home network, so the status goes straight to connected.
        """
        self._closed = False
        await self._cancel_recovery()
        self._session = session
        self._origin = SessionOrigin.PROVISIONED
        _logger.debug("Adopted freshly provisioned session for %s", session.address)
        self._state.update(connected=True, source=StatusSource.PROVISIONING)
        self._sync_health_checks()
        return self.status()

    async def reconnect(self) -> ConnectivityStatus:
        """Manual escape hatch offered after steady-state errors."""
        return await self.recover(StatusSource.MANUAL)

    def mark_disconnected(
        self,
        *,
        source: StatusSource = StatusSource.DOOR_COMMAND,
        error: ErrorKind = ErrorKind.COMMAND_FAILED,
    ) -> None:
        """Flag the link as lost without probing.

        The next interaction goes through :meth:`recover`.
        """
        self._state.update(
            connected=False,
            source=source,
            checked=False,
            error=error,
            retry_action=RetryAction.RECONNECT,
        )
        self._stop_health_checks()

    async def recover(self, source: StatusSource = StatusSource.RECOVERY) -> ConnectivityStatus:
        """Rejoin the home network if needed, then probe the peer.

        Without a session this is a no-op.  Concurrent callers share the
        attempt already in flight.
        """
        if self._session is None:
            _logger.debug("No session; skipping recovery (source=%s)", source)
            return self.status()
        task = self._start_recovery(source)
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if task.cancelled() and current is not None and not current.cancelling():
                return self.status()
            raise

    async def close(self) -> None:
        """Stop the health-check timer and any recovery attempt."""
        self._closed = True
        tasks = [t for t in (self._health_task, self._recovery) if t is not None and not t.done()]
        self._health_task = None
        self._recovery = None
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _resume_check(self, source: StatusSource, *, origin: SessionOrigin | None = None) -> ConnectivityStatus:
        try:
            session = await self._sessions.load_session()
        except StorageError:
            self._state.update(
                connected=False,
                source=source,
                checked=False,
                error=ErrorKind.STORAGE,
                retry_action=RetryAction.REPROVISION,
            )
            self._stop_health_checks()
            return self.status()

        if session is None:
            _logger.debug("No stored session; %s check is a no-op", source)
            return self.status()

        if origin is not None:
            self._origin = origin
        elif session != self._session:
            self._origin = SessionOrigin.COLD_START
        self._session = session
        return await self.recover(source)

    def _start_recovery(self, source: StatusSource) -> asyncio.Task[ConnectivityStatus]:
        task = self._recovery
        if task is None or task.done():
            task = asyncio.create_task(self._run_recovery(source), name="doorlink-recovery")
            task.add_done_callback(self._on_recovery_done)
            self._recovery = task
        else:
            _logger.debug("Recovery already in flight; %s joins it", source)
        return task

    def _on_recovery_done(self, task: asyncio.Task[ConnectivityStatus]) -> None:
        if self._recovery is task:
            self._recovery = None
        if not task.cancelled() and task.exception() is not None:
            _logger.error("Recovery attempt crashed", exc_info=task.exception())

    async def _cancel_recovery(self) -> None:
        task = self._recovery
        self._recovery = None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    async def _run_recovery(self, source: StatusSource) -> ConnectivityStatus:
        session = self._session
        if session is None:
            return self.status()

        if not await self._ensure_home_network(session):
            self._state.update(
                connected=False,
                source=source,
                error=ErrorKind.JOIN_FAILED,
                retry_action=RetryAction.REPROVISION,
            )
            self._stop_health_checks()
            return self.status()

        result = await self._transport.probe(session.address, timeout=self._config.probe_timeout)
        if result is ProbeResult.REACHABLE:
            self._state.update(connected=True, source=source)
            self._sync_health_checks()
        else:
            _logger.debug("Peer %s unreachable after %s", session.address, source)
            self._state.update(
                connected=False,
                source=source,
                error=ErrorKind.NOT_CONNECTED,
                retry_action=RetryAction.REPROVISION,
            )
            self._stop_health_checks()
        return self.status()

    async def _ensure_home_network(self, session: Session) -> bool:
        """Make sure the radio is on the session's SSID, joining it if not."""
        try:
            if await self._radio.current_ssid() == session.ssid:
                return True
            _logger.debug("Rejoining home network %r", session.ssid)
            async with asyncio.timeout(self._config.handshake_timeout):
                await self._radio.join(session.ssid, session.password)
            current = await self._radio.current_ssid()
        except TimeoutError:
            _logger.warning("Rejoining %r timed out", session.ssid)
            return False
        except RadioError as exc:
            _logger.warning("Rejoining %r failed: %s", session.ssid, exc)
            return False

        if current != session.ssid:
            _logger.warning("Radio reports %r after joining %r", current, session.ssid)
            return False
        return True

    def _sync_health_checks(self) -> None:
        run = should_run_health_checks(
            connected=self._state.connected,
            origin=self._origin,
            closed=self._closed,
            poll_provisioned_sessions=self._config.poll_provisioned_sessions,
        )
        if not run:
            self._stop_health_checks()
            return
        if not self.health_checks_running:
            self._health_task = asyncio.create_task(self._health_loop(), name="doorlink-health-check")

    def _stop_health_checks(self) -> None:
        task = self._health_task
        self._health_task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _health_loop(self) -> None:
        interval = self._config.health_check_interval
        while True:
            await asyncio.sleep(interval)
            session = self._session
            if session is None:
                return
            result = await self._transport.probe(session.address, timeout=self._config.probe_timeout)
            if result is ProbeResult.REACHABLE:
                self._state.update(connected=True, source=StatusSource.HEALTH_CHECK)
                continue

            _logger.debug("Health check of %s failed; starting recovery", session.address)
            # Detach first: recovery restarts the timer once healthy again.
            self._health_task = None
            self._state.update(
                connected=False,
                source=StatusSource.HEALTH_CHECK,
                error=ErrorKind.NOT_CONNECTED,
                retry_action=RetryAction.RECONNECT,
            )
            self._start_recovery(StatusSource.HEALTH_CHECK)
            return
