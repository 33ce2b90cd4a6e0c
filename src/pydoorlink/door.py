"""Door lock commands."""

from __future__ import annotations

import asyncio
import logging

from pydoorlink._transport import Transport
from pydoorlink.config import DoorLinkConfig
from pydoorlink.exceptions import (
    BusyError,
    CommandFailedError,
    CommandTimeoutError,
    ErrorKind,
    NotConnectedError,
)
from pydoorlink.models.connectivity import TransportFailure
from pydoorlink.models.door import DoorState
from pydoorlink.state.events import StatusSource
from pydoorlink.storage import SessionStore
from pydoorlink.supervisor import ConnectivitySupervisor

_logger = logging.getLogger(__name__)


class DoorController:
    """Toggles the lock once the supervisor reports a connection.

    The door state only changes after the peer confirms a command, and is
    persisted on every change.
    """

    def __init__(
        self,
        config: DoorLinkConfig,
        transport: Transport,
        supervisor: ConnectivitySupervisor,
        sessions: SessionStore,
    ) -> None:
        self._config = config
        self._transport = transport
        self._supervisor = supervisor
        self._sessions = sessions
        self._state = DoorState.CLOSED
        self._lock = asyncio.Lock()

    @property
    def state(self) -> DoorState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def load(self) -> DoorState:
        """Restore the last persisted door state."""
        self._state = await self._sessions.load_door_state()
        return self._state

    async def toggle(self) -> DoorState:
        """Open a closed door or close an open one.

        Returns
        -------
        DoorState
            The new, confirmed and persisted state.

        Raises
        ------
        BusyError
            A toggle is already in flight.
        NotConnectedError
            The supervisor reports no connection; nothing was sent.
        CommandTimeoutError
            The peer did not answer in time.  State and connection are unchanged.
        CommandFailedError
            The command failed otherwise; the connection is marked lost.
        """
        if self._lock.locked():
            raise BusyError("A door command is already in progress")

        async with self._lock:
            if not self._supervisor.status().connected:
                raise NotConnectedError("Not connected to the door controller; set up the connection first")
            address = self._supervisor.peer_address
            if address is None:
                raise NotConnectedError("No paired door controller")

            command = self._state.command
            result = await self._transport.send(address, command.value, timeout=self._config.command_timeout)

            if result.failure is TransportFailure.TIMEOUT:
                raise CommandTimeoutError(f"No answer to {command.value!r} within {self._config.command_timeout}s")

            if not result.ok or not result.body:
                detail = result.detail or "empty response"
                _logger.debug("Door command %r failed: %s", command.value, detail)
                self._supervisor.mark_disconnected(source=StatusSource.DOOR_COMMAND, error=ErrorKind.COMMAND_FAILED)
                raise CommandFailedError(f"Door command {command.value!r} failed: {detail}", status_code=result.status)

            previous = self._state
            self._state = previous.toggled()
            try:
                await self._sessions.save_door_state(self._state)
            except Exception:
                self._state = previous
                raise
            _logger.debug("Door %s -> %s", previous, self._state)
            return self._state
