"""High-level async client for a Wi-Fi door controller."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import aiohttp

from pydoorlink._transport import HttpTransport, Transport
from pydoorlink.config import DoorLinkConfig
from pydoorlink.door import DoorController
from pydoorlink.exceptions import DoorLinkError
from pydoorlink.models.connectivity import ConnectivityStatus
from pydoorlink.models.door import DoorState
from pydoorlink.provisioning import ProvisioningController
from pydoorlink.radio import PermissionProvider, RadioAdapter
from pydoorlink.state.store import StatusListener
from pydoorlink.storage import KeyValueStore, SessionStore
from pydoorlink.supervisor import ConnectivitySupervisor

_logger = logging.getLogger(__name__)


class DoorLinkClient:
    """Wires transport, storage, supervisor and door controller together.

    Usage::

        async with DoorLinkClient(config, radio=radio, storage=storage) as client:
            await client.start()
            if not client.status().connected:
                setup = client.provisioning()
                ...
            await client.toggle_door()
    """

    def __init__(
        self,
        config: DoorLinkConfig,
        *,
        radio: RadioAdapter,
        storage: KeyValueStore,
        permissions: PermissionProvider | None = None,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._radio = radio
        self._permissions = permissions
        self._external_session = session is not None
        self._http_session = session
        self._transport_override = transport
        self._transport: Transport | None = None
        self._sessions = SessionStore(storage, config)
        self._supervisor: ConnectivitySupervisor | None = None
        self._door: DoorController | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> DoorLinkClient:
        transport = self._transport_override
        if transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            transport = HttpTransport(self._config, self._http_session)
        self._supervisor = ConnectivitySupervisor(self._config, transport, self._radio, self._sessions)
        self._door = DoorController(self._config, transport, self._supervisor, self._sessions)
        self._transport = transport
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._supervisor is not None:
            await self._supervisor.close()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._supervisor = None
        self._door = None
        self._transport = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_supervisor(self) -> ConnectivitySupervisor:
        if self._supervisor is None:
            raise DoorLinkError("Client not initialized. Use 'async with DoorLinkClient(...) as client:'")
        return self._supervisor

    def _require_door(self) -> DoorController:
        if self._door is None:
            raise DoorLinkError("Client not initialized. Use 'async with DoorLinkClient(...) as client:'")
        return self._door

    # ------------------------------------------------------------------
    # Connectivity
    # ------------------------------------------------------------------

    @property
    def supervisor(self) -> ConnectivitySupervisor:
        return self._require_supervisor()

    @property
    def door(self) -> DoorController:
        return self._require_door()

    async def start(self) -> ConnectivityStatus:
        """Cold start: restore the door state and verify the stored session."""
        await self._require_door().load()
        return await self._require_supervisor().start()

    async def on_resume(self) -> ConnectivityStatus:
        return await self._require_supervisor().on_resume()

    async def reconnect(self) -> ConnectivityStatus:
        return await self._require_supervisor().reconnect()

    def status(self) -> ConnectivityStatus:
        return self._require_supervisor().status()

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        return self._require_supervisor().subscribe(listener)

    # ------------------------------------------------------------------
    # Provisioning
    # ------------------------------------------------------------------

    def provisioning(self) -> ProvisioningController:
        """Start a new pairing flow that hands over to this client on success."""
        supervisor = self._require_supervisor()
        assert self._transport is not None  # noqa: S101
        _logger.debug("Starting a new provisioning flow")
        return ProvisioningController(
            self._config,
            self._transport,
            self._radio,
            self._sessions,
            permissions=self._permissions,
            on_complete=supervisor.adopt_session,
        )

    # ------------------------------------------------------------------
    # Door
    # ------------------------------------------------------------------

    @property
    def door_state(self) -> DoorState:
        return self._require_door().state

    async def toggle_door(self) -> DoorState:
        return await self._require_door().toggle()
