"""One-time pairing flow.

Moves the controller onto the peer's own access point, hands the peer the
home network credentials, then follows the peer back onto the home network
and records where it can be reached.

Every stage failure parks the controller in ``FAILED`` with a
:class:`ProvisioningFailure`.  :meth:`ProvisioningController.retry`
re-enters the failed stage with the inputs it had; failures that leave the
network state ambiguous demand :meth:`ProvisioningController.reset`.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from ipaddress import IPv4Address

from pydoorlink._constants import CREDENTIALS_MARKER, PEER_ADDRESS_PATTERN, SETUP_PATH
from pydoorlink._transport import SendResult, Transport
from pydoorlink.config import DoorLinkConfig
from pydoorlink.exceptions import (
    BusyError,
    DoorLinkError,
    ErrorKind,
    HandshakeFailedError,
    HandshakeTimeoutError,
    InvalidStageError,
    JoinFailedError,
    PermissionDeniedError,
    PrerequisiteUnmetError,
    ProtocolViolationError,
    ProvisioningError,
    RadioError,
    RestartRequiredError,
    RetryAction,
    ScanFailedError,
    StorageError,
)
from pydoorlink.models.connectivity import ProbeResult, TransportFailure
from pydoorlink.models.network import ScanResult
from pydoorlink.models.provisioning import (
    HandshakeResult,
    ProvisioningFailure,
    ProvisioningStage,
    StageTransition,
)
from pydoorlink.radio import GrantedPermissions, PermissionProvider, RadioAdapter
from pydoorlink.session import Session
from pydoorlink.storage import SessionStore

_logger = logging.getLogger(__name__)

CompletionHandler = Callable[[Session], Awaitable[object]]

_Stage = ProvisioningStage


def parse_handshake(result: SendResult) -> HandshakeResult:
    """Interpret the peer's answer to ``/setup``.

    The body counts as a match when it contains the literal success marker
    followed by a dotted-quad address.  A match is reported even if the
    transport failed afterwards.  Octets with leading zeros are accepted
    and read as decimal, so ``192.168.001.042`` yields ``192.168.1.42``;
    the text as sent is kept in ``HandshakeResult.address_text``.

    Raises
    ------
    ProtocolViolationError
        The marker is present but no valid IPv4 address follows it.
    """
    body = result.body
    transport_error = None if result.ok else (result.failure or TransportFailure.NETWORK)
    marker = body.find(CREDENTIALS_MARKER)
    if marker < 0:
        return HandshakeResult(matched=False, transport_error=transport_error, body=body)

    match = PEER_ADDRESS_PATTERN.search(body, marker + len(CREDENTIALS_MARKER))
    if match is None:
        raise ProtocolViolationError(
            "Peer acknowledged the credentials without an address",
            stage=_Stage.SENDING_CREDENTIALS,
        )
    text = match.group(1)
    try:
        address = IPv4Address(".".join(str(int(octet)) for octet in text.split(".")))
    except ValueError as exc:
        raise ProtocolViolationError(
            f"Peer reported an invalid address {text!r}",
            stage=_Stage.SENDING_CREDENTIALS,
        ) from exc
    return HandshakeResult(
        matched=True,
        peer_address=address,
        address_text=text,
        transport_error=transport_error,
        body=body,
    )


def _ssid_of(network: ScanResult | str) -> str:
    return network.ssid if isinstance(network, ScanResult) else network


def _require_selection(network: ScanResult | str, password: str) -> tuple[str, str]:
    ssid = _ssid_of(network)
    if not ssid:
        raise ValueError("Select a network first")
    if not password:
        raise ValueError("Enter the network password")
    return ssid, password


class ProvisioningController:
    """State machine for pairing one peer.

    Usage::

        controller = ProvisioningController(config, transport, radio, sessions)
        peers = await controller.begin()
        homes = await controller.join_peer_network(peers[0], "peer-password")
        session = await controller.send_credentials(homes[0], "home-password")
    """

    def __init__(
        self,
        config: DoorLinkConfig,
        transport: Transport,
        radio: RadioAdapter,
        sessions: SessionStore,
        *,
        permissions: PermissionProvider | None = None,
        on_complete: CompletionHandler | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._radio = radio
        self._sessions = sessions
        self._permissions = permissions if permissions is not None else GrantedPermissions()
        self._on_complete = on_complete
        self._lock = asyncio.Lock()
        self._stage = _Stage.IDLE
        self._history: list[StageTransition] = []
        self._clear()

    def _clear(self) -> None:
        self._failure: ProvisioningFailure | None = None
        self._peer_networks: list[ScanResult] = []
        self._home_networks: list[ScanResult] = []
        self._peer_selection: tuple[str, str] | None = None
        self._home_selection: tuple[str, str] | None = None
        self._candidate: IPv4Address | None = None
        self._home_verified = False
        self._session: Session | None = None

    # ------------------------------------------------------------------
    # Read surface
    # ------------------------------------------------------------------

    @property
    def stage(self) -> ProvisioningStage:
        return self._stage

    @property
    def failure(self) -> ProvisioningFailure | None:
        return self._failure

    @property
    def history(self) -> tuple[StageTransition, ...]:
        return tuple(self._history)

    @property
    def peer_networks(self) -> list[ScanResult]:
        return list(self._peer_networks)

    @property
    def home_networks(self) -> list[ScanResult]:
        return list(self._home_networks)

    @property
    def candidate_address(self) -> IPv4Address | None:
        return self._candidate

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def busy(self) -> bool:
        """True while a stage runs; the UI should block navigation meanwhile."""
        return self._lock.locked()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def begin(self) -> list[ScanResult]:
        """Check permissions and prerequisites, then scan for the peer's AP."""
        async with self._operation(_Stage.IDLE):
            await self._acquire_permissions()
            await self._check_prerequisites()
            await self._scan(_Stage.SCANNING_PEER_NETWORKS)
        return self.peer_networks

    async def scan_peer_networks(self) -> list[ScanResult]:
        """Rescan while waiting for the peer network selection."""
        async with self._operation(_Stage.AWAITING_NETWORK_SELECTION):
            await self._scan(_Stage.SCANNING_PEER_NETWORKS)
        return self.peer_networks

    async def join_peer_network(self, network: ScanResult | str, password: str) -> list[ScanResult]:
        """Join the peer's access point, then scan for home networks."""
        selection = _require_selection(network, password)
        async with self._operation(_Stage.AWAITING_NETWORK_SELECTION):
            self._peer_selection = selection
            await self._join_peer_network()
        return self.home_networks

    async def scan_home_networks(self) -> list[ScanResult]:
        """Rescan while waiting for the home network selection."""
        async with self._operation(_Stage.AWAITING_HOME_SELECTION):
            await self._scan(_Stage.SCANNING_HOME_NETWORKS)
        return self.home_networks

    async def send_credentials(self, network: ScanResult | str, password: str) -> Session:
        """Hand the home credentials to the peer and wait for it to rejoin."""
        selection = _require_selection(network, password)
        async with self._operation(_Stage.AWAITING_HOME_SELECTION):
            self._home_selection = selection
            await self._send_credentials()
        assert self._session is not None  # noqa: S101
        return self._session

    async def retry(self) -> ProvisioningStage:
        """Re-enter the stage that failed, reusing its previous inputs.

        Raises
        ------
        RestartRequiredError
            The failure left the network state ambiguous; call :meth:`reset`.
        """
        async with self._operation(_Stage.FAILED):
            failure = self._failure
            assert failure is not None  # noqa: S101
            if failure.retry_action is RetryAction.RESTART:
                raise RestartRequiredError(f"{failure.stage} cannot be retried in place: {failure.message}")
            _logger.debug("Retrying %s after %s", failure.stage, failure.kind)
            await self._reenter(failure.stage)
        return self._stage

    def reset(self) -> None:
        """Abandon the current attempt and start over from ``IDLE``."""
        if self._lock.locked():
            raise BusyError("Cannot reset while a provisioning step is running")
        self._clear()
        self._transition(_Stage.IDLE)

    # ------------------------------------------------------------------
    # Stage plumbing
    # ------------------------------------------------------------------

    @contextlib.asynccontextmanager
    async def _operation(self, *allowed: ProvisioningStage) -> AsyncIterator[None]:
        if self._lock.locked():
            raise BusyError("A provisioning step is already running")
        async with self._lock:
            if self._stage not in allowed:
                expected = ", ".join(str(s) for s in allowed)
                raise InvalidStageError(f"Operation needs stage {expected}, current stage is {self._stage}")
            yield

    def _transition(self, stage: ProvisioningStage, error: ErrorKind | None = None) -> None:
        previous = self._stage
        self._stage = stage
        self._history.append(StageTransition(previous=previous, current=stage, error=error))
        _logger.debug("Provisioning %s -> %s", previous, stage)

    def _fail(self, exc: DoorLinkError, *, retry_action: RetryAction | None = None) -> DoorLinkError:
        """Record *exc* as the failure of the current stage and return it for raising."""
        stage = self._stage
        action = retry_action or getattr(exc, "retry_action", None) or RetryAction.RETRY_STAGE
        if isinstance(exc, ProvisioningError):
            if exc.stage is None:
                exc.stage = stage
            exc.retry_action = action
        kind = exc.kind or ErrorKind.HANDSHAKE_FAILED
        self._failure = ProvisioningFailure(stage=stage, kind=kind, message=str(exc), retry_action=action)
        self._transition(_Stage.FAILED, error=kind)
        _logger.warning("Provisioning failed in %s: %s", stage, exc)
        return exc

    async def _reenter(self, stage: ProvisioningStage) -> None:
        self._failure = None
        if stage is _Stage.ACQUIRING_PERMISSIONS:
            await self._acquire_permissions()
            await self._check_prerequisites()
            await self._scan(_Stage.SCANNING_PEER_NETWORKS)
        elif stage is _Stage.CHECKING_PREREQUISITES:
            await self._check_prerequisites()
            await self._scan(_Stage.SCANNING_PEER_NETWORKS)
        elif stage in (_Stage.SCANNING_PEER_NETWORKS, _Stage.SCANNING_HOME_NETWORKS):
            await self._scan(stage)
        elif stage is _Stage.JOINING_PEER_NETWORK:
            await self._join_peer_network()
        elif stage is _Stage.SENDING_CREDENTIALS:
            await self._send_credentials()
        elif stage is _Stage.AWAITING_PEER_REJOIN:
            await self._await_peer_rejoin()
        else:
            raise RestartRequiredError(f"Nothing to retry for stage {stage}")

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def _acquire_permissions(self) -> None:
        self._transition(_Stage.ACQUIRING_PERMISSIONS)
        if not await self._permissions.request():
            raise self._fail(PermissionDeniedError("Location and Wi-Fi permissions are required to scan for networks"))

    async def _check_prerequisites(self) -> None:
        self._transition(_Stage.CHECKING_PREREQUISITES)
        try:
            enabled = await self._radio.is_enabled()
            if not enabled:
                _logger.debug("Wi-Fi is off; trying to enable it")
                try:
                    await self._radio.set_enabled(True)
                except RadioError as exc:
                    _logger.debug("Enabling Wi-Fi failed: %s", exc)
                enabled = await self._radio.is_enabled()
            if not enabled:
                raise self._fail(PrerequisiteUnmetError("Wi-Fi must be enabled to reach the door controller"))
            if self._config.require_location_services and not await self._radio.is_location_enabled():
                raise self._fail(PrerequisiteUnmetError("Location services must be enabled to scan for Wi-Fi networks"))
        except RadioError as exc:
            raise self._fail(PrerequisiteUnmetError(f"Cannot query the radio: {exc}")) from exc

    async def _scan(self, stage: ProvisioningStage) -> None:
        self._transition(stage)
        try:
            networks = await self._radio.scan()
        except RadioError as exc:
            raise self._fail(ScanFailedError(f"Failed to scan for networks: {exc}")) from exc
        _logger.debug("Scan found %d networks", len(networks))
        if stage is _Stage.SCANNING_PEER_NETWORKS:
            self._peer_networks = list(networks)
            self._transition(_Stage.AWAITING_NETWORK_SELECTION)
        else:
            self._home_networks = list(networks)
            self._transition(_Stage.AWAITING_HOME_SELECTION)

    async def _join(self, ssid: str, password: str) -> None:
        """Join *ssid* unless the radio is already on it."""
        if await self._radio.current_ssid() == ssid:
            _logger.debug("Already on %r; skipping join", ssid)
            return
        async with asyncio.timeout(self._config.handshake_timeout):
            await self._radio.join(ssid, password)

    async def _join_peer_network(self) -> None:
        assert self._peer_selection is not None  # noqa: S101
        ssid, password = self._peer_selection
        self._transition(_Stage.JOINING_PEER_NETWORK)
        try:
            await self._join(ssid, password)
        except TimeoutError as exc:
            raise self._fail(JoinFailedError(f"Joining {ssid!r} timed out")) from exc
        except RadioError as exc:
            raise self._fail(JoinFailedError(f"Failed to join {ssid!r}: {exc}")) from exc
        _logger.debug("Joined peer network %r", ssid)
        await self._scan(_Stage.SCANNING_HOME_NETWORKS)

    async def _send_credentials(self) -> None:
        assert self._home_selection is not None  # noqa: S101
        ssid, password = self._home_selection
        self._transition(_Stage.SENDING_CREDENTIALS)

        result = await self._transport.send(
            self._config.peer_ap_address,
            SETUP_PATH,
            {"ssid": ssid, "password": password},
            timeout=self._config.handshake_timeout,
        )
        try:
            handshake = parse_handshake(result)
        except ProtocolViolationError as exc:
            raise self._fail(exc) from exc

        if not handshake.matched:
            if result.failure is TransportFailure.TIMEOUT:
                raise self._fail(HandshakeTimeoutError("The door controller did not answer the setup request"))
            detail = result.detail if not result.ok else f"unexpected response {result.body[:64]!r}"
            raise self._fail(HandshakeFailedError(f"Failed to send credentials: {detail}"))

        assert handshake.peer_address is not None  # noqa: S101
        if str(handshake.peer_address) == self._config.peer_ap_address:
            raise self._fail(ProtocolViolationError("Peer reported its access-point address as its home address"))
        if handshake.tentative:
            _logger.warning(
                "Peer acknowledged the credentials but the request ended with %s; continuing",
                handshake.transport_error,
            )

        self._candidate = handshake.peer_address
        self._home_verified = False
        await self._await_peer_rejoin()

    async def _await_peer_rejoin(self) -> None:
        assert self._home_selection is not None and self._candidate is not None  # noqa: S101
        ssid, password = self._home_selection
        self._transition(_Stage.AWAITING_PEER_REJOIN)

        if not self._home_verified:
            try:
                await self._join(ssid, password)
                current = await self._radio.current_ssid()
            except TimeoutError as exc:
                raise self._fail(
                    JoinFailedError(f"Rejoining {ssid!r} timed out"),
                    retry_action=RetryAction.RESTART,
                ) from exc
            except RadioError as exc:
                raise self._fail(
                    JoinFailedError(f"Failed to rejoin {ssid!r}: {exc}"),
                    retry_action=RetryAction.RESTART,
                ) from exc
            if current != ssid:
                raise self._fail(
                    JoinFailedError(f"Expected to be on {ssid!r} but the radio reports {current!r}"),
                    retry_action=RetryAction.RESTART,
                )
            self._home_verified = True

        address = str(self._candidate)
        if not await self._wait_for_peer(address):
            raise self._fail(HandshakeTimeoutError(f"Door controller did not appear at {address} on {ssid!r}"))

        session = Session(ssid=ssid, password=password, peer_address=self._candidate)
        try:
            await self._sessions.save_session(session)
        except StorageError as exc:
            raise self._fail(exc) from exc

        self._session = session
        self._transition(_Stage.COMPLETE)
        _logger.debug("Provisioning complete; peer at %s on %r", address, ssid)
        if self._on_complete is not None:
            await self._on_complete(session)

    async def _wait_for_peer(self, address: str) -> bool:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._config.handshake_timeout
        attempt = 0
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                return False
            attempt += 1
            result = await self._transport.probe(address, timeout=min(self._config.probe_timeout, remaining))
            if result is ProbeResult.REACHABLE:
                _logger.debug("Peer answered at %s after %d probes", address, attempt)
                return True
            remaining = deadline - loop.time()
            if remaining <= 0:
                return False
            await asyncio.sleep(min(self._config.rejoin_probe_interval, remaining))
