"""Provisioning stages, failures and the setup handshake result."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from ipaddress import IPv4Address

from pydantic import Field

from pydoorlink.exceptions import ErrorKind, RetryAction
from pydoorlink.models._base import DoorLinkModel, utcnow
from pydoorlink.models.connectivity import TransportFailure


class ProvisioningStage(StrEnum):
    IDLE = "idle"
    ACQUIRING_PERMISSIONS = "acquiring_permissions"
    CHECKING_PREREQUISITES = "checking_prerequisites"
    SCANNING_PEER_NETWORKS = "scanning_peer_networks"
    AWAITING_NETWORK_SELECTION = "awaiting_network_selection"
    JOINING_PEER_NETWORK = "joining_peer_network"
    SCANNING_HOME_NETWORKS = "scanning_home_networks"
    AWAITING_HOME_SELECTION = "awaiting_home_selection"
    SENDING_CREDENTIALS = "sending_credentials"
    AWAITING_PEER_REJOIN = "awaiting_peer_rejoin"
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ProvisioningStage.COMPLETE, ProvisioningStage.FAILED)


class ProvisioningFailure(DoorLinkModel):
    """Why and where provisioning stopped."""

    stage: ProvisioningStage
    kind: ErrorKind
    message: str
    retry_action: RetryAction


class StageTransition(DoorLinkModel):
    previous: ProvisioningStage
    current: ProvisioningStage
    at: datetime = Field(default_factory=utcnow)
    error: ErrorKind | None = None


class HandshakeResult(DoorLinkModel):
    """Outcome of the ``/setup`` request.

    ``matched`` and ``transport_error`` are kept apart on purpose: a peer
    may acknowledge the credentials and then drop its access point before
    the HTTP exchange finishes, which shows up as a matched body together
    with a transport error.

    ``address_text`` is the dotted quad exactly as the peer sent it.
    ``peer_address`` is the same address with leading zeros dropped.
    """

    matched: bool
    peer_address: IPv4Address | None = None
    address_text: str | None = None
    transport_error: TransportFailure | None = None
    body: str = ""

    @property
    def tentative(self) -> bool:
        return self.matched and self.transport_error is not None
