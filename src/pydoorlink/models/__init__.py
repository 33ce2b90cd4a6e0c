"""Data models shared by the provisioning and connectivity layers."""

from pydoorlink.models._base import DoorLinkModel
from pydoorlink.models.connectivity import ConnectivityStatus, ProbeResult, SessionOrigin, TransportFailure
from pydoorlink.models.door import DoorCommand, DoorState
from pydoorlink.models.network import ScanResult, SignalQuality, classify_signal
from pydoorlink.models.provisioning import (
    HandshakeResult,
    ProvisioningFailure,
    ProvisioningStage,
    StageTransition,
)

__all__ = [
    "ConnectivityStatus",
    "DoorCommand",
    "DoorLinkModel",
    "DoorState",
    "HandshakeResult",
    "ProbeResult",
    "ProvisioningFailure",
    "ProvisioningStage",
    "ScanResult",
    "SessionOrigin",
    "SignalQuality",
    "StageTransition",
    "TransportFailure",
    "classify_signal",
]
