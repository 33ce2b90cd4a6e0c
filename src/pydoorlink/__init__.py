"""pydoorlink - Async pairing and control of Wi-Fi door controllers."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pydoorlink")
except PackageNotFoundError:
    __version__ = "0+local"
from pydoorlink._transport import HttpTransport, SendResult, Transport
from pydoorlink.client import DoorLinkClient
from pydoorlink.config import DoorLinkConfig
from pydoorlink.door import DoorController
from pydoorlink.exceptions import (
    BusyError,
    CommandFailedError,
    CommandTimeoutError,
    DoorLinkConfigError,
    DoorLinkError,
    ErrorKind,
    HandshakeFailedError,
    HandshakeTimeoutError,
    InvalidStageError,
    JoinFailedError,
    NotConnectedError,
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
from pydoorlink.models import (
    ConnectivityStatus,
    DoorState,
    HandshakeResult,
    ProbeResult,
    ProvisioningFailure,
    ProvisioningStage,
    ScanResult,
    SessionOrigin,
    SignalQuality,
    StageTransition,
    TransportFailure,
)
from pydoorlink.provisioning import ProvisioningController, parse_handshake
from pydoorlink.radio import GrantedPermissions, PermissionProvider, RadioAdapter
from pydoorlink.session import Session
from pydoorlink.state.events import StatusSource, StatusTransition
from pydoorlink.storage import JsonFileKeyValueStore, KeyValueStore, MemoryKeyValueStore, SessionStore
from pydoorlink.supervisor import ConnectivitySupervisor

__all__ = [
    "__version__",
    "BusyError",
    "CommandFailedError",
    "CommandTimeoutError",
    "ConnectivityStatus",
    "ConnectivitySupervisor",
    "DoorController",
    "DoorLinkClient",
    "DoorLinkConfig",
    "DoorLinkConfigError",
    "DoorLinkError",
    "DoorState",
    "ErrorKind",
    "GrantedPermissions",
    "HandshakeFailedError",
    "HandshakeResult",
    "HandshakeTimeoutError",
    "HttpTransport",
    "InvalidStageError",
    "JoinFailedError",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "NotConnectedError",
    "PermissionDeniedError",
    "PermissionProvider",
    "PrerequisiteUnmetError",
    "ProbeResult",
    "ProtocolViolationError",
    "ProvisioningController",
    "ProvisioningError",
    "ProvisioningFailure",
    "ProvisioningStage",
    "RadioAdapter",
    "RadioError",
    "RestartRequiredError",
    "RetryAction",
    "ScanFailedError",
    "ScanResult",
    "SendResult",
    "Session",
    "SessionOrigin",
    "SessionStore",
    "SignalQuality",
    "StageTransition",
    "StatusSource",
    "StatusTransition",
    "StorageError",
    "Transport",
    "TransportFailure",
    "parse_handshake",
]
