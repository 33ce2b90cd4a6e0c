"""Custom exception hierarchy for pydoorlink."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from pydoorlink.models.provisioning import ProvisioningStage


class ErrorKind(StrEnum):
    """Error taxonomy shared by exceptions, status snapshots and history."""

    PERMISSION_DENIED = "permission_denied"
    PREREQUISITE_UNMET = "prerequisite_unmet"
    SCAN_FAILED = "scan_failed"
    JOIN_FAILED = "join_failed"
    HANDSHAKE_TIMEOUT = "handshake_timeout"
    HANDSHAKE_FAILED = "handshake_failed"
    PROTOCOL_VIOLATION = "protocol_violation"
    NOT_CONNECTED = "not_connected"
    COMMAND_TIMEOUT = "command_timeout"
    COMMAND_FAILED = "command_failed"
    BUSY = "busy"
    STORAGE = "storage"


class RetryAction(StrEnum):
    """What the operator can do about a failure."""

    RETRY_STAGE = "retry_stage"
    OPEN_SETTINGS = "open_settings"
    RESTART = "restart"
    RECONNECT = "reconnect"
    REPROVISION = "reprovision"


class DoorLinkError(Exception):
    """Base exception for all pydoorlink errors."""

    kind: ClassVar[ErrorKind | None] = None


class DoorLinkConfigError(DoorLinkError):
    """Invalid or missing configuration."""


class StorageError(DoorLinkError):
    """Persisted data could not be read or written."""

    kind = ErrorKind.STORAGE


class RadioError(DoorLinkError):
    """Raised by radio adapters when a Wi-Fi operation fails."""


class BusyError(DoorLinkError):
    """Another operation of the same kind is still in flight."""

    kind = ErrorKind.BUSY


# ---------------------------------------------------------------------------
# Provisioning
# ---------------------------------------------------------------------------


class ProvisioningError(DoorLinkError):
    """A provisioning stage failed.

    ``stage`` is the stage that failed and ``retry_action`` tells the
    operator how to continue.  ``RETRY_STAGE`` and ``OPEN_SETTINGS`` both
    re-enter only ``stage``; ``RESTART`` means the whole flow must be
    started over.
    """

    default_retry_action: ClassVar[RetryAction] = RetryAction.RETRY_STAGE

    def __init__(
        self,
        message: str,
        *,
        stage: ProvisioningStage | None = None,
        retry_action: RetryAction | None = None,
    ) -> None:
        self.stage = stage
        self.retry_action = retry_action if retry_action is not None else self.default_retry_action
        super().__init__(message)


class PermissionDeniedError(ProvisioningError):
    """The OS refused the permissions needed to scan or join networks."""

    kind = ErrorKind.PERMISSION_DENIED
    default_retry_action = RetryAction.OPEN_SETTINGS


class PrerequisiteUnmetError(ProvisioningError):
    """Radio or location services are switched off."""

    kind = ErrorKind.PREREQUISITE_UNMET
    default_retry_action = RetryAction.OPEN_SETTINGS


class ScanFailedError(ProvisioningError):
    """The radio adapter could not list visible networks."""

    kind = ErrorKind.SCAN_FAILED


class JoinFailedError(ProvisioningError):
    """Joining a network failed or timed out."""

    kind = ErrorKind.JOIN_FAILED


class HandshakeTimeoutError(ProvisioningError):
    """The peer did not answer the setup request or did not reappear in time."""

    kind = ErrorKind.HANDSHAKE_TIMEOUT


class HandshakeFailedError(ProvisioningError):
    """The setup request failed or the peer answered without the success marker."""

    kind = ErrorKind.HANDSHAKE_FAILED


class ProtocolViolationError(ProvisioningError):
    """The peer acknowledged the credentials without a usable address."""

    kind = ErrorKind.PROTOCOL_VIOLATION
    default_retry_action = RetryAction.RESTART


class InvalidStageError(DoorLinkError):
    """A provisioning operation was called in the wrong stage."""


class RestartRequiredError(DoorLinkError):
    """The last failure cannot be retried in place; call ``reset()``."""


# ---------------------------------------------------------------------------
# Steady state
# ---------------------------------------------------------------------------


class NotConnectedError(DoorLinkError):
    """No confirmed connection to the peer."""

    kind = ErrorKind.NOT_CONNECTED


class CommandTimeoutError(DoorLinkError):
    """The peer did not answer a door command in time.

    A slow command is not treated as a lost connection.
    """

    kind = ErrorKind.COMMAND_TIMEOUT


class CommandFailedError(DoorLinkError):
    """A door command failed at the transport or HTTP level."""

    kind = ErrorKind.COMMAND_FAILED

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)
