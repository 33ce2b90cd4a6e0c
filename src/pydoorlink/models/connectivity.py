"""Connectivity status exposed to the door-control surface."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydoorlink.exceptions import ErrorKind, RetryAction
from pydoorlink.models._base import DoorLinkModel


class ProbeResult(StrEnum):
    REACHABLE = "reachable"
    UNREACHABLE = "unreachable"


class TransportFailure(StrEnum):
    TIMEOUT = "timeout"
    HTTP_STATUS = "http_status"
    NETWORK = "network"


class SessionOrigin(StrEnum):
    """Where the supervisor got its current session from."""

    COLD_START = "cold_start"
    PROVISIONED = "provisioned"


class ConnectivityStatus(DoorLinkModel):
    """Point-in-time connectivity snapshot.

    Never persisted; rebuilt from live probes after every cold start
    and resume.
    """

    connected: bool = False
    last_checked_at: datetime | None = None
    last_error: ErrorKind | None = None
    retry_action: RetryAction | None = None
