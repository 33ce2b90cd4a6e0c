"""Client configuration for pydoorlink."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pydoorlink._constants import (
    DEFAULT_COMMAND_TIMEOUT,
    DEFAULT_HANDSHAKE_TIMEOUT,
    DEFAULT_HEALTH_CHECK_INTERVAL,
    DEFAULT_PROBE_TIMEOUT,
    DEFAULT_REJOIN_PROBE_INTERVAL,
    DOOR_STATE_KEY,
    PEER_AP_ADDRESS,
    SESSION_KEY,
)
from pydoorlink.exceptions import DoorLinkConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_seconds(name: str, value: str) -> float:
    try:
        seconds = float(value)
    except ValueError as exc:
        raise DoorLinkConfigError(f"{name} must be a number of seconds, got {value!r}") from exc
    return seconds


@dataclasses.dataclass(frozen=True)
class DoorLinkConfig:
    """Client configuration.

    Parameters
    ----------
    peer_ap_address : str
        Address the peer answers on while hosting its own access point.
        The setup handshake is always sent here.
    probe_timeout : float
        Seconds allowed for a single ``/ping`` probe.
    command_timeout : float
        Seconds allowed for an ``/open`` or ``/close`` command.
    handshake_timeout : float
        Seconds allowed for joining a network, for the ``/setup``
        request and for the peer to reappear on the home network.
    health_check_interval : float
        Seconds between periodic probes while connected.
    rejoin_probe_interval : float
        Pause between probes while waiting for the peer to rejoin the
        home network after provisioning.
    require_location_services : bool
        Whether scanning needs location services enabled (Android).
    poll_provisioned_sessions : bool
        Run periodic health checks for sessions handed over by a fresh
        provisioning.  Off by default: only sessions restored on a cold
        start are polled.
    session_key : str
        Storage key of the persisted session JSON.
    door_state_key : str
        Storage key of the persisted door state.
    """

    peer_ap_address: str = PEER_AP_ADDRESS
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT
    command_timeout: float = DEFAULT_COMMAND_TIMEOUT
    handshake_timeout: float = DEFAULT_HANDSHAKE_TIMEOUT
    health_check_interval: float = DEFAULT_HEALTH_CHECK_INTERVAL
    rejoin_probe_interval: float = DEFAULT_REJOIN_PROBE_INTERVAL
    require_location_services: bool = True
    poll_provisioned_sessions: bool = False
    session_key: str = SESSION_KEY
    door_state_key: str = DOOR_STATE_KEY

    def __post_init__(self) -> None:
        for name in (
            "probe_timeout",
            "command_timeout",
            "handshake_timeout",
            "health_check_interval",
        ):
            if getattr(self, name) <= 0:
                raise DoorLinkConfigError(f"{name} must be positive")
        if self.rejoin_probe_interval < 0:
            raise DoorLinkConfigError("rejoin_probe_interval must not be negative")
        if not self.peer_ap_address.strip():
            raise DoorLinkConfigError("peer_ap_address must be non-empty")

    @classmethod
    def from_env(cls, **overrides: Any) -> DoorLinkConfig:
        """Create configuration from ``DOORLINK_*`` environment variables.

        Explicit keyword arguments override environment values.

        Raises
        ------
        DoorLinkConfigError
            If a numeric variable cannot be parsed or a value is out of range.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        _ENV_STR_MAP = {
            "DOORLINK_PEER_AP_ADDRESS": "peer_ap_address",
            "DOORLINK_SESSION_KEY": "session_key",
            "DOORLINK_DOOR_STATE_KEY": "door_state_key",
        }
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_SECONDS_MAP = {
            "DOORLINK_PROBE_TIMEOUT": "probe_timeout",
            "DOORLINK_COMMAND_TIMEOUT": "command_timeout",
            "DOORLINK_HANDSHAKE_TIMEOUT": "handshake_timeout",
            "DOORLINK_HEALTH_CHECK_INTERVAL": "health_check_interval",
            "DOORLINK_REJOIN_PROBE_INTERVAL": "rejoin_probe_interval",
        }
        for env_key, field_name in _ENV_SECONDS_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_seconds(env_key, val)

        if "require_location_services" not in overrides:
            config_kwargs["require_location_services"] = _env_bool(
                env.get("DOORLINK_REQUIRE_LOCATION_SERVICES"),
                True,
            )
        if "poll_provisioned_sessions" not in overrides:
            config_kwargs["poll_provisioned_sessions"] = _env_bool(
                env.get("DOORLINK_POLL_PROVISIONED_SESSIONS"),
                False,
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
