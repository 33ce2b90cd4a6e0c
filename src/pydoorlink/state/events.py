"""Connectivity status transitions."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pydoorlink.models.connectivity import ConnectivityStatus


class StatusSource(StrEnum):
    """What caused a status update."""

    COLD_START = "cold_start"
    RESUME = "resume"
    HEALTH_CHECK = "health_check"
    RECOVERY = "recovery"
    PROVISIONING = "provisioning"
    DOOR_COMMAND = "door_command"
    MANUAL = "manual"


class StatusTransition(BaseModel):
    """Emitted on every change of ``ConnectivityStatus.connected``."""

    model_config = ConfigDict(frozen=True)

    previous: ConnectivityStatus
    current: ConnectivityStatus
    source: StatusSource
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("observed_at")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @property
    def connected(self) -> bool:
        return self.current.connected
