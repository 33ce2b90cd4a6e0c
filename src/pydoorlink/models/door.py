"""Door lock state."""

from __future__ import annotations

from enum import StrEnum


class DoorCommand(StrEnum):
    """Path segment of a door command on the peer."""

    OPEN = "open"
    CLOSE = "close"


class DoorState(StrEnum):
    """Last confirmed door state, persisted as its value."""

    OPEN = "open"
    CLOSED = "closed"

    @property
    def command(self) -> DoorCommand:
        """Command that moves the door out of this state."""
        return DoorCommand.OPEN if self is DoorState.CLOSED else DoorCommand.CLOSE

    def toggled(self) -> DoorState:
        return DoorState.OPEN if self is DoorState.CLOSED else DoorState.CLOSED
