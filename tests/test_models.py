from __future__ import annotations

import pytest

from pydoorlink.models.door import DoorCommand, DoorState
from pydoorlink.models.network import ScanResult, SignalQuality


def test_scan_result_accepts_adapter_keys() -> None:
    result = ScanResult.model_validate({"SSID": "DoorLock-AP", "BSSID": "24:6f:28:00:00:01", "level": -48})

    assert result.ssid == "DoorLock-AP"
    assert result.bssid == "24:6f:28:00:00:01"
    assert result.signal_level == -48


@pytest.mark.parametrize(
    ("level", "quality"),
    [
        (-30, SignalQuality.EXCELLENT),
        (-50, SignalQuality.EXCELLENT),
        (-51, SignalQuality.GOOD),
        (-60, SignalQuality.GOOD),
        (-70, SignalQuality.FAIR),
        (-71, SignalQuality.POOR),
    ],
)
def test_signal_quality_buckets(level: int, quality: SignalQuality) -> None:
    assert ScanResult(ssid="x", signal_level=level).signal_quality is quality


def test_door_state_command_and_toggle() -> None:
    assert DoorState.CLOSED.command is DoorCommand.OPEN
    assert DoorState.OPEN.command is DoorCommand.CLOSE
    assert DoorState.CLOSED.toggled() is DoorState.OPEN
    assert DoorState.OPEN.toggled() is DoorState.CLOSED
