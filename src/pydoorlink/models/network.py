"""Wi-Fi scan results."""

from __future__ import annotations

from enum import StrEnum

from pydantic import AliasChoices, Field

from pydoorlink._constants import SIGNAL_EXCELLENT_DBM, SIGNAL_FAIR_DBM, SIGNAL_GOOD_DBM
from pydoorlink.models._base import DoorLinkModel


class SignalQuality(StrEnum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


def classify_signal(level: int) -> SignalQuality:
    """Bucket a signal level in dBm."""
    if level >= SIGNAL_EXCELLENT_DBM:
        return SignalQuality.EXCELLENT
    if level >= SIGNAL_GOOD_DBM:
        return SignalQuality.GOOD
    if level >= SIGNAL_FAIR_DBM:
        return SignalQuality.FAIR
    return SignalQuality.POOR


class ScanResult(DoorLinkModel):
    """One network seen by a scan.

    Accepts the keys reported by common Wi-Fi adapters (``SSID``,
    ``BSSID``, ``level``) as well as the field names.
    """

    ssid: str = Field(validation_alias=AliasChoices("SSID", "ssid"))
    bssid: str = Field(default="", validation_alias=AliasChoices("BSSID", "bssid"))
    signal_level: int = Field(default=-100, validation_alias=AliasChoices("level", "signalLevel", "signal_level"))

    @property
    def signal_quality(self) -> SignalQuality:
        return classify_signal(self.signal_level)
