"""Test doubles for the radio adapter and the peer transport."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from ipaddress import IPv4Address

from pydoorlink._transport import SendResult
from pydoorlink.exceptions import RadioError
from pydoorlink.models.connectivity import ProbeResult, TransportFailure
from pydoorlink.models.network import ScanResult

PEER_AP = ScanResult(ssid="DoorLock-AP", bssid="24:6f:28:00:00:01", signal_level=-42)
HOME = ScanResult(ssid="Home", bssid="f4:92:bf:00:00:02", signal_level=-63)
PEER_ADDRESS = "192.168.1.42"


@dataclass
class FakeRadio:
    enabled: bool = True
    location_enabled: bool = True
    current: str | None = "Office"
    networks: list[ScanResult] = field(default_factory=lambda: [PEER_AP, HOME])
    scan_error: Exception | None = None
    scan_delay: float = 0.0
    join_error: Exception | None = None
    join_delay: float = 0.0
    join_lands_on: str | None = None
    enable_succeeds: bool = True
    calls: list[tuple[str, ...]] = field(default_factory=list)

    async def is_enabled(self) -> bool:
        self.calls.append(("is_enabled",))
        return self.enabled

    async def set_enabled(self, enabled: bool) -> None:
        self.calls.append(("set_enabled", str(enabled)))
        if not self.enable_succeeds:
            raise RadioError("not allowed to toggle Wi-Fi")
        self.enabled = enabled

    async def is_location_enabled(self) -> bool:
        self.calls.append(("is_location_enabled",))
        return self.location_enabled

    async def scan(self) -> list[ScanResult]:
        self.calls.append(("scan",))
        if self.scan_delay:
            await asyncio.sleep(self.scan_delay)
        if self.scan_error is not None:
            raise self.scan_error
        return list(self.networks)

    async def join(self, ssid: str, password: str) -> None:
        self.calls.append(("join", ssid, password))
        if self.join_delay:
            await asyncio.sleep(self.join_delay)
        if self.join_error is not None:
            raise self.join_error
        self.current = self.join_lands_on or ssid

    async def current_ssid(self) -> str | None:
        return self.current

    @property
    def joins(self) -> list[tuple[str, ...]]:
        return [call for call in self.calls if call[0] == "join"]

    @property
    def scans(self) -> int:
        return sum(1 for call in self.calls if call[0] == "scan")


@dataclass
class FakeTransport:
    reachable: set[str] = field(default_factory=set)
    responses: dict[str, SendResult] = field(default_factory=dict)
    send_delay: float = 0.0
    probes: list[str] = field(default_factory=list)
    sends: list[tuple[str, str, dict[str, str] | None]] = field(default_factory=list)

    async def probe(self, address: str | IPv4Address, *, timeout: float | None = None) -> ProbeResult:
        self.probes.append(str(address))
        await asyncio.sleep(0)
        return ProbeResult.REACHABLE if str(address) in self.reachable else ProbeResult.UNREACHABLE

    async def send(
        self,
        address: str | IPv4Address,
        path: str,
        query: Mapping[str, str] | None = None,
        *,
        timeout: float | None = None,
    ) -> SendResult:
        self.sends.append((str(address), path, dict(query) if query else None))
        if self.send_delay:
            try:
                async with asyncio.timeout(timeout):
                    await asyncio.sleep(self.send_delay)
            except TimeoutError:
                return SendResult(ok=False, failure=TransportFailure.TIMEOUT, detail="timed out")
        return self.responses.get(path, SendResult(ok=True, body="OK", status=200))


async def wait_for(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.005)
