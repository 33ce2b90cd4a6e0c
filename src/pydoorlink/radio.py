"""Interfaces to the platform's Wi-Fi radio and permission prompts.

Both are supplied by the embedding application.  Implementations raise
:class:`~pydoorlink.exceptions.RadioError` when an operation fails.
"""

from __future__ import annotations

from typing import Protocol

from pydoorlink.models.network import ScanResult


class RadioAdapter(Protocol):
    async def is_enabled(self) -> bool:
        ...

    async def set_enabled(self, enabled: bool) -> None:
        ...

    async def is_location_enabled(self) -> bool:
        ...

    async def scan(self) -> list[ScanResult]:
        ...

    async def join(self, ssid: str, password: str) -> None:
        """Associate with *ssid*; return once the OS reports success."""
        ...

    async def current_ssid(self) -> str | None:
        ...


class PermissionProvider(Protocol):
    async def request(self) -> bool:
        """Prompt for scan/join permissions; ``True`` when all were granted."""
        ...


class GrantedPermissions:
    """Permission provider for platforms without runtime prompts."""

    async def request(self) -> bool:
        return True
