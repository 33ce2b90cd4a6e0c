"""Durable record of a completed pairing."""

from __future__ import annotations

from ipaddress import IPv4Address

from pydantic import ConfigDict, Field, field_validator

from pydoorlink.models._base import DoorLinkModel


class Session(DoorLinkModel):
    """Home-network credentials plus the peer's address on that network.

    Serialized as ``{"ssid", "password", "ipAddress"}``.

    Parameters
    ----------
    ssid : str
        Home network SSID shared by the controller and the peer.
    password : str
        Home network password, reused to rejoin the network on resume.
    peer_address : IPv4Address
        Last address at which the peer answered over the home network.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        validate_default=True,
    )

    ssid: str
    password: str
    peer_address: IPv4Address = Field(alias="ipAddress")

    @field_validator("ssid")
    @classmethod
    def _require_ssid(cls, value: str) -> str:
        if not value:
            raise ValueError("ssid must be non-empty")
        return value

    @property
    def address(self) -> str:
        return str(self.peer_address)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, payload: str) -> Session:
        return cls.model_validate_json(payload)
