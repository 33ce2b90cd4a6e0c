from __future__ import annotations

from collections.abc import AsyncIterator
from ipaddress import IPv4Address

import pytest
import pytest_asyncio
from fakes import PEER_ADDRESS, FakeRadio, FakeTransport

from pydoorlink.config import DoorLinkConfig
from pydoorlink.session import Session
from pydoorlink.storage import MemoryKeyValueStore, SessionStore
from pydoorlink.supervisor import ConnectivitySupervisor


@pytest.fixture
def config() -> DoorLinkConfig:
    return DoorLinkConfig(
        probe_timeout=0.05,
        command_timeout=0.1,
        handshake_timeout=0.2,
        health_check_interval=0.02,
        rejoin_probe_interval=0.01,
    )


@pytest.fixture
def radio() -> FakeRadio:
    return FakeRadio()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def backend() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def sessions(backend: MemoryKeyValueStore, config: DoorLinkConfig) -> SessionStore:
    return SessionStore(backend, config)


@pytest.fixture
def home_session() -> Session:
    return Session(ssid="Home", password="secret", peer_address=IPv4Address(PEER_ADDRESS))


@pytest_asyncio.fixture
async def supervisor(
    config: DoorLinkConfig, transport: FakeTransport, radio: FakeRadio, sessions: SessionStore
) -> AsyncIterator[ConnectivitySupervisor]:
    supervisor = ConnectivitySupervisor(config, transport, radio, sessions)
    yield supervisor
    await supervisor.close()


@pytest_asyncio.fixture
async def paired(
    sessions: SessionStore, home_session: Session, transport: FakeTransport, radio: FakeRadio
) -> Session:
    """A stored session whose peer answers on the home network."""
    await sessions.save_session(home_session)
    transport.reachable.add(PEER_ADDRESS)
    radio.current = "Home"
    return home_session
