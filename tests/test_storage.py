from __future__ import annotations

import json
from ipaddress import IPv4Address
from pathlib import Path

import pytest

from pydoorlink.config import DoorLinkConfig
from pydoorlink.exceptions import StorageError
from pydoorlink.models.door import DoorState
from pydoorlink.session import Session
from pydoorlink.storage import JsonFileKeyValueStore, MemoryKeyValueStore, SessionStore


@pytest.mark.asyncio
async def test_session_is_stored_as_legacy_json(
    sessions: SessionStore, backend: MemoryKeyValueStore, home_session: Session
) -> None:
    await sessions.save_session(home_session)

    stored = json.loads(backend.snapshot()["esp32_connection"])
    assert stored == {"ssid": "Home", "password": "secret", "ipAddress": "192.168.1.42"}


@pytest.mark.asyncio
async def test_session_reads_back_equal(sessions: SessionStore, home_session: Session) -> None:
    await sessions.save_session(home_session)

    assert await sessions.load_session() == home_session


@pytest.mark.asyncio
async def test_reprovisioning_overwrites_session(sessions: SessionStore, home_session: Session) -> None:
    await sessions.save_session(home_session)
    replacement = Session(ssid="Cabin", password="pine", peer_address=IPv4Address("10.0.0.7"))

    await sessions.save_session(replacement)

    loaded = await sessions.load_session()
    assert loaded == replacement
    assert loaded is not None and loaded.address == "10.0.0.7"


@pytest.mark.asyncio
async def test_missing_session_loads_as_none(sessions: SessionStore) -> None:
    assert await sessions.load_session() is None


@pytest.mark.asyncio
async def test_corrupt_session_raises_storage_error(backend: MemoryKeyValueStore, sessions: SessionStore) -> None:
    await backend.set_item("esp32_connection", '{"ssid": "Home"')

    with pytest.raises(StorageError):
        await sessions.load_session()


@pytest.mark.asyncio
async def test_door_state_defaults_to_closed(sessions: SessionStore) -> None:
    assert await sessions.load_door_state() is DoorState.CLOSED


@pytest.mark.asyncio
async def test_door_state_is_persisted_as_literal(sessions: SessionStore, backend: MemoryKeyValueStore) -> None:
    await sessions.save_door_state(DoorState.OPEN)

    assert backend.snapshot()["door_state"] == "open"
    assert await sessions.load_door_state() is DoorState.OPEN


@pytest.mark.asyncio
async def test_unknown_door_state_falls_back_to_closed(sessions: SessionStore, backend: MemoryKeyValueStore) -> None:
    await backend.set_item("door_state", "ajar")

    assert await sessions.load_door_state() is DoorState.CLOSED


@pytest.mark.asyncio
async def test_json_file_store_survives_new_instance(tmp_path: Path, home_session: Session) -> None:
    path = tmp_path / "doorlink" / "state.json"
    config = DoorLinkConfig()

    await SessionStore(JsonFileKeyValueStore(path), config).save_session(home_session)
    await SessionStore(JsonFileKeyValueStore(path), config).save_door_state(DoorState.OPEN)

    reopened = SessionStore(JsonFileKeyValueStore(path), config)
    assert await reopened.load_session() == home_session
    assert await reopened.load_door_state() is DoorState.OPEN


@pytest.mark.asyncio
async def test_json_file_store_rejects_garbage(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    path.write_text("not json", encoding="utf-8")

    with pytest.raises(StorageError):
        await JsonFileKeyValueStore(path).get_item("door_state")
