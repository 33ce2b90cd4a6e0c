"""Persistence of the pairing session and the door state.

The key/value backend is an external collaborator; this module only owns
the serialization of what goes into it.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from pydoorlink._redact import redact_for_log
from pydoorlink.config import DoorLinkConfig
from pydoorlink.exceptions import StorageError
from pydoorlink.models.door import DoorState
from pydoorlink.session import Session

_logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Durable string storage keyed by string."""

    async def get_item(self, key: str) -> str | None:
        ...

    async def set_item(self, key: str, value: str) -> None:
        ...


class MemoryKeyValueStore:
    """Process-local store, useful for tests and ephemeral controllers."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def snapshot(self) -> dict[str, str]:
        return dict(self._items)


class JsonFileKeyValueStore:
    """Store backed by a single JSON object on disk.

    Writes go to a sibling temporary file which then replaces the target,
    so a crash never leaves a half-written file behind.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = asyncio.Lock()

    def _read(self) -> dict[str, str]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise StorageError(f"Cannot read {self._path}: {exc}") from exc
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise StorageError(f"{self._path} is not valid JSON") from exc
        if not isinstance(data, dict):
            raise StorageError(f"{self._path} does not hold a JSON object")
        return {str(k): str(v) for k, v in data.items()}

    def _write(self, data: dict[str, str]) -> None:
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
            tmp.replace(self._path)
        except OSError as exc:
            raise StorageError(f"Cannot write {self._path}: {exc}") from exc

    async def get_item(self, key: str) -> str | None:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
        return data.get(key)

    async def set_item(self, key: str, value: str) -> None:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            data[key] = value
            await asyncio.to_thread(self._write, data)


class SessionStore:
    """Typed access to the persisted session and door state."""

    def __init__(self, backend: KeyValueStore, config: DoorLinkConfig | None = None) -> None:
        self._backend = backend
        self._config = config or DoorLinkConfig()

    async def load_session(self) -> Session | None:
        """Return the stored session, or ``None`` if nothing was ever paired.

        Raises
        ------
        StorageError
            If a session is stored but cannot be parsed.
        """
        raw = await self._backend.get_item(self._config.session_key)
        if raw is None:
            return None
        try:
            return Session.from_json(raw)
        except ValidationError as exc:
            _logger.warning("Stored session under %r is corrupt", self._config.session_key)
            raise StorageError(f"Stored session under {self._config.session_key!r} is corrupt") from exc

    async def save_session(self, session: Session) -> None:
        """Persist *session*, replacing whatever was stored before."""
        _logger.debug("Saving session %s", redact_for_log(session.model_dump(mode="json", by_alias=True)))
        await self._backend.set_item(self._config.session_key, session.to_json())

    async def load_door_state(self) -> DoorState:
        raw = await self._backend.get_item(self._config.door_state_key)
        if raw is None:
            return DoorState.CLOSED
        try:
            return DoorState(raw)
        except ValueError:
            _logger.warning("Ignoring unknown door state %r; assuming closed", raw)
            return DoorState.CLOSED

    async def save_door_state(self, state: DoorState) -> None:
        await self._backend.set_item(self._config.door_state_key, state.value)
