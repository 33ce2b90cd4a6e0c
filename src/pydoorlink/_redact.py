"""Helpers for safe debug logging.

Network credentials travel in cleartext query strings and in the persisted
session, so anything that may hold them goes through here before it is
logged.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "psk",
        "pass",
        "passphrase",
        "key",
    }
)

REDACTED = "<redacted>"


def is_sensitive(key: str) -> bool:
    return key.lower() in _SENSITIVE_KEYS


def redact_query(query: Mapping[str, str] | None) -> dict[str, str]:
    """Return *query* with credential values replaced."""
    if not query:
        return {}
    return {key: REDACTED if is_sensitive(key) else value for key, value in query.items()}


def redact_for_log(value: Any, *, max_string: int = 256, _depth: int = 0) -> Any:
    """Return a redacted copy of *value* suitable for debug logs."""
    if _depth > 10:
        return "<max-depth>"

    if value is None or isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, bytes):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        return {
            str(k): REDACTED if is_sensitive(str(k)) else redact_for_log(v, max_string=max_string, _depth=_depth + 1)
            for k, v in value.items()
        }

    if isinstance(value, Sequence):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    return repr(value)
