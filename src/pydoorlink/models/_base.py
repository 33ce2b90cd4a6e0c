"""Base model for pydoorlink data types.

Every model inherits from :class:`DoorLinkModel` which provides:

* ``alias_generator=to_camel`` so the camelCase keys used by the
  persisted JSON and the Wi-Fi adapter map to snake_case fields.
* ``populate_by_name`` so library code can build models with field names.
* Frozen instances; state changes always produce a new object.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(UTC)


class DoorLinkModel(BaseModel):
    """Base for pydoorlink models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )
