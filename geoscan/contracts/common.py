"""Base classes and shared helpers for geoscan contracts.

Conventions (all contracts):
- **Coordinates**: WGS84 decimal degrees
- **Distances**: meters, suffix ``_m``
- **Datetimes**: always UTC; naive values are read as UTC.  Serialized as
  ISO 8601 with millisecond precision and a ``Z`` suffix
  (``2019-06-27T11:00:36.969Z``)
- **Curve positions**: unsigned 64-bit integers
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict


class GeoModel(BaseModel):
    """Base model with store-friendly serialization."""

    model_config = ConfigDict(populate_by_name=True)

    def to_document(self) -> dict[str, Any]:
        """Dump to a JSON-safe dict (datetimes as ISO 8601)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def ensure_utc(value: datetime) -> datetime:
    """Return *value* as an aware UTC datetime."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_instant(value: datetime) -> str:
    """``2019-06-27T11:00:36.969Z`` form used for stored window bounds."""
    return ensure_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_instant(value: str | datetime) -> datetime:
    """Parse a stored window bound back into an aware UTC datetime."""
    if isinstance(value, datetime):
        return ensure_utc(value)
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(text))
