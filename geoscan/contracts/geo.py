"""GeoPoint and TimeWindow, the per-write inputs of the index."""

from __future__ import annotations

from datetime import datetime

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from geoscan.contracts.common import ensure_utc
from geoscan.errors import ValidationError


class GeoPoint(BaseModel):
    """WGS84 geographic coordinate."""

    latitude: float = Field(..., ge=-90.0, le=90.0, allow_inf_nan=False)
    longitude: float = Field(..., ge=-180.0, le=180.0, allow_inf_nan=False)

    model_config = ConfigDict(frozen=True)


def geo_point(latitude: float, longitude: float) -> GeoPoint:
    """Build a ``GeoPoint``, raising ``ValidationError`` on bad coordinates."""
    try:
        return GeoPoint(latitude=latitude, longitude=longitude)
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Invalid point ({latitude}, {longitude}): {exc}") from exc


class TimeWindow(BaseModel):
    """Half-open validity interval ``[start, end)`` in UTC."""

    start: datetime
    end: datetime

    model_config = ConfigDict(frozen=True)

    @field_validator("start", "end")
    @classmethod
    def to_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @model_validator(mode="after")
    def check_order(self) -> "TimeWindow":
        if self.start >= self.end:
            raise ValueError(
                f"Time window start {self.start.isoformat()} must be before end {self.end.isoformat()}"
            )
        return self

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """True when ``[start, end)`` intersects this window."""
        return ensure_utc(end) > self.start and ensure_utc(start) < self.end
