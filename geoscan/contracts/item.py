"""StoredItem: one indexed point as held by the backing store.

An item has two kinds of fields:

- **engine-owned**: primary key (``hash_key``, ``range_key``), the
  composite geo partition key (``geo_key``), the curve position
  (``geohash``), the validity window and the GeoJSON payload.
- **caller attributes**: an open map of anything else.

When flattened to store attributes, engine-owned values always override a
caller attribute of the same name.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import TYPE_CHECKING, Any

from pydantic import Field, field_validator

from geoscan.contracts.common import GeoModel, ensure_utc, format_instant, parse_instant
from geoscan.contracts.geo import GeoPoint, TimeWindow

if TYPE_CHECKING:
    from geoscan.config import GeoTableConfig

MAX_CURVE_POSITION = (1 << 64) - 1


def geo_json_for(point: GeoPoint, config: "GeoTableConfig") -> str:
    """Compact GeoJSON point, e.g. ``{"type":"Point","coordinates":[-0.13,51.51]}``."""
    if config.longitude_first:
        coordinates = [point.longitude, point.latitude]
    else:
        coordinates = [point.latitude, point.longitude]
    return json.dumps(
        {"type": config.geo_json_point_type, "coordinates": coordinates},
        separators=(",", ":"),
    )


class StoredItem(GeoModel):
    """A point as persisted: engine-owned fields plus caller attributes."""

    hash_key: str = Field(..., min_length=1)
    range_key: str = Field(..., min_length=1)
    geo_key: str = Field(..., min_length=1, description="Composite partition key")
    geohash: int = Field(..., ge=0, le=MAX_CURVE_POSITION, description="Curve position")
    window_start: datetime
    window_end: datetime
    geo_json: str
    attributes: dict[str, Any] = Field(default_factory=dict)

    @field_validator("window_start", "window_end")
    @classmethod
    def to_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    def point(self, config: "GeoTableConfig") -> GeoPoint:
        """Decode the exact point from the GeoJSON payload."""
        first, second = json.loads(self.geo_json)["coordinates"][:2]
        if config.longitude_first:
            return GeoPoint(latitude=second, longitude=first)
        return GeoPoint(latitude=first, longitude=second)

    # ------------------------------------------------------------------
    # Flat attribute form
    # ------------------------------------------------------------------

    def to_attributes(self, config: "GeoTableConfig") -> dict[str, Any]:
        """Flatten to the store's attribute map (engine fields win)."""
        data = dict(self.attributes)
        data.update(
            {
                config.hash_key_attribute_name: self.hash_key,
                config.range_key_attribute_name: self.range_key,
                config.geohash_key_attribute_name: self.geo_key,
                config.geohash_attribute_name: self.geohash,
                config.window_start_attribute_name: format_instant(self.window_start),
                config.window_end_attribute_name: format_instant(self.window_end),
                config.geo_json_attribute_name: self.geo_json,
            }
        )
        return data

    @classmethod
    def from_attributes(cls, data: dict[str, Any], config: "GeoTableConfig") -> "StoredItem":
        """Rebuild an item from the store's attribute map."""
        attributes = {
            k: v for k, v in data.items() if k not in config.engine_attribute_names
        }
        return cls(
            hash_key=data[config.hash_key_attribute_name],
            range_key=data[config.range_key_attribute_name],
            geo_key=str(data[config.geohash_key_attribute_name]),
            geohash=int(data[config.geohash_attribute_name]),
            window_start=parse_instant(data[config.window_start_attribute_name]),
            window_end=parse_instant(data[config.window_end_attribute_name]),
            geo_json=data[config.geo_json_attribute_name],
            attributes=attributes,
        )


class PutPointRequest(GeoModel):
    """Caller input for a point write.

    ``attributes`` may not override engine-owned fields: any clash is
    silently replaced by the engine-derived value.
    """

    hash_key: str = Field(..., min_length=1)
    range_key: str = Field(..., min_length=1)
    point: GeoPoint
    window: TimeWindow
    attributes: dict[str, Any] = Field(default_factory=dict)


class BatchWriteResult(GeoModel):
    """Outcome of a best-effort batch write."""

    written: int = 0
    unprocessed: list[StoredItem] = Field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.unprocessed
