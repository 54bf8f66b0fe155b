"""geoscan contracts — Pydantic v2 models for the geo index.

Persisted
---------
- ``StoredItem``: one point per ``(hash_key, range_key)`` primary key,
  scanned by ``(geo_key, geohash)``

Per request
-----------
- ``PutPointRequest``: caller input of a write
- ``RadiusQuery`` / ``RectangleQuery``: query shapes
- ``TimeWindow``: validity of a point, or the span a query must intersect

Calculated (never persisted)
----------------------------
- Covering ranges, temporal buckets and scan plans
"""

from geoscan.contracts.common import GeoModel, ensure_utc, format_instant, parse_instant
from geoscan.contracts.geo import GeoPoint, TimeWindow, geo_point
from geoscan.contracts.item import (
    BatchWriteResult,
    PutPointRequest,
    StoredItem,
    geo_json_for,
)
from geoscan.contracts.shapes import (
    QueryShape,
    RadiusQuery,
    RectangleQuery,
    radius_query,
    rectangle_query,
)

__all__ = [
    # Common
    "GeoModel",
    "ensure_utc",
    "format_instant",
    "parse_instant",
    # Inputs
    "GeoPoint",
    "TimeWindow",
    "geo_point",
    "PutPointRequest",
    # Shapes
    "QueryShape",
    "RadiusQuery",
    "RectangleQuery",
    "radius_query",
    "rectangle_query",
    # Stored
    "StoredItem",
    "BatchWriteResult",
    "geo_json_for",
]
