"""CoveringRangeCalculator: query shape to curve ranges.

The covering walks the cell tree breadth-first from the six face cells,
using an explicit queue:

- a cell entirely outside the shape is dropped;
- a cell entirely inside is emitted whole;
- a cell straddling the boundary is split into its four children, unless
  it sits at the resolution limit or the cell budget is spent, in which
  case it is emitted as-is.

Cell tests are conservative (they use a bounding cap that is larger than
the cell), so a cell is only dropped when no point of it can match.  That
is what makes the covering free of false negatives; the extra positions
it lets through are removed by the query post-filter.
"""

from __future__ import annotations

import logging
from collections import deque
from enum import Enum
from typing import TYPE_CHECKING

from geoscan.contracts.shapes import RadiusQuery, RectangleQuery
from geoscan.index.curve import Cell, LatLngBound, face_cells, xyz_to_lat_lng
from geoscan.index.geometry import EARTH_RADIUS_M, haversine_m
from geoscan.index.ranges import GeohashRange

if TYPE_CHECKING:
    from geoscan.config import GeoTableConfig

logger = logging.getLogger(__name__)

DEFAULT_MAX_LEVEL = 12
DEFAULT_MAX_CELLS = 32


class CellRelation(str, Enum):
    OUTSIDE = "outside"
    PARTIAL = "partial"
    INSIDE = "inside"


class CoveringRangeCalculator:
    """Computes the curve intervals that contain every match of a shape.

    ``max_level`` is the resolution limit (deeper means fewer false
    positives but more ranges) and ``max_cells`` caps how many cells the
    covering may hold before refinement stops.
    """

    def __init__(
        self,
        max_level: int = DEFAULT_MAX_LEVEL,
        max_cells: int = DEFAULT_MAX_CELLS,
    ):
        self.max_level = max_level
        self.max_cells = max_cells

    @classmethod
    def from_config(cls, config: "GeoTableConfig") -> "CoveringRangeCalculator":
        return cls(max_level=config.covering_max_level, max_cells=config.covering_max_cells)

    def cover(
        self,
        shape: RadiusQuery | RectangleQuery,
        curve_depth: int | None = None,
        max_cells: int | None = None,
    ) -> list[GeohashRange]:
        """Curve ranges (one per covering cell, in curve order)."""
        cells = self.cover_cells(shape, curve_depth, max_cells)
        return [GeohashRange(cell.range_min, cell.range_max) for cell in cells]

    def cover_cells(
        self,
        shape: RadiusQuery | RectangleQuery,
        curve_depth: int | None = None,
        max_cells: int | None = None,
    ) -> list[Cell]:
        depth = self.max_level if curve_depth is None else curve_depth
        budget = self.max_cells if max_cells is None else max_cells

        queue: deque[Cell] = deque(face_cells())
        covering: list[Cell] = []
        visited = 0
        while queue:
            cell = queue.popleft()
            visited += 1
            relation = self.relation(shape, cell)
            if relation is CellRelation.OUTSIDE:
                continue
            if (
                relation is CellRelation.INSIDE
                or cell.level >= depth
                or len(covering) + len(queue) + 4 > budget
            ):
                covering.append(cell)
                continue
            queue.extend(cell.children())

        covering.sort(key=lambda c: c.range_min)
        logger.debug(
            "Covering: %d cell(s) after visiting %d (depth=%d, budget=%d)",
            len(covering),
            visited,
            depth,
            budget,
        )
        return covering

    # ------------------------------------------------------------------
    # Cell tests
    # ------------------------------------------------------------------

    def relation(self, shape: RadiusQuery | RectangleQuery, cell: Cell) -> CellRelation:
        if isinstance(shape, RadiusQuery):
            return radius_relation(shape, cell)
        if isinstance(shape, RectangleQuery):
            return rectangle_relation(shape, cell)
        raise TypeError(f"Unsupported query shape: {type(shape).__name__}")


def radius_relation(shape: RadiusQuery, cell: Cell) -> CellRelation:
    """Compare the circle with the cell's bounding cap."""
    axis, angle = cell.bounding_cap()
    lat, lng = xyz_to_lat_lng(axis)
    distance = haversine_m(shape.center.latitude, shape.center.longitude, lat, lng)
    cap_m = angle * EARTH_RADIUS_M
    if distance - cap_m > shape.radius_m:
        return CellRelation.OUTSIDE
    if distance + cap_m <= shape.radius_m:
        return CellRelation.INSIDE
    return CellRelation.PARTIAL


def rectangle_relation(shape: RectangleQuery, cell: Cell) -> CellRelation:
    """Compare the rectangle with the cell's lat/lng bound."""
    bound = cell.lat_lng_bound()
    lat_lo, lng_lo = shape.min_point.latitude, shape.min_point.longitude
    lat_hi, lng_hi = shape.max_point.latitude, shape.max_point.longitude

    if bound.lat_hi < lat_lo or bound.lat_lo > lat_hi:
        return CellRelation.OUTSIDE
    if not _lng_overlaps(bound, lng_lo, lng_hi):
        return CellRelation.OUTSIDE

    if lat_lo <= bound.lat_lo and bound.lat_hi <= lat_hi and _lng_within(bound, lng_lo, lng_hi):
        return CellRelation.INSIDE
    return CellRelation.PARTIAL


def _lng_overlaps(bound: LatLngBound, lng_lo: float, lng_hi: float) -> bool:
    if bound.full_lng:
        return True
    return any(
        bound.lng_lo + shift <= lng_hi and bound.lng_hi + shift >= lng_lo
        for shift in (-360.0, 0.0, 360.0)
    )


def _lng_within(bound: LatLngBound, lng_lo: float, lng_hi: float) -> bool:
    if bound.full_lng:
        return lng_lo <= -180.0 and lng_hi >= 180.0
    if bound.lng_lo < -180.0:
        pieces = [(bound.lng_lo + 360.0, 180.0), (-180.0, bound.lng_hi)]
    elif bound.lng_hi > 180.0:
        pieces = [(bound.lng_lo, 180.0), (-180.0, bound.lng_hi - 360.0)]
    else:
        pieces = [(bound.lng_lo, bound.lng_hi)]
    return all(lng_lo <= lo and hi <= lng_hi for lo, hi in pieces)
