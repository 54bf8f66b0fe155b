"""Query shapes: a radius around a centre or a lat/lon rectangle.

Shapes carry their own exact membership test, used by the query
post-filter to drop the false positives of the curve covering.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

import pydantic
from pydantic import BaseModel, ConfigDict, Field, model_validator

from geoscan.contracts.geo import GeoPoint
from geoscan.errors import ValidationError
from geoscan.index.geometry import haversine_m, in_rectangle


class RadiusQuery(BaseModel):
    """All points within ``radius_m`` meters (great-circle) of ``center``."""

    kind: Literal["radius"] = "radius"
    center: GeoPoint
    radius_m: float = Field(..., gt=0, allow_inf_nan=False)

    model_config = ConfigDict(frozen=True)

    def contains(self, point: GeoPoint) -> bool:
        distance = haversine_m(
            self.center.latitude, self.center.longitude, point.latitude, point.longitude
        )
        return distance <= self.radius_m


class RectangleQuery(BaseModel):
    """All points with ``min_point <= point <= max_point`` on both axes."""

    kind: Literal["rectangle"] = "rectangle"
    min_point: GeoPoint
    max_point: GeoPoint

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_corners(self) -> "RectangleQuery":
        if self.min_point.latitude > self.max_point.latitude:
            raise ValueError("min_point.latitude must be <= max_point.latitude")
        if self.min_point.longitude > self.max_point.longitude:
            raise ValueError("min_point.longitude must be <= max_point.longitude")
        return self

    def contains(self, point: GeoPoint) -> bool:
        return in_rectangle(
            point.latitude,
            point.longitude,
            self.min_point.latitude,
            self.min_point.longitude,
            self.max_point.latitude,
            self.max_point.longitude,
        )


QueryShape = Annotated[Union[RadiusQuery, RectangleQuery], Field(discriminator="kind")]


def radius_query(center: GeoPoint, radius_m: float) -> RadiusQuery:
    """Build a ``RadiusQuery``, raising ``ValidationError`` on bad input."""
    try:
        return RadiusQuery(center=center, radius_m=radius_m)
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Invalid radius query: {exc}") from exc


def rectangle_query(min_point: GeoPoint, max_point: GeoPoint) -> RectangleQuery:
    """Build a ``RectangleQuery``, raising ``ValidationError`` on bad input."""
    try:
        return RectangleQuery(min_point=min_point, max_point=max_point)
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Invalid rectangle query: {exc}") from exc
