"""Radius and rectangle query endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from geoscan.api.deps import get_geo_manager
from geoscan.contracts.geo import GeoPoint, TimeWindow
from geoscan.contracts.item import StoredItem
from geoscan.errors import AggregationError, ValidationError
from geoscan.services.geo_data_manager import GeoDataManager

router = APIRouter(prefix="/query", tags=["query"])


class RadiusQueryBody(BaseModel):
    center: GeoPoint
    radius_m: float
    window: TimeWindow


class RectangleQueryBody(BaseModel):
    min_point: GeoPoint
    max_point: GeoPoint
    window: TimeWindow


def _dump(items: list[StoredItem]) -> list[dict]:
    return [item.to_document() for item in items]


@router.post("/radius")
async def query_radius(
    body: RadiusQueryBody,
    manager: GeoDataManager = Depends(get_geo_manager),
) -> list[dict]:
    try:
        items = await manager.query_radius(body.center, body.radius_m, body.window)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except AggregationError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return _dump(items)


@router.post("/rectangle")
async def query_rectangle(
    body: RectangleQueryBody,
    manager: GeoDataManager = Depends(get_geo_manager),
) -> list[dict]:
    try:
        items = await manager.query_rectangle(body.min_point, body.max_point, body.window)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except AggregationError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return _dump(items)
