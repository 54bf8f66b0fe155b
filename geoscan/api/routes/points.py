"""Point CRUD endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field

from geoscan.api.deps import get_geo_manager
from geoscan.contracts.item import PutPointRequest
from geoscan.errors import ValidationError
from geoscan.persistence.errors import BackendError, PointExistsError, PointNotFoundError
from geoscan.services.geo_data_manager import GeoDataManager

router = APIRouter(prefix="/points", tags=["points"])


class UpdatePointBody(BaseModel):
    """Attribute changes; a ``null`` value removes the attribute."""

    changes: dict[str, Any] = Field(..., min_length=1)


@router.post("", status_code=201)
async def put_point(
    request: PutPointRequest,
    overwrite: bool = True,
    manager: GeoDataManager = Depends(get_geo_manager),
) -> dict:
    try:
        item = await manager.put_point(request, overwrite=overwrite)
    except PointExistsError as exc:
        raise HTTPException(status_code=409, detail="Point already exists") from exc
    except BackendError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return item.to_document()


@router.post("/batch")
async def batch_write_points(
    requests: list[PutPointRequest],
    manager: GeoDataManager = Depends(get_geo_manager),
) -> dict:
    result = await manager.batch_write_points(requests)
    return {
        "written": result.written,
        "unprocessed": [
            {"hash_key": item.hash_key, "range_key": item.range_key}
            for item in result.unprocessed
        ],
    }


@router.get("/{hash_key}/{range_key}")
async def get_point(
    hash_key: str,
    range_key: str,
    manager: GeoDataManager = Depends(get_geo_manager),
) -> dict:
    try:
        item = await manager.get_point(hash_key, range_key)
    except BackendError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    if item is None:
        raise HTTPException(status_code=404, detail="Point not found")
    return item.to_document()


@router.patch("/{hash_key}/{range_key}")
async def update_point(
    hash_key: str,
    range_key: str,
    body: UpdatePointBody,
    manager: GeoDataManager = Depends(get_geo_manager),
) -> dict:
    try:
        item = await manager.update_point(hash_key, range_key, body.changes)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except PointNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Point not found") from exc
    except BackendError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return item.to_document()


@router.delete("/{hash_key}/{range_key}", status_code=204, response_class=Response)
async def delete_point(
    hash_key: str,
    range_key: str,
    manager: GeoDataManager = Depends(get_geo_manager),
) -> Response:
    try:
        await manager.delete_point(hash_key, range_key)
    except BackendError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return Response(status_code=204)
