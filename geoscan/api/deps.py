"""FastAPI dependency injection wiring."""

from __future__ import annotations

from fastapi import Request

from geoscan.services.geo_data_manager import GeoDataManager


def get_geo_manager(request: Request) -> GeoDataManager:
    """The table manager built at startup (singleton from app.state)."""
    return request.app.state.geo_manager
