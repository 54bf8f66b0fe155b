"""Exact spherical geometry used by the covering and the post-filter."""

from __future__ import annotations

import math

# Mean Earth radius in meters (same value for covering and filtering)
EARTH_RADIUS_M = 6367000.0


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters between two points in degrees."""
    la1, lo1 = math.radians(lat1), math.radians(lon1)
    la2, lo2 = math.radians(lat2), math.radians(lon2)
    dlat = la2 - la1
    dlon = lo2 - lo1
    a = math.sin(dlat / 2) ** 2 + math.cos(la1) * math.cos(la2) * math.sin(dlon / 2) ** 2
    return 2 * math.atan2(math.sqrt(a), math.sqrt(max(0.0, 1 - a))) * EARTH_RADIUS_M


def in_rectangle(
    latitude: float,
    longitude: float,
    min_lat: float,
    min_lon: float,
    max_lat: float,
    max_lon: float,
) -> bool:
    """Closed lat/lon box test (no antimeridian wrap)."""
    return min_lat <= latitude <= max_lat and min_lon <= longitude <= max_lon
