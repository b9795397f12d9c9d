"""Great-circle distance helpers (kilometres)"""

import math
from dataclasses import dataclass

EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE_LAT = 111.0


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance between two points in kilometres"""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def bounding_box(lat: float, lon: float, radius_km: float) -> tuple[float, float, float, float]:
    """
    (min_lat, max_lat, min_lon, max_lon) enclosing a radius around a point.

    Used as a cheap SQL prefilter; callers still apply haversine_km for the
    exact cut. Near the poles the longitude range widens to the full circle.
    """
    lat_delta = radius_km / KM_PER_DEGREE_LAT
    cos_lat = math.cos(math.radians(lat))
    if cos_lat < 1e-6:
        lon_delta = 180.0
    else:
        lon_delta = min(180.0, radius_km / (KM_PER_DEGREE_LAT * cos_lat))
    return lat - lat_delta, lat + lat_delta, lon - lon_delta, lon + lon_delta
