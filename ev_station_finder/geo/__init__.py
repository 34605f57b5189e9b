"""geo – haversine distances and coordinate helpers."""

from .geo_utils import (
    EARTH_RADIUS_KM,
    LatLon,
    flatten_coordinates,
    haversine_km,
    haversine_km_many,
    is_valid_latlon,
)

__all__ = [
    "EARTH_RADIUS_KM", "LatLon",
    "flatten_coordinates", "haversine_km", "haversine_km_many", "is_valid_latlon",
]
