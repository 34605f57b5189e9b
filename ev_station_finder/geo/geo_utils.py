"""
Geographic utilities for station ranking and route checks.

Pure-math functions. All distance calculations use the haversine formula
on a spherical Earth; ``haversine_km_many`` is the numpy-vectorised variant
used when one point is compared against many.
"""

from __future__ import annotations

import math
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np

# Type alias for a geographic coordinate pair (latitude, longitude) in decimal degrees
LatLon = Tuple[float, float]

EARTH_RADIUS_KM = 6371.0


def haversine_km(point_a: LatLon, point_b: LatLon) -> float:
    """
    Compute the great-circle distance in kilometres between two (lat, lon) points.

    The intermediate term is clamped to 1 so rounding noise on antipodal
    points never pushes ``asin`` outside its domain.

    Args:
        point_a: (latitude, longitude) in decimal degrees
        point_b: (latitude, longitude) in decimal degrees

    Returns:
        Distance in kilometres.
    """
    lat1, lon1 = math.radians(point_a[0]), math.radians(point_a[1])
    lat2, lon2 = math.radians(point_b[0]), math.radians(point_b[1])

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    c = 2 * math.asin(min(1.0, math.sqrt(a)))
    return EARTH_RADIUS_KM * c


def haversine_km_many(point: LatLon, others: Sequence[LatLon]) -> np.ndarray:
    """
    Distances in km from ``point`` to every coordinate in ``others``.

    Returns an empty array when ``others`` is empty.
    """
    if len(others) == 0:
        return np.empty(0, dtype=float)

    coords = np.radians(np.asarray(others, dtype=float).reshape(-1, 2))
    lat1, lon1 = math.radians(point[0]), math.radians(point[1])
    lat2, lon2 = coords[:, 0], coords[:, 1]

    a = np.sin((lat2 - lat1) / 2) ** 2 + math.cos(lat1) * np.cos(lat2) * np.sin((lon2 - lon1) / 2) ** 2
    c = 2 * np.arcsin(np.minimum(1.0, np.sqrt(a)))
    return EARTH_RADIUS_KM * c


def flatten_coordinates(coords: Any, acc: Optional[List[LatLon]] = None) -> List[LatLon]:
    """
    Flatten arbitrarily nested coordinate arrays into an ordered point list.

    A coordinate is any sequence whose first element is a number; anything
    that is not a list/tuple is ignored.

    Args:
        coords: A coordinate, a list of coordinates, or lists of those.
        acc: Optional accumulator to append to.

    Returns:
        The accumulator with every (lat, lon) pair in encounter order.
    """
    if acc is None:
        acc = []
    if not isinstance(coords, (list, tuple)) or len(coords) == 0:
        return acc
    if isinstance(coords[0], (int, float)) and not isinstance(coords[0], bool):
        acc.append((float(coords[0]), float(coords[1])))
        return acc
    for entry in coords:
        flatten_coordinates(entry, acc)
    return acc


def is_valid_latlon(point: Any) -> bool:
    """True if ``point`` is a finite (lat, lon) pair within WGS-84 bounds."""
    try:
        lat, lon = float(point[0]), float(point[1])
    except (TypeError, ValueError, IndexError):
        return False
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0
