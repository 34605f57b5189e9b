"""
Obstruction proximity checks.

A route is obstructed when any of its sample points lies closer than the
threshold (0.3 km by default) to an active obstruction. Points are taken
exactly as the routing provider returns them; no interpolation happens
between consecutive points.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

import numpy as np

from ev_station_finder.data.models import DEFAULT_ACTIVE_STATUS, Obstruction
from ev_station_finder.geo.geo_utils import LatLon, haversine_km_many

DEFAULT_PROXIMITY_THRESHOLD_KM = 0.3


@dataclass(frozen=True)
class ObstructionHit:
    """A route point that falls inside an obstruction's proximity radius."""
    point_index: int
    point: LatLon
    obstruction: Obstruction
    distance_km: float


def active_obstructions(
    obstructions: Iterable[Obstruction],
    active_status: str = DEFAULT_ACTIVE_STATUS,
    max_count: Optional[int] = None,
) -> List[Obstruction]:
    """
    Obstructions that are in progress and have a resolved coordinate.

    Args:
        obstructions: Snapshot rows, in dataset order.
        active_status: Status value meaning "in progress".
        max_count: Keep at most this many (after filtering); None keeps all.
    """
    result = [o for o in obstructions if o.has_coordinate and o.is_active(active_status)]
    if max_count is not None:
        result = result[:max(0, max_count)]
    return result


def find_route_obstructions(
    route_points: Sequence[LatLon],
    obstructions: Sequence[Obstruction],
    threshold_km: float = DEFAULT_PROXIMITY_THRESHOLD_KM,
    first_only: bool = False,
) -> List[ObstructionHit]:
    """
    Every (point, obstruction) pair closer than ``threshold_km``.

    Points are scanned in route order and, per point, obstructions in list
    order. With ``first_only`` the scan stops at the first hit.
    """
    located = [o for o in obstructions if o.has_coordinate]
    if not located or not route_points:
        return []

    coords = [o.coordinate for o in located]
    hits: List[ObstructionHit] = []
    for index, point in enumerate(route_points):
        distances = haversine_km_many(point, coords)
        for j in np.flatnonzero(distances < threshold_km):
            hits.append(ObstructionHit(index, point, located[j], float(distances[j])))
            if first_only:
                return hits
    return hits


def route_is_obstructed(
    route,
    obstructions: Sequence[Obstruction],
    threshold_km: float = DEFAULT_PROXIMITY_THRESHOLD_KM,
) -> bool:
    """
    True if the route passes within ``threshold_km`` of any obstruction.

    Args:
        route: A RouteGeometry, or a plain sequence of (lat, lon) points.
        obstructions: Active obstructions with resolved coordinates.
        threshold_km: Strict proximity limit in km.
    """
    points = route.points() if hasattr(route, "points") else list(route)
    return bool(find_route_obstructions(points, obstructions, threshold_km, first_only=True))
