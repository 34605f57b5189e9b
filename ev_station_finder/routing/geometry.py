"""Route geometry returned by routing providers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from ev_station_finder.geo.geo_utils import LatLon, flatten_coordinates


@dataclass(frozen=True)
class RouteGeometry:
    """
    An ordered sequence of path segments, each an ordered list of (lat, lon).

    Only the coordinates matter to the search; distance and duration are
    carried through for display when the provider reports them.
    """
    segments: Tuple[Tuple[LatLon, ...], ...]
    distance_km: Optional[float] = None
    duration_min: Optional[float] = None

    @classmethod
    def from_paths(
        cls,
        paths: Sequence[Any],
        distance_km: Optional[float] = None,
        duration_min: Optional[float] = None,
    ) -> "RouteGeometry":
        """Build from a list of paths, each an arbitrarily nested coordinate array."""
        segments = tuple(tuple(flatten_coordinates(path)) for path in paths)
        return cls(segments=segments, distance_km=distance_km, duration_min=duration_min)

    def points(self) -> List[LatLon]:
        """All coordinates of all segments, in order."""
        return [point for segment in self.segments for point in segment]

    @property
    def num_points(self) -> int:
        return sum(len(segment) for segment in self.segments)

    @property
    def is_empty(self) -> bool:
        return self.num_points == 0
