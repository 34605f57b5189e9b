"""
Distance and range filtering of candidate stations.

Stations are ranked by great-circle distance from the origin. The full
ordering is kept as ``all_candidates``; those within the vehicle's
effective range form ``in_range``. Both orderings are stable, so stations
at equal distance keep their input order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from ev_station_finder.data.models import Station
from ev_station_finder.exceptions import InputError
from ev_station_finder.geo.geo_utils import LatLon, haversine_km

DEFAULT_DISPLAY_CAP = 6
DEFAULT_FALLBACK_CAP = 12


@dataclass(frozen=True)
class Candidate:
    """A station being evaluated in one search, with its distance from the origin."""
    station: Station
    coordinate: LatLon
    distance_km: float


@dataclass(frozen=True)
class CandidateRanking:
    """Ordered candidate lists produced by ``rank_candidates``."""
    in_range: Tuple[Candidate, ...]
    all_candidates: Tuple[Candidate, ...]
    display_cap: int = DEFAULT_DISPLAY_CAP
    fallback_cap: int = DEFAULT_FALLBACK_CAP

    @property
    def display(self) -> Tuple[Candidate, ...]:
        """Nearest in-range candidates to show the driver."""
        return self.in_range[:self.display_cap]

    @property
    def fallback(self) -> Tuple[Candidate, ...]:
        """In-range candidates eligible for route probing, nearest first."""
        return self.in_range[:self.fallback_cap]

    @property
    def nearest(self) -> Optional[Candidate]:
        return self.in_range[0] if self.in_range else None

    @property
    def is_empty(self) -> bool:
        return not self.in_range


def rank_candidates(
    origin: LatLon,
    effective_range_km: Optional[float],
    stations: Iterable[Station],
    display_cap: int = DEFAULT_DISPLAY_CAP,
    fallback_cap: int = DEFAULT_FALLBACK_CAP,
) -> CandidateRanking:
    """
    Rank stations by distance from ``origin`` and split off those in range.

    Args:
        origin: Driver position (lat, lon).
        effective_range_km: Usable range; None means unknown.
        stations: Stations to rank; those without a coordinate are skipped.
        display_cap: Size of the ``display`` view.
        fallback_cap: Size of the ``fallback`` view.

    Raises:
        InputError: if the effective range is unknown.
    """
    if effective_range_km is None:
        raise InputError("vehicle range is unknown, cannot run a range-constrained search")

    all_candidates: List[Candidate] = []
    for station in stations:
        if not station.has_coordinate:
            continue
        distance = haversine_km(origin, station.coordinate)
        all_candidates.append(Candidate(station, station.coordinate, distance))

    # sorted() is stable: equal distances keep input order
    all_candidates = sorted(all_candidates, key=lambda c: c.distance_km)
    in_range = [c for c in all_candidates if c.distance_km <= effective_range_km]

    return CandidateRanking(
        in_range=tuple(in_range),
        all_candidates=tuple(all_candidates),
        display_cap=display_cap,
        fallback_cap=fallback_cap,
    )
