"""
Dataset snapshots.

``DatasetCache`` holds the latest station and road-work lists (each
refreshed on its own schedule by an external updater) and hands out
copies. ``build_snapshot`` turns those lists into an immutable
``DatasetSnapshot`` for one search, resolving missing coordinates through
a geocoder.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from ev_station_finder.geo.geo_utils import LatLon

from .models import Obstruction, Station


@dataclass(frozen=True)
class DatasetSnapshot:
    """Read-only station and obstruction lists valid for one search."""
    stations: Tuple[Station, ...]
    obstructions: Tuple[Obstruction, ...]
    taken_at: datetime = field(default_factory=datetime.now)

    @property
    def located_stations(self) -> List[Station]:
        return [s for s in self.stations if s.has_coordinate]

    @property
    def unresolved_station_count(self) -> int:
        return sum(1 for s in self.stations if not s.has_coordinate)


class DatasetCache:
    """
    Thread-safe holder of the latest station and road-work datasets.

    Getters return copies so callers never observe a list being replaced
    mid-iteration.
    """

    def __init__(self) -> None:
        self._stations: List[Station] = []
        self._road_works: List[Obstruction] = []
        self._stations_lock = threading.Lock()
        self._road_works_lock = threading.Lock()
        self._stations_last_update: Optional[datetime] = None
        self._road_works_last_update: Optional[datetime] = None

    def get_stations(self) -> List[Station]:
        with self._stations_lock:
            return list(self._stations)

    def get_road_works(self) -> List[Obstruction]:
        with self._road_works_lock:
            return list(self._road_works)

    def update_stations(self, stations: Iterable[Station]) -> None:
        new_stations = list(stations)
        with self._stations_lock:
            self._stations = new_stations
            self._stations_last_update = datetime.now()

    def update_road_works(self, road_works: Iterable[Obstruction]) -> None:
        new_works = list(road_works)
        with self._road_works_lock:
            self._road_works = new_works
            self._road_works_last_update = datetime.now()

    @property
    def stations_last_update(self) -> Optional[datetime]:
        return self._stations_last_update

    @property
    def road_works_last_update(self) -> Optional[datetime]:
        return self._road_works_last_update

    @property
    def stations_count(self) -> int:
        with self._stations_lock:
            return len(self._stations)

    @property
    def road_works_count(self) -> int:
        with self._road_works_lock:
            return len(self._road_works)

    def snapshot(
        self,
        geocoder=None,
        active_status: Optional[str] = None,
        max_obstructions: Optional[int] = None,
    ) -> DatasetSnapshot:
        """Snapshot of the current datasets; see ``build_snapshot``."""
        return build_snapshot(
            self.get_stations(),
            self.get_road_works(),
            geocoder=geocoder,
            active_status=active_status,
            max_obstructions=max_obstructions,
        )


def _geocode(geocoder, address: str, prefix: str) -> Optional[LatLon]:
    if not address:
        return None
    # CachedGeocoder keys its entries by prefix; plain geocoders take the address only
    if getattr(geocoder, "keyed_by_prefix", False):
        return geocoder.geocode(address, prefix=prefix)
    return geocoder.geocode(address)


def build_snapshot(
    stations: Iterable[Station],
    obstructions: Iterable[Obstruction],
    geocoder=None,
    active_status: Optional[str] = None,
    max_obstructions: Optional[int] = None,
) -> DatasetSnapshot:
    """
    Freeze station and obstruction lists, geocoding rows without a coordinate.

    Args:
        stations: Station rows; those lacking a coordinate are geocoded by
            ``Station.address_query()``.
        obstructions: Road-work rows; geocoded by their description.
        geocoder: Object with ``geocode(address)``; None skips geocoding.
        active_status: When given, inactive obstructions are dropped before
            geocoding.
        max_obstructions: Keep at most this many obstructions (bounds the
            number of geocoder calls).

    Rows the geocoder cannot resolve are kept without a coordinate; the
    search excludes them.
    """
    resolved_stations = []
    for station in stations:
        if not station.has_coordinate and geocoder is not None:
            station = station.with_coordinate(_geocode(geocoder, station.address_query(), "st"))
        resolved_stations.append(station)

    works = list(obstructions)
    if active_status is not None:
        works = [w for w in works if w.is_active(active_status)]
    if max_obstructions is not None:
        works = works[:max(0, max_obstructions)]

    resolved_works = []
    for work in works:
        if not work.has_coordinate and geocoder is not None:
            work = work.with_coordinate(_geocode(geocoder, work.description, "rw"))
        resolved_works.append(work)

    return DatasetSnapshot(stations=tuple(resolved_stations), obstructions=tuple(resolved_works))
