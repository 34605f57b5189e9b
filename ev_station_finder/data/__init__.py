"""data – station and road-work records, file loaders, dataset cache and snapshots."""

from .models import DEFAULT_ACTIVE_STATUS, Obstruction, Station
from .loaders import load_obstructions, load_records, load_stations
from .snapshot import DatasetCache, DatasetSnapshot, build_snapshot

__all__ = [
    "DEFAULT_ACTIVE_STATUS", "Obstruction", "Station",
    "load_obstructions", "load_records", "load_stations",
    "DatasetCache", "DatasetSnapshot", "build_snapshot",
]
