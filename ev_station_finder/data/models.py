"""
Station and road-work records.

Callers hand the search engine already-typed records; ``from_record``
accepts rows in the open-data layout (PascalCase dataset columns), the
web API layout (camelCase) or plain snake_case keys.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional

from ev_station_finder.geo.geo_utils import LatLon, is_valid_latlon

DEFAULT_ACTIVE_STATUS = "выполняются"   # "in progress" in the road-works dataset


def _pick(record: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """First non-empty value among ``keys``."""
    for key in keys:
        value = record.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return default


def _coordinate_from(record: Mapping[str, Any]) -> Optional[LatLon]:
    lat = _pick(record, "lat", "latitude", "Lat")
    lon = _pick(record, "lon", "lng", "longitude", "Lon")
    if lat is None or lon is None:
        coords = _pick(record, "coordinate", "coords")
        if coords is None:
            return None
        try:
            lat, lon = coords[0], coords[1]
        except (TypeError, IndexError, KeyError):
            return None
    try:
        point = (float(lat), float(lon))
    except (TypeError, ValueError):
        return None
    return point if is_valid_latlon(point) else None


def _clean(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _fold_status(value: str) -> str:
    return " ".join(value.split()).casefold()


@dataclass(frozen=True)
class Station:
    """A charging station snapshot row."""
    station_id: str
    name: str
    power: str = ""                       # Raw power descriptor, e.g. "DC 50 кВт"
    coordinate: Optional[LatLon] = None
    owner: str = ""                       # Balance holder / operator
    address: str = ""
    district: str = ""
    adm_area: str = ""

    @property
    def has_coordinate(self) -> bool:
        return self.coordinate is not None and is_valid_latlon(self.coordinate)

    def address_query(self) -> str:
        """Address string for geocoding: non-empty address parts, else the name."""
        parts = [p for p in (self.address, self.district, self.adm_area) if p]
        return ", ".join(parts) if parts else self.name

    def with_coordinate(self, coordinate: Optional[LatLon]) -> "Station":
        return replace(self, coordinate=coordinate)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Station":
        """
        Build a Station from a dataset or API row.

        The open-data ``Name`` column combines display name and power as
        ``"<name>, <power>"``; explicit ``stationName`` / ``power`` fields
        take precedence over that split.
        """
        raw_name = _clean(_pick(record, "Name", "name"))
        parts = raw_name.split(", ") if raw_name else []
        split_name = parts[0] if parts else ""
        split_power = parts[1] if len(parts) >= 2 else ""

        return cls(
            station_id=_clean(_pick(record, "id", "Number", "global_id", "station_id", default="")),
            name=_clean(_pick(record, "stationName", "station_name", default=split_name)),
            power=_clean(_pick(record, "power", "Power", default=split_power)),
            coordinate=_coordinate_from(record),
            owner=_clean(_pick(record, "balanceHolder", "balance_holder", "BalanceHolder", "owner")),
            address=_clean(_pick(record, "address", "Address")),
            district=_clean(_pick(record, "district", "District")),
            adm_area=_clean(_pick(record, "admArea", "adm_area", "AdmArea")),
        )


@dataclass(frozen=True)
class Obstruction:
    """A road-works site (or other hazard) with an active/inactive status."""
    description: str
    coordinate: Optional[LatLon] = None
    status: str = ""
    works_type: str = ""

    @property
    def has_coordinate(self) -> bool:
        return self.coordinate is not None and is_valid_latlon(self.coordinate)

    def is_active(self, active_status: str = DEFAULT_ACTIVE_STATUS) -> bool:
        """Active iff the status matches ``active_status`` ignoring case and whitespace runs."""
        return _fold_status(self.status) == _fold_status(active_status)

    def with_coordinate(self, coordinate: Optional[LatLon]) -> "Obstruction":
        return replace(self, coordinate=coordinate)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Obstruction":
        """Build an Obstruction from a road-works dataset or API row."""
        return cls(
            description=_clean(_pick(record, "WorksPlace", "worksPlace", "works_place", "description")),
            coordinate=_coordinate_from(record),
            status=_clean(_pick(record, "WorksStatus", "worksStatus", "works_status", "status")),
            works_type=_clean(_pick(record, "WorksType", "worksType", "works_type")),
        )
