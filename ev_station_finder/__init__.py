"""
EV Station Finder
=================
Range-constrained charging station selection with obstruction-aware
route validation.

Given a vehicle's remaining range and connector type, the search ranks the
charging stations reachable from the driver's position, then asks a routing
provider for a route to each candidate in ascending distance order and keeps
the first route that does not pass next to active road works.

Package layout
--------------
ev_station_finder/
    geo/        – haversine distance, coordinate flattening
    charging/   – connector normalisation, power bands, compatibility policy
    vehicle/    – vehicle record and effective range
    data/       – station / road-work records, dataset snapshot cache
    routing/    – route geometry and obstruction proximity checks
    services/   – geocoding and routing HTTP clients
    search/     – candidate ranking and the fallback search state machine

Quick start::

    from ev_station_finder import SearchConfig, Vehicle, find_reachable_station
    from ev_station_finder.services import OsrmRouter

    vehicle = Vehicle(connector="CCS Combo 2", range_km=300, charge_percent=50)
    outcome = find_reachable_station(
        vehicle, (55.75, 37.61), stations, obstructions,
        SearchConfig(), router=OsrmRouter(),
    )
    if outcome.is_success:
        print(outcome.station.name, round(outcome.distance_km, 1), "km")
"""

from .exceptions import StationFinderError, InputError, RoutingError, GeocodingError
from .config import SearchConfig
from .vehicle import Vehicle
from .data import Station, Obstruction
from .search import (
    SearchState,
    SearchOutcome,
    Success,
    NoReachableStation,
    ExhaustedNoObstructionFree,
    InputErrorOutcome,
    StationSearch,
    find_reachable_station,
)

__all__ = [
    "StationFinderError", "InputError", "RoutingError", "GeocodingError",
    "SearchConfig", "Vehicle", "Station", "Obstruction",
    "SearchState", "SearchOutcome", "Success", "NoReachableStation",
    "ExhaustedNoObstructionFree", "InputErrorOutcome",
    "StationSearch", "find_reachable_station",
]
