"""
Shared pytest fixtures for the EV Station Finder test suite.
"""

import math

import pytest

from ev_station_finder.charging import PowerBand
from ev_station_finder.config import SearchConfig
from ev_station_finder.data import Obstruction, Station
from ev_station_finder.exceptions import RoutingError
from ev_station_finder.geo import EARTH_RADIUS_KM
from ev_station_finder.routing import RouteGeometry
from ev_station_finder.vehicle import Vehicle

ORIGIN = (55.75, 37.62)
KM_PER_DEG_LAT = EARTH_RADIUS_KM * math.pi / 180.0


# ---------------------------------------------------------------------------
# Helpers (importable from tests via conftest)
# ---------------------------------------------------------------------------

def north_of(origin, km):
    """Point exactly ``km`` north of ``origin`` along its meridian."""
    return (origin[0] + km / KM_PER_DEG_LAT, origin[1])


def east_of(origin, km):
    """Point roughly ``km`` east of ``origin`` along its parallel."""
    return (origin[0], origin[1] + km / (KM_PER_DEG_LAT * math.cos(math.radians(origin[0]))))


def make_station(station_id, km=None, power="DC 50 кВт", name=None, origin=ORIGIN, coordinate=None):
    if coordinate is None and km is not None:
        coordinate = north_of(origin, km)
    return Station(
        station_id=str(station_id),
        name=name or f"Station {station_id}",
        power=power,
        coordinate=coordinate,
    )


def make_work(coordinate, status="Выполняются", description="road works"):
    return Obstruction(description=description, coordinate=coordinate, status=status)


def straight_route(origin, destination, samples=50):
    """A single-segment route sampled evenly on the straight line."""
    points = [
        (origin[0] + (destination[0] - origin[0]) * i / samples,
         origin[1] + (destination[1] - origin[1]) * i / samples)
        for i in range(samples + 1)
    ]
    return RouteGeometry.from_paths([points])


class FakeRouter:
    """
    Router returning straight-line routes, with per-destination overrides.

    ``failures`` holds destinations that raise RoutingError; ``detours``
    maps a destination to a prebuilt RouteGeometry.
    """

    def __init__(self, failures=(), detours=None, samples=50):
        self.failures = set(failures)
        self.detours = dict(detours or {})
        self.samples = samples
        self.calls = []

    def route(self, origin, destination):
        self.calls.append(destination)
        if destination in self.failures:
            raise RoutingError(f"no route to {destination}")
        if destination in self.detours:
            return self.detours[destination]
        return straight_route(origin, destination, self.samples)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def origin():
    return ORIGIN


@pytest.fixture
def half_charged_vehicle():
    """300 km range at 50% charge: 150 km effective range, CCS plug."""
    return Vehicle(connector="CCS", range_km=300.0, charge_percent=50.0)


@pytest.fixture
def scenario_bands():
    """Two bands: CCS 20-60 kW and TYPE2 0-22 kW."""
    return [PowerBand.of("CCS", 20, 60), PowerBand.of("TYPE2", 0, 22)]


@pytest.fixture
def default_config():
    return SearchConfig()


@pytest.fixture
def router():
    return FakeRouter()
