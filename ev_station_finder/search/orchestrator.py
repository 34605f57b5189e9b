"""
Candidate search orchestrator.

Drives the station search as an explicit state machine::

    IDLE -> VALIDATING_INPUT -> RANKING_CANDIDATES -> PROBING_ROUTE(i)
         -> SUCCESS | EXHAUSTED_NO_OBSTRUCTION_FREE
          | NO_REACHABLE_STATION | INPUT_ERROR

Route probes run strictly one at a time in ascending distance order: probe
i+1 only starts once probe i came back obstructed or failed. Nothing is
committed until a probe returns a clear route, so a caller can stop calling
``step()`` at any point and simply drop the search object.

Typical usage::

    search = StationSearch(vehicle, origin, stations, obstructions,
                           config=SearchConfig(), router=OsrmRouter())
    outcome = search.run()
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, ClassVar, List, Optional, Sequence, Tuple

import requests

from ev_station_finder.charging.compatibility import is_compatible, is_supported_connector
from ev_station_finder.charging.power_bands import resolve_station_categories
from ev_station_finder.config import SearchConfig
from ev_station_finder.data.models import Obstruction, Station
from ev_station_finder.exceptions import InputError, RoutingError
from ev_station_finder.geo.geo_utils import LatLon, is_valid_latlon
from ev_station_finder.routing.geometry import RouteGeometry
from ev_station_finder.routing.obstacles import active_obstructions, route_is_obstructed
from ev_station_finder.vehicle.vehicle import Vehicle

from .ranking import Candidate, CandidateRanking, rank_candidates


class SearchState(Enum):
    """States of one station search."""
    IDLE = auto()
    VALIDATING_INPUT = auto()
    RANKING_CANDIDATES = auto()
    PROBING_ROUTE = auto()
    SUCCESS = auto()
    EXHAUSTED_NO_OBSTRUCTION_FREE = auto()
    NO_REACHABLE_STATION = auto()
    INPUT_ERROR = auto()

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset({
    SearchState.SUCCESS,
    SearchState.EXHAUSTED_NO_OBSTRUCTION_FREE,
    SearchState.NO_REACHABLE_STATION,
    SearchState.INPUT_ERROR,
})


class ProbeStatus(Enum):
    """Result of asking for a route to one candidate."""
    CLEAR = auto()
    OBSTRUCTED = auto()
    FAILED = auto()


@dataclass(frozen=True)
class ProbeResult:
    candidate: Candidate
    status: ProbeStatus
    reason: str = ""


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SearchOutcome:
    """
    Terminal result of a search.

    ``probes`` lists every route probe in the order it ran and
    ``candidates`` the nearest in-range candidates (display list), so the
    caller can show alternatives whatever the outcome.
    """
    probes: Tuple[ProbeResult, ...] = ()
    candidates: Tuple[Candidate, ...] = ()

    state: ClassVar[SearchState] = SearchState.IDLE

    @property
    def is_success(self) -> bool:
        return self.state is SearchState.SUCCESS


@dataclass(frozen=True)
class Success(SearchOutcome):
    """A reachable station with an obstruction-free route."""
    station: Optional[Station] = None
    route: Optional[RouteGeometry] = None
    distance_km: float = 0.0

    state: ClassVar[SearchState] = SearchState.SUCCESS


@dataclass(frozen=True)
class NoReachableStation(SearchOutcome):
    """No compatible station lies within the effective range."""
    state: ClassVar[SearchState] = SearchState.NO_REACHABLE_STATION


@dataclass(frozen=True)
class ExhaustedNoObstructionFree(SearchOutcome):
    """Reachable stations exist but every probed route was obstructed or failed."""
    state: ClassVar[SearchState] = SearchState.EXHAUSTED_NO_OBSTRUCTION_FREE


@dataclass(frozen=True)
class InputErrorOutcome(SearchOutcome):
    """The search could not start; ``reason`` says which input is missing."""
    reason: str = ""

    state: ClassVar[SearchState] = SearchState.INPUT_ERROR


ProgressCallback = Callable[[SearchState, str], None]

# Routing collaborator failures that only skip the current candidate
_ROUTING_FAILURES = (RoutingError, requests.exceptions.RequestException, OSError)


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------

class StationSearch:
    """
    One range-constrained station search.

    Args:
        vehicle: Vehicle with connector, range and state of charge.
        origin: Driver position (lat, lon); None when unresolved.
        stations: Station snapshot (read-only for this search).
        obstructions: Road-work snapshot (read-only for this search).
        config: Search configuration; defaults to ``SearchConfig()``.
        router: Object with ``route(origin, destination) -> RouteGeometry``.
        on_progress: Optional callback receiving (state, message) on every
            transition.
    """

    def __init__(
        self,
        vehicle: Vehicle,
        origin: Optional[LatLon],
        stations: Sequence[Station],
        obstructions: Sequence[Obstruction],
        config: Optional[SearchConfig] = None,
        router=None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        if router is None:
            raise ValueError("StationSearch needs a router with route(origin, destination)")
        self.vehicle = vehicle
        self.origin = origin
        self.stations = tuple(stations)
        self.obstructions = tuple(obstructions)
        self.config = config or SearchConfig()
        self.router = router
        self.on_progress = on_progress

        self.state = SearchState.IDLE
        self.outcome: Optional[SearchOutcome] = None
        self.ranking: Optional[CandidateRanking] = None
        self._cursor = 0
        self._probes: List[ProbeResult] = []
        self._active_obstructions: List[Obstruction] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def probes(self) -> Tuple[ProbeResult, ...]:
        return tuple(self._probes)

    @property
    def cursor(self) -> int:
        """Index of the next candidate to probe in ``ranking.fallback``."""
        return self._cursor

    def run(self) -> SearchOutcome:
        """Step until a terminal state is reached and return the outcome."""
        while not self.state.is_terminal:
            self.step()
        return self.outcome

    def step(self) -> SearchState:
        """
        Perform exactly one transition and return the new state.

        Calling ``step()`` on a finished search is a no-op.
        """
        if self.state.is_terminal:
            return self.state

        if self.state is SearchState.IDLE:
            self._transition(SearchState.VALIDATING_INPUT, "Validating search input")
        elif self.state is SearchState.VALIDATING_INPUT:
            self._validate_input()
        elif self.state is SearchState.RANKING_CANDIDATES:
            self._rank()
        elif self.state is SearchState.PROBING_ROUTE:
            self._probe_next()
        return self.state

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _validate_input(self) -> None:
        if self.origin is None or not is_valid_latlon(self.origin):
            self._fail_input("origin coordinate is missing or invalid")
            return
        if self.vehicle.effective_range_km is None:
            self._fail_input("vehicle range is unknown, cannot compute the available range")
            return

        connector = self.vehicle.connector_category
        if self.config.connector_filtering_enabled and not is_supported_connector(
            connector, self.config.power_bands
        ):
            self._fail_input(f"connector {connector} is not supported for station matching")
            return

        self._transition(SearchState.RANKING_CANDIDATES, "Selecting compatible stations")

    def _rank(self) -> None:
        compatible = [s for s in self.stations if s.has_coordinate and self._station_is_compatible(s)]
        try:
            self.ranking = rank_candidates(
                self.origin,
                self.vehicle.effective_range_km,
                compatible,
                display_cap=self.config.display_cap,
                fallback_cap=self.config.fallback_cap,
            )
        except InputError as exc:
            self._fail_input(str(exc))
            return

        if self.ranking.is_empty:
            self._finish(
                NoReachableStation(candidates=()),
                "No compatible station within the available range",
            )
            return

        self._active_obstructions = active_obstructions(
            self.obstructions, active_status=self.config.active_status
        )
        self._cursor = 0
        self._transition(
            SearchState.PROBING_ROUTE,
            f"{len(self.ranking.in_range)} station(s) in range, "
            f"checking routes against {len(self._active_obstructions)} road work(s)",
        )

    def _probe_next(self) -> None:
        fallback = self.ranking.fallback
        if self._cursor >= len(fallback):
            self._finish(
                ExhaustedNoObstructionFree(probes=self.probes, candidates=self.ranking.display),
                "Could not build a route free of road works",
            )
            return

        candidate = fallback[self._cursor]
        self._cursor += 1
        self._notify(f"Checking route to {candidate.station.name or candidate.station.station_id}")

        try:
            route = self.router.route(self.origin, candidate.coordinate)
        except _ROUTING_FAILURES as exc:
            self._probes.append(ProbeResult(candidate, ProbeStatus.FAILED, str(exc)))
            return
        if route is None:
            self._probes.append(ProbeResult(candidate, ProbeStatus.FAILED, "router returned no route"))
            return

        if route_is_obstructed(route, self._active_obstructions, self.config.proximity_threshold_km):
            self._probes.append(ProbeResult(candidate, ProbeStatus.OBSTRUCTED, "route passes road works"))
            return

        self._probes.append(ProbeResult(candidate, ProbeStatus.CLEAR))
        self._finish(
            Success(
                probes=self.probes,
                candidates=self.ranking.display,
                station=candidate.station,
                route=route,
                distance_km=candidate.distance_km,
            ),
            "Route built around road works",
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _station_is_compatible(self, station: Station) -> bool:
        if not self.config.connector_filtering_enabled:
            return True
        connector = self.vehicle.connector_category
        if connector is None:
            return True
        return is_compatible(
            connector,
            resolve_station_categories(station.power, self.config.power_bands),
            assume_common_family=self.config.assume_common_family,
            common_family=self.config.common_family,
        )

    def _fail_input(self, reason: str) -> None:
        self._finish(InputErrorOutcome(reason=reason), reason)

    def _finish(self, outcome: SearchOutcome, message: str) -> None:
        self.outcome = outcome
        self._transition(outcome.state, message)

    def _transition(self, state: SearchState, message: str) -> None:
        self.state = state
        self._notify(message)

    def _notify(self, message: str) -> None:
        if self.on_progress is not None:
            self.on_progress(self.state, message)


def find_reachable_station(
    vehicle: Vehicle,
    origin: Optional[LatLon],
    stations: Sequence[Station],
    obstructions: Sequence[Obstruction],
    config: Optional[SearchConfig] = None,
    router=None,
    on_progress: Optional[ProgressCallback] = None,
) -> SearchOutcome:
    """
    Find the nearest compatible station in range with an obstruction-free route.

    Returns one of Success, NoReachableStation, ExhaustedNoObstructionFree
    or InputErrorOutcome. Routing failures for individual candidates are
    never raised; the search moves on to the next candidate.
    """
    search = StationSearch(
        vehicle, origin, stations, obstructions,
        config=config, router=router, on_progress=on_progress,
    )
    return search.run()
