"""
Unit tests for the candidate search state machine.

Covers:
- find_reachable_station(): success on the nearest clear route, fallback to
  the next candidate when a route is obstructed or the router fails,
  ExhaustedNoObstructionFree, NoReachableStation, InputErrorOutcome
- Connector filtering: power-band matching, common-family shortcut,
  unknown connector, unsupported connector, filtering disabled
- Probe discipline: ascending distance order, fallback cap, no probes
  after success, inactive obstructions ignored
- StationSearch.step(): state sequence, terminal no-op, progress callback
"""

import random
from unittest.mock import MagicMock

import pytest
import requests

from ev_station_finder.charging import PowerBand
from ev_station_finder.config import SearchConfig
from ev_station_finder.search import (
    ExhaustedNoObstructionFree,
    InputErrorOutcome,
    NoReachableStation,
    ProbeStatus,
    SearchState,
    StationSearch,
    Success,
    find_reachable_station,
)
from ev_station_finder.vehicle import Vehicle

from conftest import ORIGIN, FakeRouter, east_of, make_station, make_work, north_of


def three_stations():
    return [make_station("far", 200), make_station("mid", 140), make_station("near", 50)]


def strict_config(bands, **kwargs):
    return SearchConfig(power_bands=bands, assume_common_family=False, **kwargs)


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------

class TestSuccess:
    def test_nearest_clear_route_wins(self, half_charged_vehicle, router):
        outcome = find_reachable_station(half_charged_vehicle, ORIGIN, three_stations(), [], router=router)
        assert isinstance(outcome, Success)
        assert outcome.is_success
        assert outcome.state is SearchState.SUCCESS
        assert outcome.station.station_id == "near"
        assert outcome.distance_km == pytest.approx(50.0)
        assert not outcome.route.is_empty
        assert len(router.calls) == 1

    def test_display_candidates_reported(self, half_charged_vehicle, router):
        outcome = find_reachable_station(half_charged_vehicle, ORIGIN, three_stations(), [], router=router)
        assert [c.station.station_id for c in outcome.candidates] == ["near", "mid"]

    def test_obstructed_nearest_falls_back(self, half_charged_vehicle, router):
        # road works 3 km north of origin, only on the route to "near" (the
        # "mid" station is moved east so its route avoids them)
        stations = [make_station("near", 50), make_station("mid", coordinate=east_of(ORIGIN, 120))]
        works = [make_work(north_of(ORIGIN, 3))]
        outcome = find_reachable_station(half_charged_vehicle, ORIGIN, stations, works, router=router)

        assert outcome.is_success
        assert outcome.station.station_id == "mid"
        assert [p.status for p in outcome.probes] == [ProbeStatus.OBSTRUCTED, ProbeStatus.CLEAR]

    def test_routing_failure_skips_candidate(self, half_charged_vehicle):
        stations = three_stations()
        router = FakeRouter(failures=[stations[2].coordinate])
        outcome = find_reachable_station(half_charged_vehicle, ORIGIN, stations, [], router=router)

        assert outcome.station.station_id == "mid"
        assert outcome.probes[0].status is ProbeStatus.FAILED
        assert "no route" in outcome.probes[0].reason

    @pytest.mark.parametrize("error", [
        requests.exceptions.Timeout("timed out"),
        requests.exceptions.ConnectionError("refused"),
        TimeoutError("slow"),
    ])
    def test_transport_errors_are_skipped(self, half_charged_vehicle, error):
        router = MagicMock()
        route = FakeRouter().route(ORIGIN, north_of(ORIGIN, 140))
        router.route.side_effect = [error, route]
        outcome = find_reachable_station(half_charged_vehicle, ORIGIN, three_stations(), [], router=router)
        assert outcome.is_success
        assert outcome.station.station_id == "mid"
        assert router.route.call_count == 2

    def test_router_returning_none_is_a_failure(self, half_charged_vehicle):
        router = MagicMock()
        router.route.return_value = None
        outcome = find_reachable_station(half_charged_vehicle, ORIGIN, three_stations(), [], router=router)
        assert isinstance(outcome, ExhaustedNoObstructionFree)
        assert all(p.status is ProbeStatus.FAILED for p in outcome.probes)


class TestExhausted:
    def test_single_station_route_blocked(self, half_charged_vehicle, router):
        works = [make_work(north_of(ORIGIN, 25))]
        outcome = find_reachable_station(
            half_charged_vehicle, ORIGIN, [make_station("only", 50)], works, router=router,
        )
        assert isinstance(outcome, ExhaustedNoObstructionFree)
        assert outcome.state is SearchState.EXHAUSTED_NO_OBSTRUCTION_FREE
        assert not outcome.is_success
        assert [p.status for p in outcome.probes] == [ProbeStatus.OBSTRUCTED]

    def test_obstruction_next_to_every_route(self, half_charged_vehicle, router):
        # every route starts at the origin, so road works there block them all
        stations = [make_station(i, km) for i, km in enumerate([10, 20, 30, 40])]
        works = [make_work(north_of(ORIGIN, 0.1))]
        outcome = find_reachable_station(half_charged_vehicle, ORIGIN, stations, works, router=router)
        assert isinstance(outcome, ExhaustedNoObstructionFree)
        assert len(outcome.probes) == 4

    def test_every_router_call_fails(self, half_charged_vehicle):
        stations = three_stations()
        router = FakeRouter(failures=[s.coordinate for s in stations])
        outcome = find_reachable_station(half_charged_vehicle, ORIGIN, stations, [], router=router)
        assert isinstance(outcome, ExhaustedNoObstructionFree)

    def test_fallback_cap_bounds_probes(self, half_charged_vehicle, router):
        stations = [make_station(i, km=i + 1) for i in range(15)]
        works = [make_work(ORIGIN)]
        outcome = find_reachable_station(half_charged_vehicle, ORIGIN, stations, works, router=router)
        assert isinstance(outcome, ExhaustedNoObstructionFree)
        assert len(router.calls) == 12
        assert len(outcome.probes) == 12

    def test_custom_fallback_cap(self, half_charged_vehicle, router):
        stations = [make_station(i, km=i + 1) for i in range(5)]
        config = SearchConfig(fallback_cap=2)
        outcome = find_reachable_station(half_charged_vehicle, ORIGIN, stations, [make_work(ORIGIN)],
                                         config=config, router=router)
        assert len(outcome.probes) == 2


class TestNoReachableStation:
    def test_no_station_has_coordinates(self, half_charged_vehicle, router):
        stations = [make_station("a"), make_station("b")]
        outcome = find_reachable_station(half_charged_vehicle, ORIGIN, stations, [], router=router)
        assert isinstance(outcome, NoReachableStation)
        assert outcome.state is SearchState.NO_REACHABLE_STATION
        assert router.calls == []

    def test_all_stations_out_of_range(self, half_charged_vehicle, router):
        outcome = find_reachable_station(half_charged_vehicle, ORIGIN, [make_station(1, 151)], [], router=router)
        assert isinstance(outcome, NoReachableStation)

    def test_empty_station_list(self, half_charged_vehicle, router):
        outcome = find_reachable_station(half_charged_vehicle, ORIGIN, [], [], router=router)
        assert isinstance(outcome, NoReachableStation)

    def test_zero_charge(self, router):
        vehicle = Vehicle(connector="CCS", range_km=300, charge_percent=0)
        outcome = find_reachable_station(vehicle, ORIGIN, three_stations(), [], router=router)
        assert isinstance(outcome, NoReachableStation)


class TestInputError:
    def test_missing_origin(self, half_charged_vehicle, router):
        outcome = find_reachable_station(half_charged_vehicle, None, three_stations(), [], router=router)
        assert isinstance(outcome, InputErrorOutcome)
        assert outcome.state is SearchState.INPUT_ERROR
        assert "origin" in outcome.reason

    def test_invalid_origin(self, half_charged_vehicle, router):
        outcome = find_reachable_station(half_charged_vehicle, (123.0, 37.0), three_stations(), [], router=router)
        assert isinstance(outcome, InputErrorOutcome)

    def test_unknown_range(self, router):
        vehicle = Vehicle(connector="CCS", range_km=None, charge_percent=80)
        outcome = find_reachable_station(vehicle, ORIGIN, three_stations(), [], router=router)
        assert isinstance(outcome, InputErrorOutcome)
        assert "range" in outcome.reason
        assert router.calls == []

    def test_connector_missing_from_band_table(self, router):
        vehicle = Vehicle(connector="Tesla", range_km=300, charge_percent=50)
        config = SearchConfig(power_bands=[PowerBand.of("CCS", 20, 60)])
        outcome = find_reachable_station(vehicle, ORIGIN, three_stations(), [], config=config, router=router)
        assert isinstance(outcome, InputErrorOutcome)
        assert "not supported" in outcome.reason

    def test_router_is_required(self, half_charged_vehicle):
        with pytest.raises(ValueError):
            StationSearch(half_charged_vehicle, ORIGIN, [], [])


# ---------------------------------------------------------------------------
# Connector filtering
# ---------------------------------------------------------------------------

class TestConnectorFiltering:
    def test_scenario_ccs_vehicle_dc50_station(self, half_charged_vehicle, scenario_bands, router):
        station = make_station("dc", 10, power="DC 50, AC 22")
        outcome = find_reachable_station(half_charged_vehicle, ORIGIN, [station], [],
                                         config=strict_config(scenario_bands), router=router)
        assert outcome.is_success
        assert outcome.station.station_id == "dc"

    def test_band_mismatch_excludes_station(self, half_charged_vehicle, scenario_bands, router):
        slow = make_station("slow", 5, power="AC 7 кВт")
        fast = make_station("fast", 30, power="DC 50")
        outcome = find_reachable_station(half_charged_vehicle, ORIGIN, [slow, fast], [],
                                         config=strict_config(scenario_bands), router=router)
        assert outcome.station.station_id == "fast"
        assert [c.station.station_id for c in outcome.candidates] == ["fast"]

    def test_unknown_power_excludes_station_under_strict_policy(self, half_charged_vehicle, scenario_bands, router):
        station = make_station("mystery", 5, power="нет данных")
        outcome = find_reachable_station(half_charged_vehicle, ORIGIN, [station], [],
                                         config=strict_config(scenario_bands), router=router)
        assert isinstance(outcome, NoReachableStation)

    def test_common_family_never_excluded_on_power(self, scenario_bands, router):
        stations = [
            make_station("slow", 5, power="AC 7"),
            make_station("mystery", 6, power="нет данных"),
            make_station("huge", 7, power="350 кВт"),
        ]
        for plug in ("Type 2", "CCS", "CHAdeMO"):
            vehicle = Vehicle(connector=plug, range_km=300, charge_percent=50)
            config = SearchConfig(power_bands=scenario_bands + [PowerBand.of("CHADEMO", 20, 62.5)])
            search = StationSearch(vehicle, ORIGIN, stations, [], config=config, router=router)
            search.run()
            assert len(search.ranking.in_range) == 3

    def test_unknown_vehicle_connector_is_not_filtered(self, scenario_bands, router):
        vehicle = Vehicle(connector="", range_km=300, charge_percent=50)
        station = make_station("mystery", 5, power="нет данных")
        outcome = find_reachable_station(vehicle, ORIGIN, [station], [],
                                         config=strict_config(scenario_bands), router=router)
        assert outcome.is_success

    def test_filtering_disabled(self, router):
        vehicle = Vehicle(connector="Tesla", range_km=300, charge_percent=50)
        config = SearchConfig(power_bands=[PowerBand.of("CCS", 20, 60)], filter_connectors=False)
        outcome = find_reachable_station(vehicle, ORIGIN, [make_station(1, 5, power="7")], [],
                                         config=config, router=router)
        assert outcome.is_success

    def test_no_bands_configured(self, router):
        vehicle = Vehicle(connector="Tesla", range_km=300, charge_percent=50)
        config = SearchConfig(power_bands=[])
        outcome = find_reachable_station(vehicle, ORIGIN, [make_station(1, 5, power="7")], [],
                                         config=config, router=router)
        assert outcome.is_success


# ---------------------------------------------------------------------------
# Probe discipline
# ---------------------------------------------------------------------------

class TestProbeOrder:
    def test_probes_in_ascending_distance(self, half_charged_vehicle, router):
        stations = [make_station(i, km) for i, km in enumerate([40, 10, 30, 20])]
        works = [make_work(ORIGIN)]
        find_reachable_station(half_charged_vehicle, ORIGIN, stations, works, router=router)
        expected = [north_of(ORIGIN, km) for km in (10, 20, 30, 40)]
        assert router.calls == expected

    def test_no_probe_after_success(self, half_charged_vehicle, router):
        find_reachable_station(half_charged_vehicle, ORIGIN, three_stations(), [], router=router)
        assert router.calls == [north_of(ORIGIN, 50)]

    def test_inactive_obstructions_ignored(self, half_charged_vehicle, router):
        works = [make_work(ORIGIN, status="завершены")]
        outcome = find_reachable_station(half_charged_vehicle, ORIGIN, three_stations(), works, router=router)
        assert outcome.station.station_id == "near"

    def test_every_active_obstruction_is_checked(self, half_charged_vehicle, router):
        works = [make_work(east_of(ORIGIN, 100 + i), description=f"far {i}") for i in range(80)]
        works.append(make_work(north_of(ORIGIN, 25), description="on route"))
        stations = [make_station("only", 50)]
        outcome = find_reachable_station(half_charged_vehicle, ORIGIN, stations, works, router=router)
        assert isinstance(outcome, ExhaustedNoObstructionFree)
        assert [p.status for p in outcome.probes] == [ProbeStatus.OBSTRUCTED]

    def test_unresolved_obstructions_ignored(self, half_charged_vehicle, router):
        works = [make_work(None)]
        outcome = find_reachable_station(half_charged_vehicle, ORIGIN, three_stations(), works, router=router)
        assert outcome.is_success

    def test_result_never_beyond_effective_range(self, router):
        rng = random.Random(7)
        vehicle = Vehicle(connector="CCS", range_km=200, charge_percent=40)
        for _ in range(20):
            stations = [make_station(i, rng.uniform(0, 200)) for i in range(10)]
            outcome = find_reachable_station(vehicle, ORIGIN, stations, [], router=router)
            if outcome.is_success:
                assert outcome.distance_km <= vehicle.effective_range_km
            else:
                assert isinstance(outcome, NoReachableStation)


# ---------------------------------------------------------------------------
# StationSearch stepping
# ---------------------------------------------------------------------------

class TestStationSearchSteps:
    def test_state_sequence(self, half_charged_vehicle):
        stations = [make_station("near", 10), make_station("mid", 20)]
        router = FakeRouter(failures=[stations[0].coordinate])
        search = StationSearch(half_charged_vehicle, ORIGIN, stations, [], router=router)

        assert search.state is SearchState.IDLE
        assert search.step() is SearchState.VALIDATING_INPUT
        assert search.step() is SearchState.RANKING_CANDIDATES
        assert search.step() is SearchState.PROBING_ROUTE
        assert search.cursor == 0
        assert search.step() is SearchState.PROBING_ROUTE      # "near" failed
        assert search.cursor == 1
        assert search.outcome is None
        assert search.step() is SearchState.SUCCESS
        assert search.outcome.station.station_id == "mid"

    def test_step_after_terminal_is_noop(self, half_charged_vehicle, router):
        search = StationSearch(half_charged_vehicle, ORIGIN, three_stations(), [], router=router)
        outcome = search.run()
        assert search.step() is SearchState.SUCCESS
        assert search.run() is outcome
        assert len(router.calls) == 1

    def test_abandoned_search_commits_nothing(self, half_charged_vehicle, router):
        search = StationSearch(half_charged_vehicle, ORIGIN, three_stations(), [], router=router)
        for _ in range(3):
            search.step()
        assert search.state is SearchState.PROBING_ROUTE
        assert search.outcome is None
        assert router.calls == []

    def test_terminal_states(self):
        assert SearchState.SUCCESS.is_terminal
        assert SearchState.INPUT_ERROR.is_terminal
        assert not SearchState.PROBING_ROUTE.is_terminal
        assert not SearchState.IDLE.is_terminal

    def test_progress_callback(self, half_charged_vehicle, router):
        events = []
        find_reachable_station(half_charged_vehicle, ORIGIN, three_stations(), [], router=router,
                               on_progress=lambda state, message: events.append((state, message)))
        states = [state for state, _ in events]
        assert states[0] is SearchState.VALIDATING_INPUT
        assert states[-1] is SearchState.SUCCESS
        assert any("Station near" in message for _, message in events)
