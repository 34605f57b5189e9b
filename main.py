"""
EV Station Finder - Main Entry Point
Find the nearest reachable charging station with a route that avoids
active road works.
"""

import argparse
import sys

from ev_station_finder.charging import connector_set, describe_bands, load_power_bands
from ev_station_finder.config import SearchConfig
from ev_station_finder.data import build_snapshot, load_obstructions, load_stations
from ev_station_finder.search import ProbeStatus, SearchState, find_reachable_station
from ev_station_finder.services import CachedGeocoder, OsrmRouter, YandexGeocoder
from ev_station_finder.vehicle import Vehicle


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Find a reachable EV charging station avoiding road works",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    # Datasets
    parser.add_argument(
        "--stations", type=str, required=True,
        help="Station dataset (CSV or JSON)"
    )
    parser.add_argument(
        "--road-works", type=str, default=None,
        help="Road-works dataset (CSV or JSON)"
    )

    # Origin and vehicle
    parser.add_argument(
        "--lat", type=float, default=None,
        help="Origin latitude"
    )
    parser.add_argument(
        "--lon", type=float, default=None,
        help="Origin longitude"
    )
    parser.add_argument(
        "--origin-address", type=str, default=None,
        help="Origin address (geocoded when --lat/--lon are not given)"
    )
    parser.add_argument(
        "--connector", type=str, default=None,
        help="Vehicle plug type, e.g. 'CCS' or 'Type 2'"
    )
    parser.add_argument(
        "--range-km", type=float, default=None,
        help="Vehicle range on a full battery in km"
    )
    parser.add_argument(
        "--charge", type=float, default=100.0,
        help="State of charge in percent"
    )

    # Configuration
    parser.add_argument(
        "--config", type=str, default=None,
        help="JSON file with SearchConfig overrides"
    )
    parser.add_argument(
        "--bands", type=str, default=None,
        help="Power band table (CSV or JSON) replacing the configured bands"
    )
    parser.add_argument(
        "--display-cap", type=int, default=None,
        help="Number of nearest stations to list (config default: 6)"
    )
    parser.add_argument(
        "--fallback-cap", type=int, default=None,
        help="Maximum number of stations to probe for a route (config default: 12)"
    )
    parser.add_argument(
        "--threshold-km", type=float, default=None,
        help="Road-works proximity threshold in km (config default: 0.3)"
    )
    parser.add_argument(
        "--common-family", type=str, default=None,
        help="Comma-separated plugs assumed available everywhere (config default: TYPE2,CCS,CHADEMO)"
    )
    parser.add_argument(
        "--strict-connectors", action="store_true",
        help="Match every plug type against power bands (no common-family assumption)"
    )
    parser.add_argument(
        "--show-bands", action="store_true",
        help="Print the power band table before searching"
    )

    # Services
    parser.add_argument(
        "--yandex-api-key", type=str, default=None,
        help="Yandex Geocoder key used to resolve missing coordinates"
    )
    parser.add_argument(
        "--geocode-cache-dir", type=str, default="data/cache/geocode",
        help="Directory for cached geocoder results"
    )
    parser.add_argument(
        "--osrm-url", type=str, default="https://router.project-osrm.org",
        help="OSRM server used for routing"
    )
    parser.add_argument(
        "--quiet", action="store_true",
        help="Only print the final result"
    )

    return parser.parse_args(argv)


def build_config(args) -> SearchConfig:
    config = SearchConfig.from_json(args.config) if args.config else SearchConfig()
    if args.bands:
        config.power_bands = load_power_bands(args.bands)
    if args.display_cap is not None:
        config.display_cap = args.display_cap
    if args.fallback_cap is not None:
        config.fallback_cap = args.fallback_cap
    if args.threshold_km is not None:
        config.proximity_threshold_km = args.threshold_km
    if args.common_family:
        config.common_family = connector_set(t for t in args.common_family.split(",") if t.strip())
    if args.strict_connectors:
        config.assume_common_family = False
    # Re-run validation after overrides
    return SearchConfig(**vars(config))


def main(argv=None):
    """Main entry point for the station search."""
    args = parse_args(argv)
    config = build_config(args)

    if args.show_bands:
        print("Power bands:")
        print(describe_bands(config.power_bands))
        print()

    geocoder = None
    if args.yandex_api_key:
        geocoder = CachedGeocoder(YandexGeocoder(args.yandex_api_key), cache_dir=args.geocode_cache_dir)

    origin = None
    if args.lat is not None and args.lon is not None:
        origin = (args.lat, args.lon)
    elif args.origin_address and geocoder is not None:
        origin = geocoder.geocode(args.origin_address, prefix="origin")

    stations = load_stations(args.stations)
    road_works = load_obstructions(args.road_works) if args.road_works else []
    snapshot = build_snapshot(
        stations, road_works,
        geocoder=geocoder,
        active_status=config.active_status,
        max_obstructions=config.max_obstructions,
    )

    if not args.quiet:
        print(f"Loaded {len(snapshot.stations)} stations "
              f"({snapshot.unresolved_station_count} without coordinates), "
              f"{len(snapshot.obstructions)} active road works")

    vehicle = Vehicle(connector=args.connector, range_km=args.range_km, charge_percent=args.charge)

    def report(state: SearchState, message: str) -> None:
        if not args.quiet:
            print(f"  [{state.name.lower()}] {message}")

    outcome = find_reachable_station(
        vehicle, origin, snapshot.stations, snapshot.obstructions,
        config=config, router=OsrmRouter(base_url=args.osrm_url), on_progress=report,
    )

    print("=" * 60)
    if outcome.is_success:
        station = outcome.station
        print(f"Station:  {station.name}")
        print(f"Address:  {station.address_query()}")
        print(f"Power:    {station.power or '-'}")
        print(f"Operator: {station.owner or '-'}")
        print(f"Distance: {outcome.distance_km:.1f} km (straight line)")
        if outcome.route.distance_km is not None:
            line = f"Route:    {outcome.route.distance_km:.1f} km"
            if outcome.route.duration_min is not None:
                line += f", {outcome.route.duration_min:.0f} min"
            print(line)
    elif outcome.state is SearchState.INPUT_ERROR:
        print(f"Input error: {outcome.reason}")
    elif outcome.state is SearchState.NO_REACHABLE_STATION:
        print("No compatible station within the available range.")
    else:
        print("Could not build a route free of road works.")

    if outcome.candidates and not args.quiet:
        print("\nNearest stations in range:")
        for i, candidate in enumerate(outcome.candidates, 1):
            print(f"  {i}. {candidate.station.name} - {candidate.distance_km:.1f} km")
    if outcome.probes and not args.quiet:
        failed = sum(1 for p in outcome.probes if p.status is ProbeStatus.FAILED)
        blocked = sum(1 for p in outcome.probes if p.status is ProbeStatus.OBSTRUCTED)
        print(f"\nRoute probes: {len(outcome.probes)} ({blocked} obstructed, {failed} failed)")

    return 0 if outcome.is_success else 1


if __name__ == "__main__":
    sys.exit(main())
