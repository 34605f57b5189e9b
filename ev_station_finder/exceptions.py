"""Exception hierarchy shared by the search engine and its service clients."""


class StationFinderError(Exception):
    """Base class for every error raised by ev_station_finder."""


class InputError(StationFinderError, ValueError):
    """Search input is missing or cannot be resolved (origin, range, connector)."""


class RoutingError(StationFinderError, RuntimeError):
    """Raised when the routing provider cannot produce a route."""


class GeocodingError(StationFinderError, RuntimeError):
    """Raised when the geocoding provider answers with an unusable payload."""
