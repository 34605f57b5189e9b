"""
OSRM routing client.

Requests a driving route between two points from an OSRM server (the
public demo server by default, no key required) and converts the GeoJSON
step geometries into a RouteGeometry. Unlike the geocoder, failures are
raised as RoutingError: the search treats them as "try the next station".
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests

from ev_station_finder.exceptions import RoutingError
from ev_station_finder.geo.geo_utils import LatLon, is_valid_latlon
from ev_station_finder.routing.geometry import RouteGeometry

OSRM_PUBLIC_URL = "https://router.project-osrm.org"

_USER_AGENT = "ev-station-finder/1.0"


class OsrmRouter:
    """
    Client for the OSRM ``route/v1`` service.

    Args:
        base_url: OSRM server root.
        profile: Routing profile ("driving" on the public server).
        timeout_sec: HTTP request timeout in seconds.
        session: Optional pre-configured requests.Session.
    """

    DEFAULT_TIMEOUT_SEC = 30

    def __init__(
        self,
        base_url: str = OSRM_PUBLIC_URL,
        profile: str = "driving",
        timeout_sec: int = DEFAULT_TIMEOUT_SEC,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.profile = profile
        self.timeout_sec = timeout_sec
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": _USER_AGENT})

    def route(self, origin: LatLon, destination: LatLon) -> RouteGeometry:
        """
        Driving route from ``origin`` to ``destination``.

        Raises:
            RoutingError: on invalid coordinates, HTTP failure, timeout, or
                when the server finds no route.
        """
        for label, point in (("origin", origin), ("destination", destination)):
            if not is_valid_latlon(point):
                raise RoutingError(f"Invalid {label} coordinate: {point!r}")

        data = self._http_get(self._build_url(origin, destination))
        return self._parse_response(data)

    def _build_url(self, origin: LatLon, destination: LatLon) -> str:
        # OSRM expects lon,lat order
        return (
            f"{self.base_url}/route/v1/{self.profile}/"
            f"{origin[1]},{origin[0]};{destination[1]},{destination[0]}"
        )

    def _http_get(self, url: str) -> Dict[str, Any]:
        params = {"overview": "full", "geometries": "geojson", "steps": "true"}
        try:
            response = self._session.get(url, params=params, timeout=self.timeout_sec)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.Timeout as exc:
            raise RoutingError(f"OSRM request timed out after {self.timeout_sec}s") from exc
        except requests.exceptions.HTTPError as exc:
            raise RoutingError(f"OSRM HTTP error: {exc}") from exc
        except requests.exceptions.RequestException as exc:
            raise RoutingError(f"OSRM request failed: {exc}") from exc
        except ValueError as exc:
            raise RoutingError(f"Failed to parse OSRM response: {exc}") from exc

    @staticmethod
    def _parse_response(data: Dict[str, Any]) -> RouteGeometry:
        """
        Convert an OSRM response into a RouteGeometry.

        Each step geometry becomes one path segment; when the response has
        no steps the overview geometry is used as a single segment.
        """
        code = data.get("code")
        if code != "Ok":
            raise RoutingError(f"OSRM returned {code}: {data.get('message', 'no route')}")
        routes = data.get("routes") or []
        if not routes:
            raise RoutingError("OSRM returned no routes")
        best = routes[0]

        paths: List[List[LatLon]] = []
        for leg in best.get("legs", []):
            for step in leg.get("steps", []):
                coords = (step.get("geometry") or {}).get("coordinates") or []
                if coords:
                    paths.append([(c[1], c[0]) for c in coords])

        if not paths:
            coords = (best.get("geometry") or {}).get("coordinates") or []
            if coords:
                paths.append([(c[1], c[0]) for c in coords])

        if not paths:
            raise RoutingError("OSRM route has no geometry")

        distance_m = best.get("distance")
        duration_s = best.get("duration")
        return RouteGeometry.from_paths(
            paths,
            distance_km=distance_m / 1000.0 if distance_m is not None else None,
            duration_min=duration_s / 60.0 if duration_s is not None else None,
        )
