"""
Geocoding clients.

Resolve a postal address to a (lat, lon) pair. The search engine only
needs the ``geocode(address) -> Optional[LatLon]`` call; ``YandexGeocoder``
talks to the Yandex HTTP Geocoder and ``CachedGeocoder`` wraps any
geocoder with a thread-safe in-memory cache plus an optional JSON disk
cache (same pattern as the routing client).
"""

from __future__ import annotations

import hashlib
import json
import threading
import warnings
from pathlib import Path
from typing import Any, Dict, Optional

import requests

from ev_station_finder.exceptions import GeocodingError
from ev_station_finder.geo.geo_utils import LatLon, is_valid_latlon

YANDEX_GEOCODER_URL = "https://geocode-maps.yandex.ru/1.x/"

_USER_AGENT = "ev-station-finder/1.0"


class YandexGeocoder:
    """
    Client for the Yandex HTTP Geocoder.

    Args:
        api_key: Geocoder API key.
        timeout_sec: HTTP request timeout in seconds.
        session: Optional pre-configured requests.Session.
    """

    DEFAULT_TIMEOUT_SEC = 15

    def __init__(
        self,
        api_key: str,
        timeout_sec: int = DEFAULT_TIMEOUT_SEC,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not api_key or not api_key.strip():
            raise ValueError("Yandex geocoder API key is missing")
        self.api_key = api_key
        self.timeout_sec = timeout_sec
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": _USER_AGENT})

    def geocode(self, address: str) -> Optional[LatLon]:
        """
        Resolve ``address`` to (lat, lon).

        Returns:
            The first match, or None when the address is empty, not found,
            or the request fails (failures are reported as RuntimeWarning).
        """
        if not address or not address.strip():
            return None

        data = self._http_get(address.strip())
        if data is None:
            return None
        try:
            return self._parse_response(data)
        except GeocodingError as exc:
            warnings.warn(f"Unusable geocoder response for '{address}': {exc}", RuntimeWarning)
            return None

    @staticmethod
    def _parse_response(data: Dict[str, Any]) -> Optional[LatLon]:
        """
        Extract the first feature's point.

        Yandex reports positions as ``"<lon> <lat>"``.
        """
        try:
            members = data["response"]["GeoObjectCollection"]["featureMember"]
        except (KeyError, TypeError) as exc:
            raise GeocodingError(f"missing key {exc}") from exc
        if not members:
            return None

        try:
            pos = members[0]["GeoObject"]["Point"]["pos"]
        except (KeyError, TypeError, IndexError) as exc:
            raise GeocodingError(f"missing key {exc}") from exc
        if not pos or not str(pos).strip():
            return None

        parts = str(pos).split()
        if len(parts) != 2:
            return None
        try:
            point = (float(parts[1]), float(parts[0]))
        except ValueError as exc:
            raise GeocodingError(f"non-numeric position '{pos}'") from exc
        return point if is_valid_latlon(point) else None

    def _http_get(self, address: str) -> Optional[Dict[str, Any]]:
        """GET the geocoder and return parsed JSON, or None."""
        params = {"apikey": self.api_key, "format": "json", "geocode": address}
        try:
            response = self._session.get(YANDEX_GEOCODER_URL, params=params, timeout=self.timeout_sec)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.Timeout:
            warnings.warn(
                f"Geocoder request timed out after {self.timeout_sec}s.",
                RuntimeWarning,
            )
        except requests.exceptions.HTTPError as exc:
            warnings.warn(f"Geocoder HTTP error: {exc}", RuntimeWarning)
        except requests.exceptions.RequestException as exc:
            warnings.warn(f"Geocoder request failed: {exc}", RuntimeWarning)
        except ValueError as exc:
            warnings.warn(f"Failed to parse geocoder response: {exc}", RuntimeWarning)
        return None


class CachedGeocoder:
    """
    Caching wrapper around any object with ``geocode(address)``.

    Keys are ``"<prefix>:<address>"`` so station and road-work lookups of
    the same text stay separate. Only successful lookups are cached. The
    in-memory cache is guarded by a lock so one instance can serve
    concurrent searches.

    Args:
        geocoder: The underlying geocoder.
        cache_dir: Directory for JSON cache files; None keeps the cache in memory only.
    """

    keyed_by_prefix = True

    def __init__(self, geocoder, cache_dir: Optional[str] = None) -> None:
        self.geocoder = geocoder
        self.cache_dir = Path(cache_dir) if cache_dir else None
        self._memory: Dict[str, LatLon] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

        if self.cache_dir is not None:
            try:
                self.cache_dir.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                warnings.warn(
                    f"Geocode cache directory '{cache_dir}' could not be created: {exc}. "
                    "Disk caching disabled for this session.",
                    RuntimeWarning,
                )
                self.cache_dir = None

    def geocode(self, address: str, prefix: str = "geo") -> Optional[LatLon]:
        if not address:
            return None
        key = f"{prefix}:{address}"

        with self._lock:
            cached = self._memory.get(key)
        if cached is None:
            cached = self._load_from_disk(key)
            if cached is not None:
                with self._lock:
                    self._memory[key] = cached
        if cached is not None:
            with self._lock:
                self.hits += 1
            return cached

        with self._lock:
            self.misses += 1
        point = self.geocoder.geocode(address)
        if point is None:
            return None
        point = (float(point[0]), float(point[1]))
        with self._lock:
            self._memory[key] = point
        self._save_to_disk(key, point)
        return point

    def clear(self) -> None:
        with self._lock:
            self._memory.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._memory)

    # ------------------------------------------------------------------
    # Disk cache helpers
    # ------------------------------------------------------------------

    def _cache_path(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]
        return self.cache_dir / f"geo_{digest}.json"

    def _load_from_disk(self, key: str) -> Optional[LatLon]:
        """Cached point, or None on cache miss, read error, or malformed file."""
        if self.cache_dir is None:
            return None
        path = self._cache_path(key)
        if not path.exists():
            return None
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
            point = (float(data["lat"]), float(data["lon"]))
        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError):
            return None
        return point if is_valid_latlon(point) else None

    def _save_to_disk(self, key: str, point: LatLon) -> None:
        if self.cache_dir is None:
            return
        path = self._cache_path(key)
        try:
            with path.open("w", encoding="utf-8") as f:
                json.dump({"key": key, "lat": point[0], "lon": point[1]}, f)
        except OSError as exc:
            warnings.warn(f"Could not write geocode cache file '{path}': {exc}", RuntimeWarning)
