"""services – geocoding and routing HTTP clients."""

from .geocoding import CachedGeocoder, YandexGeocoder
from .routing import OsrmRouter

__all__ = ["CachedGeocoder", "YandexGeocoder", "OsrmRouter"]
