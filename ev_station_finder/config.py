"""
Search Configuration
Centralized configuration for station matching, ranking caps and
obstruction checks.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Union

from ev_station_finder.charging.compatibility import DEFAULT_COMMON_FAMILY
from ev_station_finder.charging.connectors import Connector, connector_set
from ev_station_finder.charging.power_bands import (
    DEFAULT_POWER_BANDS,
    PowerBand,
    power_bands_from_records,
)
from ev_station_finder.data.models import DEFAULT_ACTIVE_STATUS
from ev_station_finder.routing.obstacles import DEFAULT_PROXIMITY_THRESHOLD_KM


@dataclass
class SearchConfig:
    """Configuration for one station search"""
    # Connector matching
    power_bands: List[PowerBand] = field(default_factory=lambda: list(DEFAULT_POWER_BANDS))
    filter_connectors: bool = True          # False disables connector filtering entirely
    assume_common_family: bool = True       # Common-family plugs fit every station
    common_family: FrozenSet[Connector] = DEFAULT_COMMON_FAMILY

    # Ranking caps (bound the number of external routing calls)
    display_cap: int = 6                    # Nearest in-range candidates reported
    fallback_cap: int = 12                  # Candidates probed for an obstruction-free route

    # Obstructions
    proximity_threshold_km: float = DEFAULT_PROXIMITY_THRESHOLD_KM
    active_status: str = DEFAULT_ACTIVE_STATUS
    max_obstructions: Optional[int] = 80    # Snapshot geocoding cap; None = geocode every active work

    def __post_init__(self):
        if self.display_cap < 1:
            raise ValueError(f"display_cap must be >= 1, got {self.display_cap}")
        if self.fallback_cap < 1:
            raise ValueError(f"fallback_cap must be >= 1, got {self.fallback_cap}")
        if self.proximity_threshold_km < 0:
            raise ValueError(
                f"proximity_threshold_km must be >= 0, got {self.proximity_threshold_km}"
            )
        if self.max_obstructions is not None and self.max_obstructions < 0:
            raise ValueError(f"max_obstructions must be >= 0, got {self.max_obstructions}")
        self.common_family = frozenset(self.common_family)

    @property
    def connector_filtering_enabled(self) -> bool:
        """Filtering needs both the flag and at least one configured band."""
        return self.filter_connectors and len(self.power_bands) > 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SearchConfig":
        """
        Build a config from plain values (e.g. parsed JSON).

        ``power_bands`` is a list of ``{"plug_type", "min_power_kw", "max_power_kw"}``
        rows and ``common_family`` a list of connector tokens. Unknown keys
        raise ValueError.
        """
        data = dict(data)
        known = set(cls.__dataclass_fields__)
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown SearchConfig keys: {sorted(unknown)}")

        if "power_bands" in data:
            data["power_bands"] = power_bands_from_records(data["power_bands"])
        if "common_family" in data:
            data["common_family"] = connector_set(data["common_family"])
        return cls(**data)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "SearchConfig":
        with Path(path).open("r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "power_bands": [
                {"plug_type": b.connector.token, "min_power_kw": b.min_kw, "max_power_kw": b.max_kw}
                for b in self.power_bands
            ],
            "filter_connectors": self.filter_connectors,
            "assume_common_family": self.assume_common_family,
            "common_family": sorted(c.token for c in self.common_family),
            "display_cap": self.display_cap,
            "fallback_cap": self.fallback_cap,
            "proximity_threshold_km": self.proximity_threshold_km,
            "active_status": self.active_status,
            "max_obstructions": self.max_obstructions,
        }
