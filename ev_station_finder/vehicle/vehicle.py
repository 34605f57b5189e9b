"""
Vehicle Module
Electric vehicle description used as search input: plug type, total range
and current state of charge.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from ev_station_finder.charging.connectors import Connector, normalize_connector


@dataclass
class Vehicle:
    """
    Electric vehicle as seen by the station search.
    """
    connector: Optional[str] = None       # Free-text plug label, e.g. "CCS Combo 2"
    range_km: Optional[float] = None      # Range on a full battery
    charge_percent: float = 100.0         # State of charge (0-100)
    model: Optional[str] = None
    brand: Optional[str] = None

    def __post_init__(self):
        self.charge_percent = max(0.0, min(100.0, float(self.charge_percent)))

    @classmethod
    def from_battery(
        cls,
        capacity_kwh: float,
        consumption_kwh_per_100km: float,
        charge_percent: float = 100.0,
        connector: Optional[str] = None,
        model: Optional[str] = None,
        brand: Optional[str] = None,
    ) -> "Vehicle":
        """
        Build a vehicle from battery capacity and average consumption.

        Total range is capacity / consumption * 100; it stays unknown when
        consumption is not positive.
        """
        range_km = None
        if consumption_kwh_per_100km and consumption_kwh_per_100km > 0:
            range_km = capacity_kwh / consumption_kwh_per_100km * 100.0
        return cls(
            connector=connector,
            range_km=range_km,
            charge_percent=charge_percent,
            model=model,
            brand=brand,
        )

    @property
    def connector_category(self) -> Optional[Connector]:
        """Normalised plug, None when the label is empty."""
        return normalize_connector(self.connector)

    @property
    def has_known_range(self) -> bool:
        if self.range_km is None:
            return False
        try:
            value = float(self.range_km)
        except (TypeError, ValueError):
            return False
        return math.isfinite(value) and value > 0

    @property
    def effective_range_km(self) -> Optional[float]:
        """
        Usable distance at the current charge: range * charge / 100.

        None when the total range is unknown; never negative.
        """
        if not self.has_known_range:
            return None
        return max(0.0, float(self.range_km) * self.charge_percent / 100.0)

    @property
    def label(self) -> str:
        parts = [p for p in (self.brand, self.model) if p]
        return " ".join(parts) if parts else "vehicle"
