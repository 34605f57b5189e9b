"""
Power-band resolution.

Station datasets rarely list plug types, but they do advertise a power
rating ("DC 50 кВт", "AC 22, DC 60"). A power band table maps connector
categories to the power interval they are usually offered at, so the set
of connectors a station presumably supports can be inferred from its
representative (maximum) power.
"""

from __future__ import annotations

import re
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

import pandas as pd

from .connectors import Connector, ConnectorCategory, parse_connector_category

# A comma between two digits is a decimal separator ("7,4 кВт"); a comma
# followed by whitespace separates ratings ("DC 50, AC 22").
_DECIMAL_COMMA = re.compile(r"(?<=\d),(?=\d)")
_NUMBER = re.compile(r"\d+(?:\.\d+)?")

# Accepted column spellings for band tables (snake_case or the API's camelCase)
_COLUMN_ALIASES = {
    "plugtype": "plug_type",
    "plug_type": "plug_type",
    "connector": "plug_type",
    "minpowerkw": "min_power_kw",
    "min_power_kw": "min_power_kw",
    "maxpowerkw": "max_power_kw",
    "max_power_kw": "max_power_kw",
}


@dataclass(frozen=True)
class PowerBand:
    """An inclusive power interval [min_kw, max_kw] offered with a connector."""
    connector: Connector
    min_kw: float
    max_kw: float

    def __post_init__(self) -> None:
        if self.min_kw > self.max_kw:
            raise ValueError(
                f"PowerBand for {self.connector}: min_kw ({self.min_kw}) "
                f"exceeds max_kw ({self.max_kw})"
            )

    def contains(self, power_kw: float) -> bool:
        return self.min_kw <= power_kw <= self.max_kw

    @classmethod
    def of(cls, category: str, min_kw: float, max_kw: float) -> "PowerBand":
        """Build a band from a configuration token, e.g. ``PowerBand.of("CCS", 20, 350)``."""
        return cls(parse_connector_category(category), float(min_kw), float(max_kw))


# Reference table used when no band table is configured explicitly
DEFAULT_POWER_BANDS: tuple = (
    PowerBand.of("TYPE1", 3.0, 7.4),
    PowerBand.of("TYPE2", 3.0, 22.0),
    PowerBand.of("GBT_AC", 3.0, 22.0),
    PowerBand.of("CHADEMO", 20.0, 62.5),
    PowerBand.of("CCS", 20.0, 350.0),
    PowerBand.of("GBT_DC", 30.0, 250.0),
    PowerBand.of("TESLA", 50.0, 250.0),
)


def parse_station_power_kw(descriptor: Optional[str]) -> Optional[float]:
    """
    Extract the representative power (kW) from a free-text power descriptor.

    All numeric tokens are collected and the maximum is returned, so
    descriptors listing several ratings resolve to the fastest one.

    Returns:
        The maximum numeric token, or None when the text holds no number.
    """
    if descriptor is None:
        return None
    text = _DECIMAL_COMMA.sub(".", str(descriptor))
    values = [float(token) for token in _NUMBER.findall(text)]
    if not values:
        return None
    return max(values)


def bands_for_power(power_kw: Optional[float], bands: Iterable[PowerBand]) -> List[PowerBand]:
    """Every band whose inclusive range contains ``power_kw`` (empty if power is unknown)."""
    if power_kw is None:
        return []
    return [band for band in bands if band.contains(power_kw)]


def resolve_station_categories(
    descriptor: Optional[str],
    bands: Iterable[PowerBand],
) -> frozenset:
    """Connectors a station is presumed to support, inferred from its power descriptor."""
    power_kw = parse_station_power_kw(descriptor)
    return frozenset(band.connector for band in bands_for_power(power_kw, bands))


def band_connectors(bands: Iterable[PowerBand]) -> frozenset:
    """All connectors that appear in at least one band."""
    return frozenset(band.connector for band in bands)


# ---------------------------------------------------------------------------
# Band table loading
# ---------------------------------------------------------------------------

def power_bands_from_records(records: Sequence[dict]) -> List[PowerBand]:
    """
    Build PowerBands from dict rows (``plug_type``, ``min_power_kw``, ``max_power_kw``).

    Malformed rows are skipped with a RuntimeWarning rather than failing the
    whole table.
    """
    records = list(records)
    if not records:
        return []
    frame = pd.DataFrame(records)
    return _bands_from_frame(frame, source="records")


def load_power_bands(path: Union[str, Path]) -> List[PowerBand]:
    """
    Load a band table from a CSV or JSON file.

    JSON files may hold a list of row objects, e.g. the ``/api/plug-ranges``
    payload with ``plugType`` / ``minPowerKw`` / ``maxPowerKw`` keys.

    Raises:
        FileNotFoundError: if ``path`` does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Power band table not found: {path}")

    if path.suffix.lower() == ".json":
        frame = pd.read_json(path, orient="records")
    else:
        frame = pd.read_csv(path)
    return _bands_from_frame(frame, source=str(path))


def _bands_from_frame(frame: pd.DataFrame, source: str) -> List[PowerBand]:
    renamed = {}
    for column in frame.columns:
        key = str(column).strip().lower()
        if key in _COLUMN_ALIASES:
            renamed[column] = _COLUMN_ALIASES[key]
    frame = frame.rename(columns=renamed)

    missing = {"plug_type", "min_power_kw", "max_power_kw"} - set(frame.columns)
    if missing:
        raise ValueError(f"Power band table {source} is missing columns: {sorted(missing)}")

    bands: List[PowerBand] = []
    for index, row in frame.iterrows():
        try:
            min_kw = float(row["min_power_kw"])
            max_kw = float(row["max_power_kw"])
            if pd.isna(min_kw) or pd.isna(max_kw) or pd.isna(row["plug_type"]):
                raise ValueError("empty cell")
            bands.append(PowerBand(parse_connector_category(str(row["plug_type"])), min_kw, max_kw))
        except (TypeError, ValueError) as exc:
            warnings.warn(
                f"Skipping power band row {index} from {source}: {exc}",
                RuntimeWarning,
            )
    return bands


def describe_bands(bands: Iterable[PowerBand]) -> str:
    """One line per band, e.g. ``CCS: 20.0-350.0 kW``."""
    lines = []
    for band in bands:
        label = band.connector.token
        if band.connector.category is ConnectorCategory.OTHER:
            label = f"{label} (other)"
        lines.append(f"{label}: {band.min_kw}-{band.max_kw} kW")
    return "\n".join(lines)
