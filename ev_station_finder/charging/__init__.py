"""charging – connector normalisation, power bands and compatibility policy."""

from .connectors import (
    Connector,
    ConnectorCategory,
    connector_set,
    normalize_connector,
    parse_connector_category,
)
from .power_bands import (
    DEFAULT_POWER_BANDS,
    PowerBand,
    band_connectors,
    bands_for_power,
    describe_bands,
    load_power_bands,
    parse_station_power_kw,
    power_bands_from_records,
    resolve_station_categories,
)
from .compatibility import (
    DEFAULT_COMMON_FAMILY,
    is_common_family,
    is_compatible,
    is_supported_connector,
)

__all__ = [
    "Connector", "ConnectorCategory", "connector_set",
    "normalize_connector", "parse_connector_category",
    "DEFAULT_POWER_BANDS", "PowerBand", "band_connectors", "bands_for_power",
    "describe_bands", "load_power_bands", "parse_station_power_kw",
    "power_bands_from_records", "resolve_station_categories",
    "DEFAULT_COMMON_FAMILY", "is_common_family", "is_compatible", "is_supported_connector",
]
