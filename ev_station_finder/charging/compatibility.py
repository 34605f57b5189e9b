"""
Vehicle/station connector compatibility policy.

Most public fast chargers carry several standards at once, so vehicles
whose plug belongs to the common family (TYPE2, CCS, CHADEMO by default)
can optionally be treated as compatible with every station instead of
relying on power-band inference.
"""

from __future__ import annotations

from typing import AbstractSet, Iterable, Optional

from .connectors import Connector, ConnectorCategory
from .power_bands import PowerBand, band_connectors

DEFAULT_COMMON_FAMILY = frozenset({
    Connector.of(ConnectorCategory.TYPE2),
    Connector.of(ConnectorCategory.CCS),
    Connector.of(ConnectorCategory.CHADEMO),
})


def is_common_family(connector: Optional[Connector],
                     common_family: AbstractSet[Connector] = DEFAULT_COMMON_FAMILY) -> bool:
    if connector is None:
        return False
    return connector in common_family


def is_compatible(
    vehicle_connector: Optional[Connector],
    station_connectors: AbstractSet[Connector],
    assume_common_family: bool = True,
    common_family: AbstractSet[Connector] = DEFAULT_COMMON_FAMILY,
) -> bool:
    """
    Decide whether a station can charge the vehicle.

    Args:
        vehicle_connector: Normalised vehicle plug, None when unknown.
        station_connectors: Connectors inferred for the station (power bands).
        assume_common_family: Treat common-family plugs as supported everywhere.
        common_family: The connectors considered ubiquitous.

    Returns:
        True when compatible. An unknown vehicle connector is compatible with
        every station so unresolved input never filters out all candidates.
    """
    if vehicle_connector is None:
        return True
    if assume_common_family and is_common_family(vehicle_connector, common_family):
        return True
    return vehicle_connector in station_connectors


def is_supported_connector(connector: Optional[Connector], bands: Iterable[PowerBand]) -> bool:
    """
    Whether station matching can work for this connector at all.

    True for unknown connectors and when no bands are configured (filtering
    is disabled in both cases); otherwise the connector must appear in at
    least one band.
    """
    bands = list(bands)
    if connector is None or not bands:
        return True
    return connector in band_connectors(bands)
