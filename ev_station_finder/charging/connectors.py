"""
Connector normalisation.

Maps free-text plug descriptions ("CCS Combo 2", "Type 2 (Mennekes)",
"GB/T DC", ...) onto a closed set of canonical connector categories.
Unrecognised labels are kept as ``OTHER`` with their normalised token so
they can still be compared against configured power bands.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional


class ConnectorCategory(Enum):
    """Canonical charging-plug standards."""
    CHADEMO = "CHADEMO"
    CCS = "CCS"
    TESLA = "TESLA"
    GBT_AC = "GBT_AC"
    GBT_DC = "GBT_DC"
    TYPE1 = "TYPE1"
    TYPE2 = "TYPE2"
    OTHER = "OTHER"


@dataclass(frozen=True)
class Connector:
    """
    A normalised connector.

    ``token`` equals the category value for canonical categories and holds
    the normalised raw label for ``OTHER``.
    """
    category: ConnectorCategory
    token: str

    @classmethod
    def of(cls, category: ConnectorCategory) -> "Connector":
        if category is ConnectorCategory.OTHER:
            raise ValueError("OTHER connectors need a token, use Connector.other()")
        return cls(category, category.value)

    @classmethod
    def other(cls, token: str) -> "Connector":
        return cls(ConnectorCategory.OTHER, token)

    @property
    def is_other(self) -> bool:
        return self.category is ConnectorCategory.OTHER

    def __str__(self) -> str:
        return self.token


_WHITESPACE = re.compile(r"\s+")

# Ordered: first match wins ("CCS/CHAdeMO" is CHADEMO, "Tesla CCS" is CCS)
_SUBSTRING_RULES = (
    (("chademo",), ConnectorCategory.CHADEMO),
    (("ccs",), ConnectorCategory.CCS),
    (("tesla",), ConnectorCategory.TESLA),
)


def normalize_connector(label: Optional[str]) -> Optional[Connector]:
    """
    Normalise a free-text connector label.

    Args:
        label: Any plug description, possibly empty or None.

    Returns:
        The matching Connector, or None when the label is empty/whitespace
        (connector unknown). Never raises.
    """
    if label is None:
        return None
    text = str(label).strip()
    if not text:
        return None
    folded = _WHITESPACE.sub(" ", text.casefold())

    for needles, category in _SUBSTRING_RULES:
        if any(needle in folded for needle in needles):
            return Connector.of(category)

    if "gb/t" in folded or "gbt" in folded:
        if "dc" in folded:
            return Connector.of(ConnectorCategory.GBT_DC)
        return Connector.of(ConnectorCategory.GBT_AC)
    if "type1" in folded or "type 1" in folded:
        return Connector.of(ConnectorCategory.TYPE1)
    if "type2" in folded or "type 2" in folded:
        return Connector.of(ConnectorCategory.TYPE2)

    return Connector.other(_WHITESPACE.sub("_", text.upper()))


def parse_connector_category(name: str) -> Connector:
    """
    Parse a configuration token ("CCS", "GBT_DC", "type 2") into a Connector.

    Exact enum names are accepted first so that tokens such as ``GBT_AC``
    round-trip; anything else goes through ``normalize_connector``.

    Raises:
        ValueError: if ``name`` is empty.
    """
    text = (name or "").strip()
    if not text:
        raise ValueError("connector category name must not be empty")
    upper = text.upper()
    if upper in ConnectorCategory.__members__ and upper != ConnectorCategory.OTHER.value:
        return Connector.of(ConnectorCategory[upper])
    return normalize_connector(text)


def connector_set(names: Iterable[str]) -> frozenset:
    """Frozen set of Connectors parsed from configuration tokens."""
    return frozenset(parse_connector_category(n) for n in names)
