"""routing – route geometry and obstruction proximity checks."""

from .geometry import RouteGeometry
from .obstacles import (
    DEFAULT_PROXIMITY_THRESHOLD_KM,
    ObstructionHit,
    active_obstructions,
    find_route_obstructions,
    route_is_obstructed,
)

__all__ = [
    "RouteGeometry",
    "DEFAULT_PROXIMITY_THRESHOLD_KM", "ObstructionHit",
    "active_obstructions", "find_route_obstructions", "route_is_obstructed",
]
