"""Route progression, position estimation and refresh scheduling."""

from .position import estimate_position, fleet_positions, route_path
from .progress import assign_route, complete_stop, delete_route, start_route
from .sync import RouteSyncScheduler

__all__ = [
    "assign_route",
    "complete_stop",
    "delete_route",
    "start_route",
    "estimate_position",
    "fleet_positions",
    "route_path",
    "RouteSyncScheduler",
]
