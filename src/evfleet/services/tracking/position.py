"""Vehicle position estimation and route path construction for map display.

There is no live GPS feed, only discrete stop completions. The estimated
position is the plain midpoint between the last completed stop and the next
pending one, with the depot standing in at either end. It does not
interpolate by elapsed time or road distance, so the marker jumps between
midpoints as stops are completed instead of moving continuously.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from ...models.domain import (
    Depot,
    LatLng,
    Route,
    RouteStatus,
    Stop,
    completed_stops,
    last_completed_stop,
    next_stop,
    pending_stops,
    sorted_stops,
)
from ..geospatial import midpoint


@dataclass(frozen=True, slots=True)
class VehiclePosition:
    route_id: int
    driver_id: int
    driver_name: Optional[str]
    position: LatLng


def _location_or_depot(stop: Optional[Stop], depot: Depot) -> LatLng:
    if stop is None or stop.location is None:
        return depot.location
    return stop.location


def _resolved(stops: Iterable[Stop]) -> list[LatLng]:
    return [stop.location for stop in stops if stop.location is not None]


def estimate_position(route: Route, depot: Depot) -> Optional[LatLng]:
    """Midpoint of the last completed stop and the next stop.

    Returns ``None`` unless the route is in progress. Before any completion
    the vehicle sits between the depot and the first stop; after the last
    one it is heading back to the depot.
    """
    if route.status is not RouteStatus.IN_PROGRESS:
        return None
    last = _location_or_depot(last_completed_stop(route), depot)
    upcoming = _location_or_depot(next_stop(route), depot)
    return midpoint(last, upcoming)


def fleet_positions(routes: Iterable[Route], depot: Depot) -> list[VehiclePosition]:
    positions: list[VehiclePosition] = []
    for route in routes:
        position = estimate_position(route, depot)
        if position is None:
            continue
        positions.append(
            VehiclePosition(
                route_id=route.id,
                driver_id=route.driver_id,
                driver_name=route.driver_name,
                position=position,
            )
        )
    return positions


def route_path(route: Route, depot: Depot) -> list[LatLng]:
    """Depot, every located stop in sequence order, depot.

    Returns an empty list when no stop has a resolved coordinate: a bare
    depot-to-depot line is degenerate and should not be drawn.
    """
    located = _resolved(sorted_stops(route))
    if not located:
        return []
    return [depot.location, *located, depot.location]


def completed_path(route: Route, depot: Depot) -> list[LatLng]:
    return [depot.location, *_resolved(completed_stops(route))]


def remaining_path(route: Route, depot: Depot) -> list[LatLng]:
    """From the estimated position through every pending stop back to the depot."""
    start = estimate_position(route, depot) or depot.location
    return [start, *_resolved(pending_stops(route)), depot.location]
