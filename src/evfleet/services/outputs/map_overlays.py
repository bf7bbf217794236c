"""Coordinate payloads handed to the map rendering layer."""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from ...config import settings
from ...models.domain import Depot, LatLng, Route, RouteStatus, next_stop
from ..geospatial import path_distance_km
from ..tracking.position import (
    completed_path,
    estimate_position,
    fleet_positions,
    remaining_path,
    route_path,
)

DRAWN_STATUSES = frozenset({RouteStatus.PLANNED, RouteStatus.IN_PROGRESS})


def route_color(index: int, palette: Sequence[str] | None = None) -> str:
    colors = palette or settings.route_colors
    return colors[index % len(colors)]


def _points(path: Iterable[LatLng]) -> list[list[float]]:
    return [[lat, lng] for lat, lng in path]


def build_map_overlays(routes: Sequence[Route], depot: Depot) -> dict[str, Any]:
    """Fleet overview: one line per active or planned route plus every estimated vehicle position."""

    lines = []
    for route in routes:
        if route.status not in DRAWN_STATUSES:
            continue
        path = route_path(route, depot)
        if not path:
            continue
        lines.append(
            {
                "route_id": route.id,
                "status": route.status.value,
                "color": route_color(len(lines)),
                "coordinates": _points(path),
                "length_km": round(path_distance_km(path), 3),
            }
        )

    vehicles = [
        {
            "route_id": vehicle.route_id,
            "driver_id": vehicle.driver_id,
            "driver_name": vehicle.driver_name,
            "position": list(vehicle.position),
        }
        for vehicle in fleet_positions(routes, depot)
    ]
    return {
        "depot": {"code": depot.code, "position": list(depot.location)},
        "routes": lines,
        "vehicles": vehicles,
    }


def build_route_detail_overlay(route: Route, depot: Depot) -> dict[str, Any]:
    """Single-route view: planned path split into the completed and remaining legs."""

    position = estimate_position(route, depot)
    upcoming = next_stop(route)
    return {
        "route_id": route.id,
        "status": route.status.value,
        "depot": list(depot.location),
        "path": _points(route_path(route, depot)),
        "completed_path": _points(completed_path(route, depot)),
        "remaining_path": _points(remaining_path(route, depot)),
        "vehicle_position": list(position) if position else None,
        "next_stop_sequence": upcoming.sequence if upcoming else None,
    }
