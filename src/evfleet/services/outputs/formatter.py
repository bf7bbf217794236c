"""Display formatting and serializers for route progress."""

from __future__ import annotations

import csv
import io
import math
from typing import Sequence

from ...models.domain import Route, completed_count, next_stop, progress_fraction, sorted_stops
from ..optimization.models import OptimizationCandidate


def format_distance(km: float) -> str:
    if km < 1:
        return f"{round(km * 1000)} m"
    return f"{km:.1f} km"


def format_hours(hours: float) -> str:
    """Render fractional hours as ``HH:MM``."""
    whole = math.floor(hours)
    minutes = round((hours - whole) * 60)
    if minutes == 60:
        whole, minutes = whole + 1, 0
    return f"{whole:02d}:{minutes:02d}"


def format_progress(route: Route) -> str:
    return f"{completed_count(route)}/{len(route.stops)} stops ({progress_fraction(route) * 100:.0f}%)"


def optimization_summary_message(candidate: OptimizationCandidate) -> str:
    summary = candidate.summary
    message = f"{summary.total_vehicles} vehicles, {format_distance(summary.total_distance)}"
    if not summary.feasible:
        message += " (infeasible)"
    if candidate.driver_shortfall:
        message += (
            f"; needs {summary.required_driver_count} drivers but only "
            f"{summary.available_driver_count} available"
        )
    return message


def route_to_json(route: Route) -> dict:
    upcoming = next_stop(route)
    return {
        "route_id": route.id,
        "driver_id": route.driver_id,
        "driver_name": route.driver_name,
        "status": route.status.value,
        "total_distance_km": route.total_distance_km,
        "completed_stops": completed_count(route),
        "total_stops": len(route.stops),
        "progress": progress_fraction(route),
        "next_stop_sequence": upcoming.sequence if upcoming else None,
        "stops": [
            {
                "sequence": stop.sequence,
                "kind": stop.kind.value,
                "label": stop.label,
                "location": list(stop.location) if stop.location else None,
                "completed": stop.completed,
            }
            for stop in sorted_stops(route)
        ],
    }


def routes_to_csv(routes: Sequence[Route]) -> str:
    buffer = io.StringIO()
    fieldnames = [
        "route_id",
        "driver_name",
        "status",
        "sequence",
        "kind",
        "label",
        "lat",
        "lng",
        "completed",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    for route in routes:
        for stop in sorted_stops(route):
            lat, lng = stop.location if stop.location else ("", "")
            writer.writerow(
                {
                    "route_id": route.id,
                    "driver_name": route.driver_name or "",
                    "status": route.status.value,
                    "sequence": stop.sequence,
                    "kind": stop.kind.value,
                    "label": stop.label,
                    "lat": lat,
                    "lng": lng,
                    "completed": stop.completed,
                }
            )
    return buffer.getvalue()
