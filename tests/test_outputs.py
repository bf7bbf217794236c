import csv
import io

import pytest

from evfleet.models.domain import RouteStatus
from evfleet.services.optimization.models import CandidateSummary, OptimizationCandidate
from evfleet.services.outputs import (
    build_map_overlays,
    build_route_detail_overlay,
    format_distance,
    format_hours,
    routes_to_csv,
)
from evfleet.services.outputs.formatter import format_progress, optimization_summary_message, route_to_json
from evfleet.services.outputs.map_overlays import route_color

from helpers import DEPOT, make_route, make_stop

A = (21.2, 105.4)
B = (21.4, 105.6)


@pytest.mark.parametrize("km, expected", [(0.25, "250 m"), (0.9996, "1000 m"), (1.0, "1.0 km"), (12.34, "12.3 km")])
def test_format_distance(km, expected):
    assert format_distance(km) == expected


@pytest.mark.parametrize("hours, expected", [(0.0, "00:00"), (1.5, "01:30"), (8.25, "08:15"), (2.999, "03:00")])
def test_format_hours(hours, expected):
    assert format_hours(hours) == expected


def test_progress_and_json():
    route = make_route(make_stop(1, completed=True), make_stop(2), make_stop(3), make_stop(4))

    assert format_progress(route) == "1/4 stops (25%)"
    payload = route_to_json(route)
    assert payload["next_stop_sequence"] == 2
    assert payload["progress"] == 0.25
    assert [stop["sequence"] for stop in payload["stops"]] == [1, 2, 3, 4]


def test_summary_message_mentions_driver_shortage():
    candidate = OptimizationCandidate(
        requested_order_ids=frozenset({1}),
        routes=(),
        summary=CandidateSummary(
            feasible=True,
            total_vehicles=2,
            total_distance=0.5,
            insufficient_drivers=True,
            required_driver_count=5,
            available_driver_count=3,
        ),
        compute_time_ms=10,
    )

    assert optimization_summary_message(candidate) == "2 vehicles, 500 m; needs 5 drivers but only 3 available"


def test_map_overlays_draw_active_and_planned_routes_only():
    routes = [
        make_route(make_stop(1, location=A), make_stop(2, location=B), route_id=1),
        make_route(make_stop(1, location=A), status=RouteStatus.PLANNED, route_id=2),
        make_route(make_stop(1, location=A), status=RouteStatus.COMPLETED, route_id=3),
        make_route(make_stop(1, location=None), status=RouteStatus.PLANNED, route_id=4),
    ]

    overlays = build_map_overlays(routes, DEPOT)

    assert [line["route_id"] for line in overlays["routes"]] == [1, 2]
    assert overlays["routes"][0]["color"] == route_color(0)
    assert overlays["routes"][1]["color"] == route_color(1)
    assert overlays["routes"][0]["coordinates"] == [list(DEPOT.location), list(A), list(B), list(DEPOT.location)]
    assert overlays["routes"][0]["length_km"] > 0
    assert [vehicle["route_id"] for vehicle in overlays["vehicles"]] == [1]
    assert overlays["depot"] == {"code": "HN", "position": [21.0, 105.0]}


def test_route_color_cycles_palette():
    palette = ("#111111", "#222222")

    assert [route_color(index, palette) for index in range(3)] == ["#111111", "#222222", "#111111"]


def test_route_detail_overlay():
    route = make_route(make_stop(1, location=A, completed=True), make_stop(2, location=B))

    detail = build_route_detail_overlay(route, DEPOT)

    assert detail["completed_path"] == [list(DEPOT.location), list(A)]
    assert detail["vehicle_position"] == pytest.approx([21.3, 105.5])
    assert detail["remaining_path"][1:] == [list(B), list(DEPOT.location)]
    assert detail["next_stop_sequence"] == 2


def test_routes_to_csv():
    route = make_route(make_stop(2, location=None), make_stop(1, location=A, completed=True))

    rows = list(csv.DictReader(io.StringIO(routes_to_csv([route]))))

    assert [row["sequence"] for row in rows] == ["1", "2"]
    assert rows[0]["completed"] == "True"
    assert rows[1]["lat"] == ""
