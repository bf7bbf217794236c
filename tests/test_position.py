import pytest

from evfleet.models.domain import RouteStatus, StopKind
from evfleet.services.geospatial import haversine_km, midpoint, path_distance_km
from evfleet.services.tracking.position import (
    completed_path,
    estimate_position,
    fleet_positions,
    remaining_path,
    route_path,
)

from helpers import DEPOT, make_route, make_stop

A = (21.2, 105.4)
SWAP = (21.4, 105.6)


def test_position_before_any_completion_is_between_depot_and_first_stop():
    route = make_route(make_stop(2, location=SWAP), make_stop(1, location=A))

    assert estimate_position(route, DEPOT) == pytest.approx(midpoint(DEPOT.location, A))


def test_position_after_all_completions_is_between_last_stop_and_depot():
    route = make_route(make_stop(1, location=A, completed=True), make_stop(2, location=SWAP, completed=True))

    assert estimate_position(route, DEPOT) == pytest.approx(midpoint(SWAP, DEPOT.location))


def test_completing_first_stop_moves_marker_towards_swap_station():
    before = make_route(make_stop(1, location=A), make_stop(2, location=SWAP, kind=StopKind.BATTERY_SWAP))
    after = make_route(
        make_stop(1, location=A, completed=True),
        make_stop(2, location=SWAP, kind=StopKind.BATTERY_SWAP),
    )

    assert estimate_position(before, DEPOT) == pytest.approx((21.1, 105.2))
    assert estimate_position(after, DEPOT) == pytest.approx((21.3, 105.5))


def test_unknown_stop_location_falls_back_to_depot():
    route = make_route(make_stop(1, location=A, completed=True), make_stop(2, location=None))

    assert estimate_position(route, DEPOT) == pytest.approx(midpoint(A, DEPOT.location))


def test_no_position_for_routes_not_in_progress():
    for status in (RouteStatus.PLANNED, RouteStatus.COMPLETED, RouteStatus.CANCELLED):
        assert estimate_position(make_route(make_stop(1), status=status), DEPOT) is None


def test_fleet_positions_only_cover_routes_in_progress():
    routes = [
        make_route(make_stop(1, location=A), route_id=1),
        make_route(make_stop(1, location=A), status=RouteStatus.PLANNED, route_id=2),
        make_route(make_stop(1, location=SWAP, completed=True), route_id=3),
    ]

    positions = {vehicle.route_id: vehicle.position for vehicle in fleet_positions(routes, DEPOT)}

    assert set(positions) == {1, 3}
    assert positions[3] == pytest.approx(midpoint(SWAP, DEPOT.location))


def test_route_path_wraps_located_stops_with_depot():
    route = make_route(make_stop(2, location=SWAP), make_stop(1, location=A), make_stop(3, location=None))

    assert route_path(route, DEPOT) == [DEPOT.location, A, SWAP, DEPOT.location]


def test_route_path_without_located_stops_is_suppressed():
    route = make_route(make_stop(1, location=None), make_stop(2, location=None))

    assert route_path(route, DEPOT) == []
    assert route_path(make_route(), DEPOT) == []


def test_completed_and_remaining_paths_split_at_vehicle():
    route = make_route(make_stop(1, location=A, completed=True), make_stop(2, location=SWAP))

    assert completed_path(route, DEPOT) == [DEPOT.location, A]
    remaining = remaining_path(route, DEPOT)
    assert remaining[0] == pytest.approx(midpoint(A, SWAP))
    assert remaining[1:] == [SWAP, DEPOT.location]


def test_path_distance_sums_legs():
    leg = haversine_km(A[0], A[1], SWAP[0], SWAP[1])

    assert path_distance_km([A, SWAP, A]) == pytest.approx(2 * leg)
    assert path_distance_km([A]) == 0
