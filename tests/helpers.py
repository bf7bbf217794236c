"""Shared builders for domain objects used across the suite."""

from __future__ import annotations

from evfleet.models.domain import Depot, Route, RouteStatus, Stop, StopKind

from fake_backend import DRIVER_ID

BASE_URL = "http://fleet.test"
DEPOT = Depot(code="HN", latitude=21.0, longitude=105.0)


def make_stop(
    sequence: int,
    location: tuple[float, float] | None = (21.1, 105.1),
    completed: bool = False,
    kind: StopKind = StopKind.CUSTOMER,
) -> Stop:
    return Stop(
        sequence=sequence,
        kind=kind,
        label=f"Stop {sequence}",
        location=location,
        order_id=sequence if kind is StopKind.CUSTOMER else None,
        station_id=sequence if kind is StopKind.BATTERY_SWAP else None,
        completed=completed,
    )


def make_route(*stops: Stop, status: RouteStatus = RouteStatus.IN_PROGRESS, route_id: int = 1) -> Route:
    return Route(id=route_id, driver_id=DRIVER_ID, status=status, stops=tuple(stops), driver_name="Driver 10")
