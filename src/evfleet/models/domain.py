"""Domain models for assigned routes and their stops.

Routes and stops are immutable snapshots. Every fetch from the server
rebuilds them wholesale; progression produces new snapshots through
``dataclasses.replace`` rather than mutating existing records.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Sequence

LatLng = tuple[float, float]


class StopKind(str, Enum):
    CUSTOMER = "CUSTOMER"
    BATTERY_SWAP = "BATTERY_SWAP"
    DEPOT = "DEPOT"


class RouteStatus(str, Enum):
    PLANNED = "PLANNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


TERMINAL_STATUSES = frozenset({RouteStatus.COMPLETED, RouteStatus.CANCELLED})


@dataclass(frozen=True, slots=True)
class Depot:
    """Fixed origin and return point of every route. Never stored as a stop."""

    code: str
    latitude: float
    longitude: float

    @property
    def location(self) -> LatLng:
        return (self.latitude, self.longitude)


@dataclass(frozen=True, slots=True)
class Stop:
    sequence: int
    kind: StopKind
    label: str
    location: Optional[LatLng] = None
    order_id: Optional[int] = None
    station_id: Optional[int] = None
    customer_name: Optional[str] = None
    completed: bool = False

    @property
    def target_ref(self) -> Optional[int]:
        if self.kind is StopKind.CUSTOMER:
            return self.order_id
        if self.kind is StopKind.BATTERY_SWAP:
            return self.station_id
        return None


@dataclass(frozen=True, slots=True)
class Route:
    """An assigned route as last reported by the server."""

    id: int
    driver_id: int
    status: RouteStatus
    stops: tuple[Stop, ...]
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    total_distance_km: Optional[float] = None
    estimated_time_hours: Optional[float] = None
    driver_name: Optional[str] = None
    vehicle_id: Optional[int] = None
    vehicle_plate: Optional[str] = None


def validate_sequences(stops: Sequence[Stop]) -> None:
    """Raise ``ValueError`` unless sequences are 1..n without gaps or duplicates."""

    sequences = sorted(stop.sequence for stop in stops)
    expected = list(range(1, len(stops) + 1))
    if sequences != expected:
        raise ValueError(f"Stop sequences must be contiguous from 1, got {sequences}.")


def is_terminal(status: RouteStatus) -> bool:
    return status in TERMINAL_STATUSES


def sorted_stops(route: Route) -> list[Stop]:
    return sorted(route.stops, key=lambda stop: stop.sequence)


def completed_stops(route: Route) -> list[Stop]:
    return [stop for stop in sorted_stops(route) if stop.completed]


def pending_stops(route: Route) -> list[Stop]:
    return [stop for stop in sorted_stops(route) if not stop.completed]


def completed_count(route: Route) -> int:
    return sum(1 for stop in route.stops if stop.completed)


def next_stop(route: Route) -> Optional[Stop]:
    """Lowest-sequence incomplete stop.

    Stops may be completed out of order, so this is not necessarily the stop
    after the last completion.
    """

    pending = pending_stops(route)
    return pending[0] if pending else None


def last_completed_stop(route: Route) -> Optional[Stop]:
    done = completed_stops(route)
    return done[-1] if done else None


def find_stop(route: Route, sequence: int) -> Optional[Stop]:
    for stop in route.stops:
        if stop.sequence == sequence:
            return stop
    return None


def progress_fraction(route: Route) -> float:
    total = len(route.stops)
    if total == 0:
        return 0.0
    return completed_count(route) / total
