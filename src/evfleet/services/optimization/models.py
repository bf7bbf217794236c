"""Optimization candidate domain models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ...schemas.optimization import OptimizationResponse, OptimizedRouteModel, OptimizedStopModel


class ReconcilerState(str, Enum):
    IDLE = "IDLE"
    COMPUTING = "COMPUTING"
    HAS_CANDIDATE = "HAS_CANDIDATE"
    APPLYING = "APPLYING"


@dataclass(frozen=True, slots=True)
class CandidateStop:
    node_id: int
    kind: str
    x: float
    y: float
    string_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class CandidateRoute:
    vehicle_id: int
    stops: tuple[CandidateStop, ...]
    distance: float
    feasible: bool


@dataclass(frozen=True, slots=True)
class CandidateSummary:
    feasible: bool
    total_vehicles: int
    total_distance: float
    insufficient_drivers: bool = False
    required_driver_count: Optional[int] = None
    available_driver_count: Optional[int] = None
    total_cost: Optional[float] = None
    total_customers: Optional[int] = None
    total_stations: Optional[int] = None


@dataclass(frozen=True, slots=True)
class OptimizationCandidate:
    """Proposed routes held in memory until applied or discarded. Never persisted."""

    requested_order_ids: frozenset[int]
    routes: tuple[CandidateRoute, ...]
    summary: CandidateSummary
    compute_time_ms: int
    charging_mode: Optional[str] = None

    @property
    def driver_shortfall(self) -> int:
        """Advisory only; a shortfall never blocks applying the candidate."""
        summary = self.summary
        if not summary.insufficient_drivers:
            return 0
        if summary.required_driver_count is None or summary.available_driver_count is None:
            return 0
        return max(summary.required_driver_count - summary.available_driver_count, 0)

    @classmethod
    def from_response(cls, response: OptimizationResponse, order_ids: frozenset[int]) -> "OptimizationCandidate":
        summary = response.summary
        return cls(
            requested_order_ids=order_ids,
            routes=tuple(_candidate_route(route) for route in response.routes),
            summary=CandidateSummary(
                feasible=summary.feasible,
                total_vehicles=summary.total_vehicles,
                total_distance=summary.total_distance,
                insufficient_drivers=summary.insufficient_drivers,
                required_driver_count=summary.required_driver_count,
                available_driver_count=summary.available_driver_count,
                total_cost=summary.total_cost,
                total_customers=summary.total_customers,
                total_stations=summary.total_stations,
            ),
            compute_time_ms=response.compute_time_ms,
            charging_mode=response.charging_mode,
        )

    def to_wire_routes(self) -> list[OptimizedRouteModel]:
        return [
            OptimizedRouteModel(
                vehicle_id=route.vehicle_id,
                stops=[
                    OptimizedStopModel(
                        node_id=stop.node_id, string_id=stop.string_id, type=stop.kind, x=stop.x, y=stop.y
                    )
                    for stop in route.stops
                ],
                distance=route.distance,
                feasible=route.feasible,
            )
            for route in self.routes
        ]


def _candidate_route(route: OptimizedRouteModel) -> CandidateRoute:
    return CandidateRoute(
        vehicle_id=route.vehicle_id,
        stops=tuple(
            CandidateStop(node_id=stop.node_id, kind=stop.type, x=stop.x, y=stop.y, string_id=stop.string_id)
            for stop in route.stops
        ),
        distance=route.distance,
        feasible=route.feasible,
    )
