"""Optimization service request/response schemas."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import Field

from .routes import WireModel

ChargingMode = Literal["FULL_RECHARGE", "BATTERY_SWAP"]


class OptimizationRequest(WireModel):
    order_ids: List[int] = Field(..., min_length=1)
    driver_ids: List[int] = Field(default_factory=list)
    station_ids: List[int] = Field(default_factory=list)
    charging_mode: ChargingMode = "BATTERY_SWAP"
    battery_swap_time_hours: Optional[float] = Field(default=None, alias="batterySwapTime", ge=0)
    parallel: bool = True


class OptimizedStopModel(WireModel):
    node_id: int
    string_id: Optional[str] = None
    type: str
    x: float
    y: float


class OptimizedRouteModel(WireModel):
    vehicle_id: int
    stops: List[OptimizedStopModel] = Field(default_factory=list)
    distance: float = 0.0
    feasible: bool = True


class OptimizationSummaryModel(WireModel):
    total_vehicles: int = 0
    total_distance: float = 0.0
    feasible: bool = False
    total_cost: Optional[float] = None
    total_customers: Optional[int] = None
    total_stations: Optional[int] = None
    insufficient_drivers: bool = False
    required_driver_count: Optional[int] = None
    available_driver_count: Optional[int] = None


class OptimizationResponse(WireModel):
    routes: List[OptimizedRouteModel] = Field(default_factory=list)
    summary: OptimizationSummaryModel
    compute_time_ms: int = 0
    charging_mode: Optional[str] = None


class ApplyOptimizationRequest(WireModel):
    """Candidate routes plus the exact order IDs that were submitted for optimization."""

    routes: List[OptimizedRouteModel] = Field(..., min_length=1)
    order_ids: List[int] = Field(..., min_length=1)
