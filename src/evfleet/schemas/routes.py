"""Route request/response schemas as exchanged with the persistence API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..models.domain import Route, RouteStatus, Stop, StopKind, validate_sequences

_STOP_KIND_ALIASES = {
    "CUSTOMER": StopKind.CUSTOMER,
    "DELIVERY": StopKind.CUSTOMER,
    "PICKUP": StopKind.CUSTOMER,
    "SWAP": StopKind.BATTERY_SWAP,
    "SWAP_STATION": StopKind.BATTERY_SWAP,
    "STATION": StopKind.BATTERY_SWAP,
    "BATTERY_SWAP": StopKind.BATTERY_SWAP,
    "DEPOT": StopKind.DEPOT,
}


def parse_stop_kind(value: str | None) -> StopKind:
    kind = _STOP_KIND_ALIASES.get((value or "").strip().upper())
    if kind is None:
        raise ValueError(f"Unknown stop type '{value}'.")
    return kind


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RouteStopModel(WireModel):
    sequence: int = Field(..., ge=1)
    type: str
    order_id: Optional[int] = None
    station_id: Optional[int] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    address: Optional[str] = None
    customer_name: Optional[str] = None
    completed: bool = False

    @field_validator("completed", mode="before")
    @classmethod
    def _null_completed_is_pending(cls, value: Any) -> Any:
        return False if value is None else value

    def to_domain(self) -> Stop:
        # The console never places a stop at 0/0; treat it as unresolved.
        location = (self.lat, self.lng) if self.lat and self.lng else None
        label = self.customer_name or self.address or f"Stop {self.sequence}"
        return Stop(
            sequence=self.sequence,
            kind=parse_stop_kind(self.type),
            label=label,
            location=location,
            order_id=self.order_id,
            station_id=self.station_id,
            customer_name=self.customer_name,
            completed=bool(self.completed),
        )


class RouteModel(WireModel):
    id: int
    driver_id: int
    driver_name: Optional[str] = None
    vehicle_id: Optional[int] = None
    vehicle_plate: Optional[str] = None
    status: RouteStatus
    stops: List[RouteStopModel] = Field(default_factory=list)
    total_distance: Optional[float] = None
    estimated_time: Optional[float] = None
    total_stops: Optional[int] = None
    completed_stops: Optional[int] = None
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @field_validator("stops", mode="before")
    @classmethod
    def _null_stops_as_empty(cls, value: Any) -> Any:
        """Stored stop JSON can be missing or unreadable; the server then sends null."""
        return [] if value is None else value

    def to_domain(self) -> Route:
        stops = tuple(stop.to_domain() for stop in self.stops)
        validate_sequences(stops)
        return Route(
            id=self.id,
            driver_id=self.driver_id,
            status=self.status,
            stops=stops,
            created_at=self.created_at,
            started_at=self.started_at,
            completed_at=self.completed_at,
            total_distance_km=self.total_distance,
            estimated_time_hours=self.estimated_time,
            driver_name=self.driver_name,
            vehicle_id=self.vehicle_id,
            vehicle_plate=self.vehicle_plate,
        )


class RouteAssignRequest(WireModel):
    """Manual assignment of orders to a driver, bypassing optimization."""

    driver_id: int
    vehicle_id: Optional[int] = None
    order_ids: List[int] = Field(..., min_length=1)
