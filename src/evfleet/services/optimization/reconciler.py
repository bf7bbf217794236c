"""Turns optimization service output into persisted routes on user confirmation.

States::

    IDLE -> COMPUTING -> HAS_CANDIDATE -> IDLE          (discard)
                         HAS_CANDIDATE -> APPLYING -> IDLE
                                          APPLYING -> HAS_CANDIDATE  (apply failed)
    COMPUTING -> IDLE                                   (optimize failed)

At most one candidate is held at a time. A new request drops the previous
candidate outright; stop lists are never merged.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional, Sequence

import httpx

from ...api.client import FleetApiClient
from ...config import settings
from ...errors import (
    FleetError,
    InfeasibleCandidate,
    InvalidState,
    NoOrders,
    Outcome,
    TransientNetworkError,
    ValidationError,
)
from ...models.domain import Route
from ...schemas.optimization import ApplyOptimizationRequest, ChargingMode, OptimizationRequest
from .models import OptimizationCandidate, ReconcilerState

GENERIC_OPTIMIZE_FAILURE = "Could not optimize routes."
GENERIC_APPLY_FAILURE = "Could not apply the optimization result."

logger = logging.getLogger(__name__)


def _normalize(error: Exception, fallback: str) -> FleetError:
    if isinstance(error, FleetError):
        if not error.message:
            error.message = fallback
        return error
    return TransientNetworkError(f"{fallback} {error}".strip())


class OptimizationReconciler:
    def __init__(
        self,
        client: FleetApiClient,
        on_applied: Optional[Callable[[list[Route]], Awaitable[None]]] = None,
    ) -> None:
        self.client = client
        self.on_applied = on_applied
        self.state = ReconcilerState.IDLE
        self.candidate: Optional[OptimizationCandidate] = None
        self.last_error: Optional[FleetError] = None

    @property
    def can_apply(self) -> bool:
        return (
            self.state is ReconcilerState.HAS_CANDIDATE
            and self.candidate is not None
            and self.candidate.summary.feasible
        )

    async def request_optimization(
        self,
        order_ids: Sequence[int],
        driver_ids: Sequence[int],
        station_ids: Sequence[int],
        charging_mode: ChargingMode | None = None,
    ) -> Outcome[OptimizationCandidate]:
        if not order_ids:
            return Outcome.failure(NoOrders("No pending orders to optimize."))
        if self.state in (ReconcilerState.COMPUTING, ReconcilerState.APPLYING):
            return Outcome.failure(InvalidState(f"Cannot optimize while {self.state.value}."))

        submitted = frozenset(order_ids)
        request = OptimizationRequest(
            order_ids=list(order_ids),
            driver_ids=list(driver_ids),
            station_ids=list(station_ids),
            charging_mode=charging_mode or settings.default_charging_mode,
            battery_swap_time_hours=settings.battery_swap_time_hours,
            parallel=settings.optimize_parallel,
        )
        self.candidate = None
        self.last_error = None
        self.state = ReconcilerState.COMPUTING
        logger.info(
            f"Requesting optimization for {len(submitted)} orders, {len(request.driver_ids)} drivers, "
            f"{len(request.station_ids)} stations ({request.charging_mode})"
        )
        try:
            response = await self.client.optimize_fleet(request)
        except (FleetError, httpx.HTTPError) as exc:
            error = _normalize(exc, GENERIC_OPTIMIZE_FAILURE)
            logger.warning(f"Optimization failed: {error.code} {error.message}")
            self.last_error = error
            self.state = ReconcilerState.IDLE
            return Outcome.failure(error)

        self.candidate = OptimizationCandidate.from_response(response, submitted)
        self.state = ReconcilerState.HAS_CANDIDATE
        summary = self.candidate.summary
        logger.info(
            f"Optimization produced {summary.total_vehicles} vehicle routes, "
            f"{summary.total_distance:.2f} km, feasible={summary.feasible} "
            f"in {self.candidate.compute_time_ms} ms"
        )
        if self.candidate.driver_shortfall:
            logger.info(
                f"Optimization needs {summary.required_driver_count} drivers, "
                f"{summary.available_driver_count} available"
            )
        return Outcome.success(self.candidate)

    async def apply_candidate(self) -> Outcome[list[Route]]:
        """Persist the held candidate as routes and assign its orders.

        The backend creates one route per candidate vehicle route and marks
        the submitted orders as assigned in a single transaction. On failure
        the candidate is kept so it can be retried or discarded.
        """
        if self.state is not ReconcilerState.HAS_CANDIDATE or self.candidate is None:
            return Outcome.failure(InvalidState(f"No optimization result to apply ({self.state.value})."))
        candidate = self.candidate
        if not candidate.summary.feasible:
            return Outcome.failure(InfeasibleCandidate())
        if not candidate.routes:
            return Outcome.failure(ValidationError("Optimization result contains no routes."))

        request = ApplyOptimizationRequest(
            routes=candidate.to_wire_routes(),
            order_ids=sorted(candidate.requested_order_ids),
        )
        self.state = ReconcilerState.APPLYING
        logger.info(f"Applying {len(candidate.routes)} optimized routes for {len(request.order_ids)} orders")
        try:
            routes = await self.client.apply_optimization(request)
        except (FleetError, httpx.HTTPError) as exc:
            error = _normalize(exc, GENERIC_APPLY_FAILURE)
            logger.warning(f"Applying optimization failed: {error.code} {error.message}")
            self.last_error = error
            self.state = ReconcilerState.HAS_CANDIDATE
            return Outcome.failure(error)

        self.candidate = None
        self.last_error = None
        self.state = ReconcilerState.IDLE
        logger.info(f"Created {len(routes)} routes from optimization result")
        if self.on_applied is not None:
            await self.on_applied(routes)
        return Outcome.success(routes)

    def discard_candidate(self) -> Outcome[None]:
        if self.state is not ReconcilerState.HAS_CANDIDATE:
            return Outcome.failure(InvalidState(f"No optimization result to discard ({self.state.value})."))
        logger.info("Discarding optimization result")
        self.candidate = None
        self.last_error = None
        self.state = ReconcilerState.IDLE
        return Outcome.success(None)
