"""Driver and dispatcher tracking views.

A view owns its route snapshot, the positions derived from it, and the
scheduler that keeps it fresh. Nothing is shared between views: each one
fetches and holds its own copy.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Optional, Sequence, TypeVar

import httpx

from ...api.client import FleetApiClient
from ...config import settings
from ...errors import FleetError, Outcome, TransientNetworkError, ValidationError
from ...models.domain import Depot, Route, RouteStatus
from ...notices import NoticeBoard
from ...schemas.optimization import ChargingMode
from ..optimization.models import OptimizationCandidate
from ..optimization.reconciler import OptimizationReconciler
from ..outputs.formatter import format_distance, optimization_summary_message
from ..outputs.map_overlays import build_map_overlays, build_route_detail_overlay
from . import progress
from .position import VehiclePosition, fleet_positions
from .sync import RouteFetcher, RouteSyncScheduler

T = TypeVar("T")

logger = logging.getLogger(__name__)


def default_depot() -> Depot:
    return Depot(
        code=settings.depot_code,
        latitude=settings.depot_latitude,
        longitude=settings.depot_longitude,
    )


class TrackingView:
    def __init__(
        self,
        client: FleetApiClient,
        fetch: RouteFetcher,
        interval_seconds: float | None,
        depot: Depot | None = None,
        notices: NoticeBoard | None = None,
        name: str = "routes",
    ) -> None:
        self.client = client
        self.depot = depot or default_depot()
        self.notices = notices or NoticeBoard()
        self.routes: list[Route] = []
        self.positions: list[VehiclePosition] = []
        self.busy: set[str] = set()
        self.scheduler = RouteSyncScheduler(
            fetch=fetch,
            on_snapshot=self._apply_snapshot,
            notices=self.notices,
            interval_seconds=interval_seconds,
            name=name,
        )

    async def activate(self) -> None:
        await self.scheduler.activate()

    async def deactivate(self) -> None:
        await self.scheduler.deactivate()

    async def refresh(self) -> bool:
        return await self.scheduler.refresh()

    def _apply_snapshot(self, routes: Sequence[Route]) -> None:
        self.routes = list(routes)
        self.positions = fleet_positions(self.routes, self.depot)

    def _replace_route(self, route: Route) -> None:
        routes = [route if existing.id == route.id else existing for existing in self.routes]
        if not any(existing.id == route.id for existing in self.routes):
            routes.append(route)
        self._apply_snapshot(routes)

    def _remove_route(self, route_id: int) -> None:
        self._apply_snapshot([route for route in self.routes if route.id != route_id])

    def route(self, route_id: int) -> Optional[Route]:
        for route in self.routes:
            if route.id == route_id:
                return route
        return None

    def is_busy(self, key: str) -> bool:
        return key in self.busy

    def can_start(self, route_id: int) -> bool:
        route = self.route(route_id)
        return route is not None and progress.can_start(route) and not self.is_busy(f"start:{route_id}")

    def can_complete(self, route_id: int, sequence: int) -> bool:
        route = self.route(route_id)
        return (
            route is not None
            and progress.can_complete(route, sequence)
            and not self.is_busy(f"complete:{route_id}:{sequence}")
        )

    def transitions(self, route_id: int) -> frozenset[RouteStatus]:
        """Statuses the route may move to next; empty for unknown or finished routes."""
        route = self.route(route_id)
        return progress.allowed_transitions(route.status) if route else frozenset()

    def overlays(self) -> dict[str, Any]:
        return build_map_overlays(self.routes, self.depot)

    def route_overlay(self, route_id: int) -> Optional[dict[str, Any]]:
        route = self.route(route_id)
        return build_route_detail_overlay(route, self.depot) if route else None

    def _require_route(self, route_id: int) -> Outcome[Route]:
        route = self.route(route_id)
        if route is None:
            return Outcome.failure(ValidationError(f"Route {route_id} is not loaded in this view."))
        return Outcome.success(route)

    async def _track(self, key: str, call: Awaitable[Outcome[T]], success: str, failure: str) -> Outcome[T]:
        """Run a mutating call while ``key`` is marked busy and post the matching notice.

        Concurrent calls are not blocked; ``busy`` only lets callers disable
        the control that triggered them.
        """
        self.busy.add(key)
        try:
            outcome = await call
        finally:
            self.busy.discard(key)
        if outcome.ok:
            self.notices.success(success)
        else:
            self.notices.error(f"{failure}: {outcome.error.message}")
        return outcome

    async def start(self, route_id: int) -> Outcome[Route]:
        found = self._require_route(route_id)
        if not found.ok:
            return found
        outcome = await self._track(
            f"start:{route_id}",
            progress.start_route(self.client, found.value),
            success="Route started.",
            failure="Could not start route",
        )
        if outcome.ok:
            self._replace_route(outcome.value)
            await self.refresh()
        return outcome


class DriverView(TrackingView):
    """Field view for the signed-in driver, polled on a fixed interval."""

    def __init__(
        self,
        client: FleetApiClient,
        depot: Depot | None = None,
        notices: NoticeBoard | None = None,
        interval_seconds: float | None = None,
    ) -> None:
        super().__init__(
            client,
            fetch=client.my_routes,
            interval_seconds=interval_seconds or settings.driver_refresh_interval_seconds,
            depot=depot,
            notices=notices,
            name="my routes",
        )

    @property
    def active_route(self) -> Optional[Route]:
        for route in self.routes:
            if route.status is RouteStatus.IN_PROGRESS:
                return route
        return None

    async def complete_stop(self, route_id: int, sequence: int) -> Outcome[Route]:
        found = self._require_route(route_id)
        if not found.ok:
            return found
        outcome = await self._track(
            f"complete:{route_id}:{sequence}",
            progress.complete_stop(self.client, found.value, sequence),
            success="Stop completed.",
            failure="Could not update stop",
        )
        if outcome.ok:
            self._replace_route(outcome.value)
            await self.refresh()
        return outcome


class DispatcherView(TrackingView):
    """Admin overview of every route. No timer: it refetches after each mutation."""

    def __init__(
        self,
        client: FleetApiClient,
        depot: Depot | None = None,
        notices: NoticeBoard | None = None,
        driver_id: int | None = None,
    ) -> None:
        fetch = client.list_routes if driver_id is None else (lambda: client.routes_for_driver(driver_id))
        super().__init__(
            client,
            fetch=fetch,
            interval_seconds=None,
            depot=depot,
            notices=notices,
            name="routes",
        )
        self.driver_id = driver_id
        self.reconciler = OptimizationReconciler(client, on_applied=self._after_apply)

    async def _after_apply(self, routes: list[Route]) -> None:
        await self.refresh()

    async def delete(self, route_id: int) -> Outcome[None]:
        found = self._require_route(route_id)
        if not found.ok:
            return found
        outcome = await self._track(
            f"delete:{route_id}",
            progress.delete_route(self.client, found.value),
            success="Route deleted.",
            failure="Could not delete route",
        )
        if outcome.ok:
            self._remove_route(route_id)
            await self.refresh()
        return outcome

    async def assign(self, driver_id: int, order_ids: Sequence[int], vehicle_id: int | None = None) -> Outcome[Route]:
        outcome = await self._track(
            f"assign:{driver_id}",
            progress.assign_route(self.client, driver_id, order_ids, vehicle_id=vehicle_id),
            success="Route assigned.",
            failure="Could not assign route",
        )
        if outcome.ok:
            await self.refresh()
        return outcome

    async def optimize_pending(self, charging_mode: ChargingMode | None = None) -> Outcome[OptimizationCandidate]:
        """Optimize every pending order over the available drivers and active swap stations."""
        try:
            order_ids = await self.client.pending_order_ids()
            driver_ids = await self.client.available_driver_ids()
            station_ids = await self.client.active_station_ids()
        except FleetError as exc:
            self.notices.error(f"Could not load optimization inputs: {exc.message}")
            return Outcome.failure(exc)
        except httpx.HTTPError as exc:
            error = TransientNetworkError(str(exc))
            self.notices.error(f"Could not load optimization inputs: {error.message}")
            return Outcome.failure(error)
        return await self.optimize(order_ids, driver_ids, station_ids, charging_mode)

    async def optimize(
        self,
        order_ids: Sequence[int],
        driver_ids: Sequence[int],
        station_ids: Sequence[int],
        charging_mode: ChargingMode | None = None,
    ) -> Outcome[OptimizationCandidate]:
        self.busy.add("optimize")
        try:
            outcome = await self.reconciler.request_optimization(order_ids, driver_ids, station_ids, charging_mode)
        finally:
            self.busy.discard("optimize")
        if outcome.ok:
            self.notices.success(f"Optimization complete: {optimization_summary_message(outcome.value)}")
        else:
            self.notices.error(outcome.error.message)
        return outcome

    async def apply_optimization(self) -> Outcome[list[Route]]:
        candidate = self.reconciler.candidate
        outcome = await self._track(
            "apply",
            self.reconciler.apply_candidate(),
            success=f"Created {len(candidate.routes) if candidate else 0} routes from the optimization result.",
            failure="Could not apply optimization",
        )
        if outcome.ok:
            logger.info(
                f"Applied optimization: {len(outcome.value)} routes, "
                f"{format_distance(sum(route.total_distance_km or 0.0 for route in outcome.value))}"
            )
        return outcome

    def discard_optimization(self) -> Outcome[None]:
        return self.reconciler.discard_candidate()
