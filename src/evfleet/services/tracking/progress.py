"""Stop progression engine.

Governs route status transitions and stop completion. Local checks reject
impossible requests before any network call; every accepted request is
resolved by the server, whose returned route replaces the local snapshot.
The engine never infers ``COMPLETED`` on its own: the server owns the
completion timestamp and the follow-up side effects (freeing the vehicle).
"""

from __future__ import annotations

import logging
from typing import Awaitable, Sequence, TypeVar

import httpx

from ...api.client import FleetApiClient
from ...errors import (
    AlreadyCompleted,
    FleetError,
    InvalidTransition,
    NoOrders,
    Outcome,
    TransientNetworkError,
    UnknownStop,
)
from ...models.domain import Route, RouteStatus, find_stop
from ...schemas.routes import RouteAssignRequest

T = TypeVar("T")

ALLOWED_TRANSITIONS: dict[RouteStatus, frozenset[RouteStatus]] = {
    RouteStatus.PLANNED: frozenset({RouteStatus.IN_PROGRESS, RouteStatus.CANCELLED}),
    RouteStatus.IN_PROGRESS: frozenset({RouteStatus.COMPLETED, RouteStatus.CANCELLED}),
    RouteStatus.COMPLETED: frozenset(),
    RouteStatus.CANCELLED: frozenset(),
}

logger = logging.getLogger(__name__)


def allowed_transitions(status: RouteStatus) -> frozenset[RouteStatus]:
    return ALLOWED_TRANSITIONS[status]


def can_start(route: Route) -> bool:
    return route.status is RouteStatus.PLANNED


def can_complete(route: Route, sequence: int) -> bool:
    stop = find_stop(route, sequence)
    return route.status is RouteStatus.IN_PROGRESS and stop is not None and not stop.completed


async def _remote(operation: str, call: Awaitable[T]) -> Outcome[T]:
    try:
        result = await call
    except FleetError as exc:
        logger.warning(f"{operation} failed: {exc.code} {exc.message}")
        return Outcome.failure(exc)
    except httpx.HTTPError as exc:
        logger.warning(f"{operation} failed in transport: {exc}")
        return Outcome.failure(TransientNetworkError(f"{operation} failed: {exc}"))
    return Outcome.success(result)


async def start_route(client: FleetApiClient, route: Route) -> Outcome[Route]:
    """Move a ``PLANNED`` route to ``IN_PROGRESS``.

    The returned route is the server's copy; starting also changes driver and
    vehicle availability server-side, so nothing is inferred locally.
    """
    if not can_start(route):
        return Outcome.failure(
            InvalidTransition(f"Route {route.id} cannot be started from {route.status.value}.")
        )
    logger.info(f"Starting route {route.id}")
    return await _remote(f"start route {route.id}", client.start_route(route.id))


async def complete_stop(client: FleetApiClient, route: Route, sequence: int) -> Outcome[Route]:
    """Mark one stop of an ``IN_PROGRESS`` route as completed.

    Stops may be completed in any order. Local rejections leave ``route``
    untouched. A retry after a timeout is safe because the server rejects a
    duplicate completion.
    """
    if route.status is not RouteStatus.IN_PROGRESS:
        return Outcome.failure(
            InvalidTransition(f"Route {route.id} is {route.status.value}; stops can only be completed in progress.")
        )
    stop = find_stop(route, sequence)
    if stop is None:
        return Outcome.failure(UnknownStop(f"Route {route.id} has no stop with sequence {sequence}."))
    if stop.completed:
        return Outcome.failure(AlreadyCompleted(f"Stop {sequence} of route {route.id} is already completed."))

    logger.info(f"Completing stop {sequence} of route {route.id}")
    return await _remote(
        f"complete stop {sequence} of route {route.id}",
        client.complete_stop(route.id, sequence),
    )


async def delete_route(client: FleetApiClient, route: Route) -> Outcome[None]:
    """Delete a route in any state. Interactive confirmation is the caller's job."""
    logger.info(f"Deleting route {route.id} ({route.status.value})")
    return await _remote(f"delete route {route.id}", client.delete_route(route.id))


async def assign_route(
    client: FleetApiClient,
    driver_id: int,
    order_ids: Sequence[int],
    vehicle_id: int | None = None,
) -> Outcome[Route]:
    """Create a route directly from a manual driver/order assignment."""
    if not order_ids:
        return Outcome.failure(NoOrders())
    request = RouteAssignRequest(driver_id=driver_id, vehicle_id=vehicle_id, order_ids=list(order_ids))
    logger.info(f"Assigning {len(order_ids)} orders to driver {driver_id}")
    return await _remote(f"assign route to driver {driver_id}", client.assign_route(request))
