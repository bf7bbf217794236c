"""Async HTTP client for the fleet persistence API and the optimization service."""

from __future__ import annotations

import logging
from typing import Any

import httpx
import pydantic

from ..config import settings
from ..errors import RemoteRejected, SessionExpired, TransientNetworkError
from ..models.domain import Route
from ..schemas.auth import AuthResponse, IdentifiedRecord, LoginRequest, UserModel
from ..schemas.optimization import (
    ApplyOptimizationRequest,
    OptimizationRequest,
    OptimizationResponse,
)
from ..schemas.routes import RouteAssignRequest, RouteModel
from ..session import Session

# Gateway failures mean the backend was never reached; treat them like connectivity loss.
TRANSIENT_STATUS_CODES = frozenset({502, 503, 504})

logger = logging.getLogger(__name__)


def extract_error_message(response: httpx.Response) -> str:
    """Pull the human-readable message out of an error body.

    The backend answers with ``{"code": ..., "messages": [...]}``; other
    layers may use ``message`` or ``detail``.
    """
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        messages = body.get("messages")
        if isinstance(messages, list) and messages:
            return str(messages[0])
        for key in ("message", "detail", "error"):
            if body.get(key):
                return str(body[key])
    text = response.text.strip()
    if text and len(text) < 200:
        return text
    return f"Request failed with status {response.status_code}."


class FleetApiClient:
    def __init__(
        self,
        session: Session,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.session = session
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        if not self.base_url:
            raise ValueError("Fleet API base URL is not configured.")
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout, connect=settings.connect_timeout_seconds),
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "FleetApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send one request and normalize every failure into the core's error taxonomy."""
        try:
            response = await self._client.request(
                method,
                path,
                json=json,
                params=params,
                headers=self.session.bearer_headers(),
            )
        except httpx.TimeoutException as exc:
            logger.warning(f"{method} {path} timed out: {exc}")
            raise TransientNetworkError(f"Request to {path} timed out.") from exc
        except httpx.TransportError as exc:
            logger.warning(f"{method} {path} failed to reach {self.base_url}: {exc}")
            raise TransientNetworkError(f"Could not reach the fleet server: {exc}") from exc

        if response.status_code == 401:
            self.session.invalidate(f"{method} {path} returned 401")
            raise SessionExpired(extract_error_message(response))
        if response.status_code in TRANSIENT_STATUS_CODES:
            logger.warning(f"{method} {path} returned {response.status_code}")
            raise TransientNetworkError(f"Fleet server unavailable ({response.status_code}).")
        if response.is_error:
            message = extract_error_message(response)
            logger.warning(f"{method} {path} rejected with {response.status_code}: {message}")
            raise RemoteRejected(message, status_code=response.status_code)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteRejected(f"Malformed response from {path}.", status_code=response.status_code) from exc

    def _parse_routes(self, payload: Any) -> list[Route]:
        try:
            return [RouteModel.model_validate(item).to_domain() for item in payload or []]
        except (pydantic.ValidationError, ValueError, TypeError) as exc:
            raise RemoteRejected(f"Malformed route payload: {exc}") from exc

    def _parse_route(self, payload: Any) -> Route:
        try:
            return RouteModel.model_validate(payload).to_domain()
        except (pydantic.ValidationError, ValueError) as exc:
            raise RemoteRejected(f"Malformed route payload: {exc}") from exc

    def _parse_ids(self, payload: Any) -> list[int]:
        try:
            return [IdentifiedRecord.model_validate(item).id for item in payload or []]
        except pydantic.ValidationError as exc:
            raise RemoteRejected(f"Malformed record list: {exc}") from exc

    # Auth
    async def login(self, username: str, password: str) -> AuthResponse:
        payload = await self._request(
            "POST",
            "/api/auth/login",
            json=LoginRequest(username=username, password=password).model_dump(by_alias=True),
        )
        return AuthResponse.model_validate(payload)

    async def current_user(self) -> UserModel:
        payload = await self._request("GET", "/api/auth/me")
        return UserModel.model_validate(payload)

    # Routes
    async def list_routes(self) -> list[Route]:
        return self._parse_routes(await self._request("GET", "/api/routes"))

    async def get_route(self, route_id: int) -> Route:
        return self._parse_route(await self._request("GET", f"/api/routes/{route_id}"))

    async def routes_for_driver(self, driver_id: int) -> list[Route]:
        return self._parse_routes(await self._request("GET", f"/api/routes/driver/{driver_id}"))

    async def my_routes(self) -> list[Route]:
        return self._parse_routes(await self._request("GET", "/api/routes/my-routes"))

    async def my_active_routes(self) -> list[Route]:
        return self._parse_routes(await self._request("GET", "/api/routes/my-routes/active"))

    async def assign_route(self, request: RouteAssignRequest) -> Route:
        payload = await self._request(
            "POST",
            "/api/routes/assign",
            json=request.model_dump(by_alias=True, exclude_none=True),
        )
        return self._parse_route(payload)

    async def start_route(self, route_id: int) -> Route:
        return self._parse_route(await self._request("PUT", f"/api/routes/{route_id}/start"))

    async def complete_stop(self, route_id: int, sequence: int) -> Route:
        payload = await self._request(
            "PUT",
            f"/api/routes/{route_id}/complete-stop",
            params={"stopSequence": sequence},
        )
        return self._parse_route(payload)

    async def delete_route(self, route_id: int) -> None:
        await self._request("DELETE", f"/api/routes/{route_id}")

    async def apply_optimization(self, request: ApplyOptimizationRequest) -> list[Route]:
        payload = await self._request(
            "POST",
            "/api/routes/apply-optimization",
            json=request.model_dump(by_alias=True, exclude_none=True),
        )
        return self._parse_routes(payload)

    # Optimization
    async def optimize_fleet(self, request: OptimizationRequest) -> OptimizationResponse:
        payload = await self._request(
            "POST",
            "/api/v1/optimize/fleet",
            json=request.model_dump(by_alias=True, exclude_none=True),
        )
        try:
            return OptimizationResponse.model_validate(payload)
        except pydantic.ValidationError as exc:
            raise RemoteRejected(f"Malformed optimization result: {exc}") from exc

    # ID feeds for building an optimization request
    async def pending_order_ids(self) -> list[int]:
        return self._parse_ids(await self._request("GET", "/api/orders/pending"))

    async def available_driver_ids(self) -> list[int]:
        return self._parse_ids(await self._request("GET", "/api/drivers/available"))

    async def active_station_ids(self) -> list[int]:
        return self._parse_ids(await self._request("GET", "/api/swap-stations/active"))
