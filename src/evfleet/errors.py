"""Error taxonomy and the success/failure result returned by engine operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class FleetError(Exception):
    """Base class for every error surfaced by the tracking core."""

    code = "FLEET_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(FleetError):
    """Request rejected locally before any network call."""

    code = "VALIDATION_ERROR"


class NoOrders(ValidationError):
    code = "NO_ORDERS"

    def __init__(self, message: str = "No orders selected.") -> None:
        super().__init__(message)


class InvalidTransition(FleetError):
    """Route status does not allow the requested operation."""

    code = "INVALID_TRANSITION"


class UnknownStop(FleetError):
    code = "UNKNOWN_STOP"


class AlreadyCompleted(FleetError):
    code = "ALREADY_COMPLETED"


class InvalidState(FleetError):
    """Optimization reconciler is not in a state that accepts the call."""

    code = "INVALID_STATE"


class InfeasibleCandidate(FleetError):
    code = "INFEASIBLE_CANDIDATE"

    def __init__(self, message: str = "Optimization result is not feasible and cannot be applied.") -> None:
        super().__init__(message)


class RemoteRejected(FleetError):
    """The server answered but declined the request."""

    code = "REMOTE_REJECTED"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SessionExpired(RemoteRejected):
    code = "SESSION_EXPIRED"

    def __init__(self, message: str = "Session is no longer authorized.") -> None:
        super().__init__(message, status_code=401)


class TransientNetworkError(FleetError):
    """Timeout or connectivity failure. Never retried automatically."""

    code = "TRANSIENT_NETWORK_ERROR"


@dataclass(frozen=True, slots=True)
class Outcome(Generic[T]):
    """Discriminated success/failure result of an engine operation."""

    value: Optional[T] = None
    error: Optional[FleetError] = None

    @classmethod
    def success(cls, value: T = None) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: FleetError) -> "Outcome[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value
