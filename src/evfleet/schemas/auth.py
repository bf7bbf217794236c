"""Authentication payloads consumed by the session context."""

from __future__ import annotations

from typing import Literal, Optional

from .routes import WireModel

Role = Literal["ADMIN", "MANAGER", "DRIVER"]


class LoginRequest(WireModel):
    username: str
    password: str


class AuthResponse(WireModel):
    token: str
    username: str
    role: Role
    user_id: int
    driver_id: Optional[int] = None


class UserModel(WireModel):
    id: int
    username: str
    role: Role
    driver_id: Optional[int] = None
    driver_name: Optional[str] = None


class IdentifiedRecord(WireModel):
    """Orders, drivers and stations are only read for their IDs by this core."""

    id: int
