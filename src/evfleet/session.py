"""Explicit session context passed to the API client.

A session is created at sign-in and invalidated at sign-out or on the first
authorization failure reported by any call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .schemas.auth import AuthResponse, UserModel

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SessionUser:
    id: int
    username: str
    role: str
    driver_id: Optional[int] = None
    driver_name: Optional[str] = None


class Session:
    def __init__(self, token: str | None = None, user: SessionUser | None = None) -> None:
        self._token = token
        self.user = user
        self.invalidated_reason: str | None = None

    @classmethod
    def sign_in(cls, auth: AuthResponse) -> "Session":
        user = SessionUser(
            id=auth.user_id,
            username=auth.username,
            role=auth.role,
            driver_id=auth.driver_id,
        )
        logger.info(f"Signed in as {auth.username} ({auth.role})")
        return cls(token=auth.token, user=user)

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def is_active(self) -> bool:
        return self._token is not None

    @property
    def is_driver(self) -> bool:
        return self.user is not None and self.user.role == "DRIVER"

    def update_user(self, user: UserModel) -> None:
        self.user = SessionUser(
            id=user.id,
            username=user.username,
            role=user.role,
            driver_id=user.driver_id,
            driver_name=user.driver_name,
        )

    def bearer_headers(self) -> dict[str, str]:
        if not self._token:
            return {}
        return {"Authorization": f"Bearer {self._token}"}

    def invalidate(self, reason: str) -> None:
        if self._token is None:
            return
        logger.warning(f"Session invalidated: {reason}")
        self._token = None
        self.user = None
        self.invalidated_reason = reason

    def sign_out(self) -> None:
        self._token = None
        self.user = None
        self.invalidated_reason = None
