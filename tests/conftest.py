from __future__ import annotations

import pytest

from evfleet.api.client import FleetApiClient
from evfleet.schemas.auth import AuthResponse
from evfleet.session import Session

from fake_backend import DRIVER_ID, TOKEN, FakeFleetBackend
from helpers import BASE_URL


@pytest.fixture
def backend() -> FakeFleetBackend:
    return FakeFleetBackend()


@pytest.fixture
def session() -> Session:
    return Session.sign_in(
        AuthResponse(token=TOKEN, username="driver1", role="DRIVER", user_id=1, driver_id=DRIVER_ID)
    )


@pytest.fixture
def make_client(backend: FakeFleetBackend, session: Session):
    """Client factory; build the client inside the coroutine that uses it."""

    def factory() -> FleetApiClient:
        return FleetApiClient(session, base_url=BASE_URL, transport=backend.transport())

    return factory
