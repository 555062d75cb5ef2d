"""
Pytest fixtures for MATLYNX tests.
"""

from datetime import datetime, timedelta, timezone

import pytest

from matlynx.auth import AuthSessionManager
from matlynx.contracts.records import User
from matlynx.contracts.types import UserRole
from matlynx.materials import MaterialRepository
from matlynx.profiles import ProfileService
from matlynx.store import MemoryBackend, Store


class TickingClock:
    """Deterministic clock: every call is one second after the previous."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(seconds=1)):
        self.current = start or datetime(2026, 1, 1, tzinfo=timezone.utc)
        self.step = step

    def __call__(self) -> datetime:
        now = self.current
        self.current = self.current + self.step
        return now


class FrozenClock:
    """Clock that never moves."""

    def __init__(self, at: datetime | None = None):
        self.at = at or datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.at


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def store():
    """Empty memory-backed store."""
    return Store(MemoryBackend())


@pytest.fixture
def auth(store):
    return AuthSessionManager(store)


@pytest.fixture
def profiles(store, clock):
    return ProfileService(store, clock=clock)


@pytest.fixture
def materials(store, clock):
    return MaterialRepository(store, clock=clock)


@pytest.fixture
def dealer():
    """Sample dealer user (not yet registered)."""
    return User(
        name="Ravi Traders",
        email="ravi@example.com",
        password="secret1",
        phone="9876543210",
        whatsapp="9876543210",
        role=UserRole.DEALER,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def contractor():
    """Sample contractor user (not yet registered)."""
    return User(
        name="Anita Builders",
        email="anita@example.com",
        password="secret2",
        phone="9123456780",
        role=UserRole.CONTRACTOR,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def complete_dealer_profile():
    """Profile form data that makes a dealer complete."""
    return {
        "full_name": "Ravi Kumar",
        "shop_name": "Ravi Cement Depot",
        "phone": "9876543210",
        "address": {
            "street": "12 MG Road",
            "area": "Indiranagar",
            "city": "Bengaluru",
            "state": "Karnataka",
            "pincode": "560038",
        },
    }


@pytest.fixture
def frozen_clock():
    return FrozenClock()
