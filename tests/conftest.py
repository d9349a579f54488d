"""Shared fixtures for ClaimsFlow tests."""

import random
from datetime import datetime, timedelta, timezone

import pytest

from claimsflow.fnol.collaborators import InMemoryPolicyLookup, KeywordPhotoAnalyzer
from claimsflow.fnol.schema import (
    AccidentType,
    Claim,
    ClaimPhoto,
    PhotoCategory,
    VehicleInfo,
)
from claimsflow.fnol.session_engine import IntakeSessionEngine
from claimsflow.storage.claim_store import ClaimStore
from claimsflow.triage.randomness import RandomSource
from claimsflow.triage.workflow import TriageService

START = datetime(2025, 3, 14, 9, 30, tzinfo=timezone.utc)

LONG_DESCRIPTION = (
    "Another car ran a red light and hit my front bumper. The hood is dented "
    "and the left headlight is broken."
)


# ============================================================================
# Helper Classes
# ============================================================================


class FixedClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime = START):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


class BoundRandom(random.Random):
    """Generator whose randint always returns one end of the range."""

    def __init__(self, high: bool):
        super().__init__(0)
        self.high = high

    def randint(self, a, b):
        return b if self.high else a


class BoundRandomSource(RandomSource):
    def __init__(self, high: bool = False):
        self.high = high

    def spawn(self, key: str) -> random.Random:
        return BoundRandom(self.high)


def make_claim(
    claim_id: str = "claim-1",
    accident_type: AccidentType = AccidentType.COLLISION,
    photo_count: int = 3,
    description: str = LONG_DESCRIPTION,
    created_at: datetime = START,
    **overrides,
) -> Claim:
    """Create a finalized claim with sensible defaults."""
    photos = [
        ClaimPhoto(url=f"uploads/photo_{i}.jpg", category=PhotoCategory.DAMAGE, timestamp=created_at)
        for i in range(photo_count)
    ]
    fields = dict(
        id=claim_id,
        policy_number="POL-123456",
        customer_name="John Smith",
        customer_email="john.smith@email.com",
        customer_phone="(555) 123-4567",
        vehicle_info=VehicleInfo(make="Toyota", model="Camry", year=2022),
        accident_type=accident_type,
        accident_date=created_at - timedelta(days=1),
        accident_location="Main St & 5th Ave",
        description=description,
        photos=photos,
        created_at=created_at,
        updated_at=created_at,
    )
    fields.update(overrides)
    return Claim(**fields)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def store(tmp_path, clock):
    return ClaimStore(db_path=tmp_path / "claims.db", clock=clock)


@pytest.fixture
def policy_lookup():
    return InMemoryPolicyLookup()


@pytest.fixture
def engine(store, policy_lookup, clock):
    return IntakeSessionEngine(
        store=store,
        policy_lookup=policy_lookup,
        idle_timeout=timedelta(minutes=30),
        clock=clock,
    )


@pytest.fixture
def triage(store, clock):
    return TriageService(store=store, random_source=BoundRandomSource(high=False), clock=clock)


@pytest.fixture
def photo_analyzer():
    return KeywordPhotoAnalyzer()


@pytest.fixture
def claim_factory():
    """The make_claim helper, for tests that build claims directly."""
    return make_claim


@pytest.fixture
def bound_source():
    """Factory for random sources pinned to the low or high end of each range."""
    return BoundRandomSource
