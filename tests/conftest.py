"""
Shared pytest fixtures for RigSnap backend unit tests.

Provides mock database sessions and sample domain objects that mirror the
records the matching engine and notification service work with, without
requiring a live database connection.
"""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from rigsnap.services.geoService import Coordinates
from rigsnap.services.matchingEngine import ProviderCandidate, RequestDetails


# ---------------------------------------------------------------------------
# Database session mock
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_db() -> AsyncMock:
    """Async mock of ``AsyncSession``.

    Individual tests can configure ``mock_db.execute.return_value`` to
    control query results.
    """
    session = AsyncMock()
    session.add = MagicMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


# ---------------------------------------------------------------------------
# Request fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def lahore_request() -> RequestDetails:
    """A high-urgency tire repair request in central Lahore."""
    return RequestDetails(
        id=str(uuid.uuid4()),
        requester_id=str(uuid.uuid4()),
        coordinates=Coordinates(latitude=31.5204, longitude=74.3587),
        service_type="tire_repair",
        urgency="high",
        description="Flat tire on trailer axle",
        location="Ring Road, Lahore",
        budget=150,
    )


# ---------------------------------------------------------------------------
# Provider fixtures
# ---------------------------------------------------------------------------


def make_provider(**overrides) -> ProviderCandidate:
    """Build a ProviderCandidate with sensible defaults near Lahore."""
    fields = dict(
        id=str(uuid.uuid4()),
        name="Ali Tyres",
        push_token="ExponentPushToken[abc123]",
        email="ali@example.com",
        location="31.5204,74.3587",
        service_radius_km=50.0,
        services=["tire_repair", "towing"],
    )
    fields.update(overrides)
    return ProviderCandidate(**fields)


@pytest.fixture
def provider_factory():
    """Expose ``make_provider`` to tests as a fixture."""
    return make_provider
