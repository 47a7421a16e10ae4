"""
E2E test fixtures for the RigSnap backend.

Provides:
- An in-process FastAPI test app with all routes registered
- httpx AsyncClient wired via ASGI transport (no network needed)
- An async SQLite database session (in-memory) for isolation
- Pre-populated seed data: one trucker, a stored request, and providers
  spread around Lahore (plus one in Nashville)

The Expo and email gateways are mocked at the integration module so the
full route -> service -> DB flow is exercised.
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import AsyncGenerator
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from rigsnap.integrations.expo.pushService import SendResult
from rigsnap.integrations.mailer.emailService import EmailResult
from rigsnap.models.base import Base

# ---------------------------------------------------------------------------
# Test IDs (stable across tests so cross-references work)
# ---------------------------------------------------------------------------

TRUCKER_USER_ID = uuid.UUID("aaaaaaaa-aaaa-aaaa-aaaa-aaaaaaaaaaaa")

# Push + email, "lat,lng" location ~1.3 km from the request, offers tire_repair
NEAR_PROVIDER_ID = uuid.UUID("bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb")
# Push + email, place-name location, no services listed, no radius set
SHOP_PROVIDER_ID = uuid.UUID("cccccccc-cccc-cccc-cccc-cccccccccccc")
# Push + email, Nashville
FAR_PROVIDER_ID = uuid.UUID("dddddddd-dddd-dddd-dddd-dddddddddddd")
# Email only, JSON location, "mobile_tire_repair"
EMAIL_ONLY_PROVIDER_ID = uuid.UUID("eeeeeeee-eeee-eeee-eeee-eeeeeeeeeeee")
# Push + email, nearby but towing only
TOWING_PROVIDER_ID = uuid.UUID("ffffffff-ffff-ffff-ffff-ffffffffffff")
# Push + email, no location on file
NO_LOCATION_PROVIDER_ID = uuid.UUID("12121212-1212-1212-1212-121212121212")

REQUEST_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")

NEAR_TOKEN = "ExponentPushToken[near-provider]"
SHOP_TOKEN = "ExponentPushToken[auto-shop]"

LAHORE_COORDINATES = {"latitude": 31.5204, "longitude": 74.3587}


# ---------------------------------------------------------------------------
# Async engine + session (in-memory SQLite)
# ---------------------------------------------------------------------------

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def _test_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DB_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # SQLite does not enforce foreign keys by default
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_fk(dbapi_conn, _):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(_test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        bind=_test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_factory() as session:
        yield session
        await session.rollback()


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------

async def _seed_data(db: AsyncSession) -> None:
    """Insert minimum seed data for E2E tests."""
    from rigsnap.models.request import RequestStatus, ServiceRequest, ServiceType, Urgency
    from rigsnap.models.user import User, UserRole

    trucker = User(
        id=TRUCKER_USER_ID,
        email="usman@trucking.example.com",
        name="Usman Khan",
        role=UserRole.TRUCKER,
        phone="+923001234567",
        location="Lahore",
    )
    near = User(
        id=NEAR_PROVIDER_ID,
        email="ali@tyres.example.com",
        name="Ali Tyres",
        role=UserRole.PROVIDER,
        location="31.5300,74.3500",
        services=["tire_repair", "towing"],
        service_radius=50,
        push_token=NEAR_TOKEN,
    )
    shop = User(
        id=SHOP_PROVIDER_ID,
        email="shop@autoshop.example.com",
        name="Lahore Auto Shop",
        role=UserRole.PROVIDER,
        location="Lahore Auto Shop",
        services=[],
        service_radius=None,
        push_token=SHOP_TOKEN,
    )
    far = User(
        id=FAR_PROVIDER_ID,
        email="music-city@rescue.example.com",
        name="Music City Rescue",
        role=UserRole.PROVIDER,
        location="Nashville, TN",
        services=["tire_repair"],
        service_radius=100,
        push_token="ExponentPushToken[nashville]",
    )
    email_only = User(
        id=EMAIL_ONLY_PROVIDER_ID,
        email="mobile@tyres.example.com",
        name="Mobile Tyres",
        role=UserRole.PROVIDER,
        location='{"latitude": 31.52, "longitude": 74.36}',
        services=["mobile_tire_repair"],
        service_radius=25,
        push_token=None,
    )
    towing = User(
        id=TOWING_PROVIDER_ID,
        email="hook@towing.example.com",
        name="Hook Towing",
        role=UserRole.PROVIDER,
        location="31.5250,74.3550",
        services=["towing"],
        service_radius=50,
        push_token="ExponentPushToken[towing]",
    )
    no_location = User(
        id=NO_LOCATION_PROVIDER_ID,
        email="nowhere@example.com",
        name="Nowhere Mechanics",
        role=UserRole.PROVIDER,
        location="",
        services=["tire_repair"],
        service_radius=50,
        push_token="ExponentPushToken[nowhere]",
    )
    db.add_all([trucker, near, shop, far, email_only, towing, no_location])
    await db.flush()

    request = ServiceRequest(
        id=REQUEST_ID,
        trucker_id=TRUCKER_USER_ID,
        location="Ring Road, Lahore",
        coordinates=LAHORE_COORDINATES,
        service_type=ServiceType.TIRE_REPAIR,
        status=RequestStatus.PENDING,
        urgency=Urgency.HIGH,
        description="Flat tire on trailer axle",
        estimated_cost=Decimal("150.00"),
    )
    db.add(request)
    await db.flush()


@pytest_asyncio.fixture
async def seeded_db(db_session: AsyncSession) -> AsyncSession:
    """A database session with seed data already inserted."""
    await _seed_data(db_session)
    return db_session


# ---------------------------------------------------------------------------
# FastAPI test application
# ---------------------------------------------------------------------------

def _create_test_app(db_session_override: AsyncSession):
    """Build a FastAPI app with all routes registered and the DB dependency
    overridden to use the test session."""
    from fastapi import FastAPI

    from rigsnap.api.deps import get_db
    from rigsnap.api.routes.notifications import router as notifications_router
    from rigsnap.api.routes.providers import router as providers_router
    from rigsnap.api.routes.users import router as users_router
    from rigsnap.api.routes.webhooks import router as webhooks_router

    app = FastAPI(title="RigSnap Test")

    async def _override_get_db():
        yield db_session_override

    app.dependency_overrides[get_db] = _override_get_db

    app.include_router(webhooks_router, prefix="/api/v1")
    app.include_router(users_router, prefix="/api/v1")
    app.include_router(providers_router, prefix="/api/v1")
    app.include_router(notifications_router, prefix="/api/v1")

    return app


@pytest_asyncio.fixture
async def client(seeded_db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """httpx AsyncClient connected to the test app via ASGI transport."""
    app = _create_test_app(seeded_db)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Gateway mocks
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_push():
    """Expo gateway accepting every message."""
    with patch(
        "rigsnap.integrations.expo.pushService.send_notification",
        new_callable=AsyncMock,
        return_value=SendResult(success=True, ticket_id="ticket-ok"),
    ) as mock:
        yield mock


@pytest.fixture
def mock_email():
    """Email API accepting every message."""
    with patch(
        "rigsnap.integrations.mailer.emailService.send_email",
        new_callable=AsyncMock,
        return_value=EmailResult(success=True, response={"id": "msg-ok"}),
    ) as mock:
        yield mock


@pytest.fixture
def webhook_payload():
    """Build a database webhook INSERT payload for the seeded request."""

    def _build(**record_overrides) -> dict:
        record = {
            "id": str(REQUEST_ID),
            "trucker_id": str(TRUCKER_USER_ID),
            "location": "Ring Road, Lahore",
            "coordinates": LAHORE_COORDINATES,
            "service_type": "tire_repair",
            "status": "pending",
            "urgency": "high",
            "description": "Flat tire on trailer axle",
            "estimated_cost": 150.0,
        }
        record.update(record_overrides)
        return {
            "type": "INSERT",
            "table": "requests",
            "schema": "public",
            "record": record,
            "old_record": None,
        }

    return _build
