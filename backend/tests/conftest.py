"""
Pytest fixtures for test database, client, and authentication.

Each test gets a fresh in-memory SQLite database. The app's session and
payment gateway dependencies are overridden so no Postgres, Redis or Stripe
is needed.
"""

import os

os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("PAYMENT_GATEWAY", "mock")

from datetime import datetime, timezone, timedelta
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from eventzen.main import app
from eventzen.db.base import Base
from eventzen.db.session import get_db
from eventzen.core.security import create_access_token
from eventzen.models.event import Event
from eventzen.models.user import User
from eventzen.models.venue import Venue
from eventzen.services.gateway_factory import get_payment_gateway
from eventzen.services.interfaces.payment_gateway import PaymentGateway, PaymentIntentResult

TEST_DATABASE_URL = "sqlite+aiosqlite://"


class RecordingGateway(PaymentGateway):
    """Gateway stand-in that records every intent request."""

    def __init__(self):
        self.calls: list[dict] = []
        self.error: Exception | None = None

    async def create_payment_intent(self, amount_minor_units, currency, metadata):
        self.calls.append(
            {"amount": amount_minor_units, "currency": currency, "metadata": metadata}
        )
        if self.error is not None:
            raise self.error
        intent_id = f"pi_test_{len(self.calls)}"
        return PaymentIntentResult(
            id=intent_id,
            client_secret=f"{intent_id}_secret",
            amount=amount_minor_units,
            currency=currency,
            status="requires_payment_method",
        )


def make_headers(external_id: str, role: str = "user", **claims) -> dict:
    token = create_access_token(data={"sub": external_id, "role": role, **claims})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables on a private in-memory database and yield a session."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def gateway() -> RecordingGateway:
    return RecordingGateway()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, gateway: RecordingGateway) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB and gateway dependencies."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _add(db_session: AsyncSession, obj):
    db_session.add(obj)
    await db_session.commit()
    await db_session.refresh(obj)
    return obj


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    return await _add(db_session, User(external_id="uid-test", email="test@example.com", username="testuser"))


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await _add(db_session, User(external_id="uid-other", email="other@example.com", username="otheruser"))


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await _add(db_session, User(external_id="uid-admin", email="admin@example.com", username="admin", role="admin"))


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    return make_headers(test_user.external_id)


@pytest.fixture
def other_headers(other_user: User) -> dict:
    return make_headers(other_user.external_id)


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return make_headers(admin_user.external_id, role="admin")


@pytest_asyncio.fixture
async def test_venue(db_session: AsyncSession) -> Venue:
    """A 200-person venue at 200.00 per hour."""
    return await _add(
        db_session,
        Venue(
            name="Grand Hall",
            address="1 Main Street",
            capacity=200,
            amenities=["stage", "parking"],
            price=Decimal("200.00"),
        ),
    )


@pytest_asyncio.fixture
async def test_event(db_session: AsyncSession, test_user: User, test_venue: Venue) -> Event:
    """An event 30 days out with 100 tickets at 150.00."""
    return await _add(
        db_session,
        Event(
            name="Test Concert",
            description="A test event",
            date=datetime.now(timezone.utc) + timedelta(days=30),
            venue_id=test_venue.id,
            capacity=100,
            available_tickets=100,
            price=Decimal("150.00"),
            category="music",
            created_by=test_user.id,
        ),
    )


@pytest_asyncio.fixture
async def sold_out_event(db_session: AsyncSession, test_user: User, test_venue: Venue) -> Event:
    return await _add(
        db_session,
        Event(
            name="Sold Out Show",
            date=datetime.now(timezone.utc) + timedelta(days=30),
            venue_id=test_venue.id,
            capacity=50,
            available_tickets=0,
            price=Decimal("80.00"),
            category="music",
            created_by=test_user.id,
        ),
    )


@pytest_asyncio.fixture
async def past_event(db_session: AsyncSession, test_user: User, test_venue: Venue) -> Event:
    return await _add(
        db_session,
        Event(
            name="Last Week's Show",
            date=datetime.now(timezone.utc) - timedelta(days=7),
            venue_id=test_venue.id,
            capacity=10,
            available_tickets=10,
            price=Decimal("20.00"),
            category="music",
            created_by=test_user.id,
        ),
    )
