"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Callable
from datetime import date, datetime, time, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import StaticPool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.api.deps import get_scheduling_service
from app.core.security import create_access_token
from app.db.base import Base
from app.db.session import get_db
from app.main import app
from app.models.professional import Professional
from app.models.scheduling import (
    Booking,
    BookingSource,
    BookingStatus,
    Service,
    ServiceLocation,
    WorkingHours,
)
from app.services.notifications import LoggingNotificationDispatcher
from app.services.scheduling import SchedulingService
from app.services.tenant_scope import TenantScope


# Use SQLite for testing (simpler than spinning up postgres)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Monday 2 June 2025, 09:00 in Dublin (IST, UTC+1)
NOW = datetime(2025, 6, 2, 8, 0, tzinfo=timezone.utc)
TODAY = date(2025, 6, 2)
TOMORROW = date(2025, 6, 3)

SHARED_PHONE = "+353851234567"


def fixed_clock() -> datetime:
    return NOW


@pytest.fixture(scope="function")
async def async_engine():
    """Create async test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
async def async_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create async database session for tests."""
    async_session_maker = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with async_session_maker() as session:
        yield session


async def _create_professional(session: AsyncSession, slug: str, name: str) -> Professional:
    professional = Professional(
        business_name=name,
        slug=slug,
        timezone="Europe/Dublin",
        is_active=True,
    )
    session.add(professional)
    await session.flush()

    # Open every day 09:00-18:00
    for day in range(7):
        session.add(
            WorkingHours(
                professional_id=professional.id,
                day_of_week=day,
                start_time=time(9, 0),
                end_time=time(18, 0),
                is_available=True,
            )
        )

    await session.commit()
    return professional


async def _create_service(
    session: AsyncSession,
    professional: Professional,
    name: str,
    duration_minutes: int = 60,
    location_mode: ServiceLocation = ServiceLocation.IN_SALON,
) -> Service:
    service = Service(
        professional_id=professional.id,
        name=name,
        duration_minutes=duration_minutes,
        price=30.0,
        location_mode=location_mode,
        is_active=True,
    )
    session.add(service)
    await session.commit()
    return service


@pytest.fixture
async def professional_a(async_session: AsyncSession) -> Professional:
    """Salon A, open every day 09:00-18:00."""
    return await _create_professional(async_session, "salon-a", "Salon A")


@pytest.fixture
async def professional_b(async_session: AsyncSession) -> Professional:
    """Salon B, open every day 09:00-18:00."""
    return await _create_professional(async_session, "salon-b", "Salon B")


@pytest.fixture
async def service_a(async_session: AsyncSession, professional_a: Professional) -> Service:
    """One hour haircut at salon A."""
    return await _create_service(async_session, professional_a, "Haircut")


@pytest.fixture
async def long_service_a(async_session: AsyncSession, professional_a: Professional) -> Service:
    """Two hour colouring at salon A."""
    return await _create_service(async_session, professional_a, "Colouring", duration_minutes=120)


@pytest.fixture
async def home_service_a(async_session: AsyncSession, professional_a: Professional) -> Service:
    """Service offered in the salon or at the client's home."""
    return await _create_service(
        async_session,
        professional_a,
        "Bridal makeup",
        location_mode=ServiceLocation.BOTH,
    )


@pytest.fixture
async def service_b(async_session: AsyncSession, professional_b: Professional) -> Service:
    """One hour haircut at salon B."""
    return await _create_service(async_session, professional_b, "Haircut")


@pytest.fixture
def make_booking(async_session: AsyncSession) -> Callable:
    """Insert a booking row directly, bypassing the lifecycle checks."""

    async def _make(
        professional: Professional,
        service: Service,
        booking_date: date,
        start: time,
        end: time | None,
        phone: str = SHARED_PHONE,
        status: BookingStatus = BookingStatus.CONFIRMED,
        name: str = "Maria Silva",
    ) -> Booking:
        booking = Booking(
            professional_id=professional.id,
            service_id=service.id,
            client_name=name,
            client_phone=phone,
            booking_date=booking_date,
            start_time=start,
            end_time=end,
            status=status,
            source=BookingSource.CHATBOT,
        )
        async_session.add(booking)
        await async_session.commit()
        return booking

    return _make


@pytest.fixture
def dispatcher() -> LoggingNotificationDispatcher:
    """Dispatcher that records every queued notification."""
    return LoggingNotificationDispatcher()


@pytest.fixture
def scheduling(
    async_session: AsyncSession, dispatcher: LoggingNotificationDispatcher
) -> SchedulingService:
    """Scheduling service with a frozen clock."""
    return SchedulingService(async_session, dispatcher=dispatcher, clock=fixed_clock)


@pytest.fixture
async def api_client(
    async_session: AsyncSession, scheduling: SchedulingService
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app with test session and frozen clock."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield async_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_scheduling_service] = lambda: scheduling

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


def create_test_token(professional: Professional) -> str:
    """Create a test JWT bound to a professional."""
    return create_access_token(
        subject=f"owner-{professional.slug}",
        additional_claims={"professional_id": professional.id},
    )


@pytest.fixture
def auth_headers_a(professional_a: Professional) -> dict[str, str]:
    """Authorization headers acting for salon A."""
    return {"Authorization": f"Bearer {create_test_token(professional_a)}"}


@pytest.fixture
def auth_headers_b(professional_b: Professional) -> dict[str, str]:
    """Authorization headers acting for salon B."""
    return {"Authorization": f"Bearer {create_test_token(professional_b)}"}


@pytest.fixture
def stale_next_read(monkeypatch) -> Callable[[], None]:
    """Arm TenantScope.first() so its next call misses, like a read racing an insert."""
    original = TenantScope.first
    state = {"armed": False}

    async def first(self, statement):
        if state["armed"]:
            state["armed"] = False
            return None
        return await original(self, statement)

    monkeypatch.setattr(TenantScope, "first", first)

    def arm() -> None:
        state["armed"] = True

    return arm
