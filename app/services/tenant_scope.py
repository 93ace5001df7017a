"""Tenant-scoped data access.

Every read or write touching services, working hours, blocked dates,
bookings or contacts goes through a TenantScope bound to one professional.
The scope adds the professional_id filter to every query it builds and
puts it in the predicate of every UPDATE, so a row owned by another
professional is indistinguishable from a row that does not exist.

The professional id must come from a trusted context (the bearer token in
the HTTP layer, an explicit argument in the service layer), never from a
request body.

Persistence calls are bounded by settings.persistence_timeout_seconds. A
timeout or a lost connection rolls the session back and raises
TransientError; integrity violations are re-raised untouched so callers can
interpret them.
"""

import asyncio
import logging
from datetime import date
from typing import Any, Awaitable, Sequence, TypeVar
from uuid import UUID

from sqlalchemy import Select, select, update
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import NotFoundError, TransientError
from app.models.professional import Professional
from app.models.scheduling import BlockedDate, Booking, BookingStatus, Service, WorkingHours
from app.utils.phone import format_phone_international

logger = logging.getLogger(__name__)

T = TypeVar("T")


def canonical_id(value: Any) -> str | None:
    """Canonical lowercase hyphenated form of a UUID, or None if malformed.

    Accepts any spelling UUID() parses (uppercase, braces, urn:uuid:,
    dashless hex) so the same row is found however the caller wrote its id.
    """
    if not value:
        return None
    try:
        return str(UUID(str(value)))
    except (ValueError, TypeError):
        return None


async def bounded(session: AsyncSession, operation: Awaitable[T]) -> T:
    """Run one persistence call under the configured timeout.

    Args:
        session: Session the call runs on (rolled back on failure)
        operation: Awaitable issuing the call

    Returns:
        The awaitable's result

    Raises:
        TransientError: On timeout or connection failure
    """
    try:
        return await asyncio.wait_for(operation, timeout=settings.persistence_timeout_seconds)
    except (asyncio.TimeoutError, OperationalError, InterfaceError) as exc:
        logger.warning(f"Persistence call failed, rolling back: {exc!r}")
        await session.rollback()
        raise TransientError("Booking store unavailable, please retry") from exc


class TenantScope:
    """Data access bound to a single professional."""

    def __init__(self, session: AsyncSession, professional: Professional):
        self.session = session
        self.professional = professional
        self.professional_id = professional.id
        # Copied so it stays readable after a rollback expires the instance
        self.timezone = professional.timezone or settings.business_timezone
        self.business_name = professional.business_name

    @classmethod
    async def resolve(cls, session: AsyncSession, professional_id: str | None) -> "TenantScope":
        """Build a scope for an active professional.

        Raises:
            NotFoundError: Unknown, malformed or inactive professional id
        """
        professional_key = canonical_id(professional_id)
        if professional_key is None:
            raise NotFoundError("Professional not found")

        result = await bounded(
            session,
            session.execute(
                select(Professional).where(
                    Professional.id == professional_key,
                    Professional.is_active == True,
                )
            ),
        )
        professional = result.scalar_one_or_none()
        if professional is None:
            raise NotFoundError("Professional not found")

        return cls(session, professional)

    def select(self, model: type[T]) -> Select:
        """SELECT over a tenant-owned model, filtered to this professional."""
        return select(model).where(model.professional_id == self.professional_id)

    async def execute(self, statement: Any) -> Any:
        """Execute a statement under the persistence timeout."""
        return await bounded(self.session, self.session.execute(statement))

    async def commit(self) -> None:
        await bounded(self.session, self.session.commit())

    async def rollback(self) -> None:
        await self.session.rollback()

    async def first(self, statement: Select) -> Any:
        result = await self.execute(statement)
        return result.scalars().first()

    async def all(self, statement: Select) -> Sequence[Any]:
        result = await self.execute(statement)
        return result.scalars().all()

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    async def get_service(self, service_id: str | None, active_only: bool = True) -> Service:
        """Resolve a service id under this professional.

        A service owned by another professional, an inactive service (when
        active_only) and a nonexistent id all raise the same NotFoundError.
        """
        service_key = canonical_id(service_id)
        if service_key is None:
            raise NotFoundError("Service not found")

        query = self.select(Service).where(Service.id == service_key)
        if active_only:
            query = query.where(Service.is_active == True)

        service = await self.first(query)
        if service is None:
            raise NotFoundError("Service not found")
        return service

    async def working_hours_for(self, day_of_week: int) -> WorkingHours | None:
        """Working window for a weekday, or None if the day is closed."""
        return await self.first(
            self.select(WorkingHours).where(
                WorkingHours.day_of_week == day_of_week,
                WorkingHours.is_available == True,
            )
        )

    async def is_blocked(self, booking_date: date) -> bool:
        blocked = await self.first(
            self.select(BlockedDate).where(BlockedDate.blocked_date == booking_date)
        )
        return blocked is not None

    # ------------------------------------------------------------------
    # Bookings
    # ------------------------------------------------------------------

    async def get_booking(self, booking_id: str | None) -> Booking:
        """Get a booking by id. Another professional's booking is not found."""
        booking_key = canonical_id(booking_id)
        if booking_key is None:
            raise NotFoundError("Booking not found")

        booking = await self.first(
            self.select(Booking)
            .where(Booking.id == booking_key)
            .execution_options(populate_existing=True)
        )
        if booking is None:
            raise NotFoundError("Booking not found")
        return booking

    async def confirmed_bookings(self, booking_date: date) -> Sequence[Booking]:
        """Confirmed bookings for one day, ordered by start time."""
        return await self.all(
            self.select(Booking)
            .where(
                Booking.booking_date == booking_date,
                Booking.status == BookingStatus.CONFIRMED,
            )
            .order_by(Booking.start_time)
        )

    async def booking_by_idempotency_key(self, key: str) -> Booking | None:
        return await self.first(
            self.select(Booking).where(Booking.idempotency_key == key)
        )

    async def bookings_for_phone(
        self,
        phone: str,
        statuses: Sequence[BookingStatus] | None = (BookingStatus.CONFIRMED,),
        from_date: date | None = None,
    ) -> Sequence[Booking]:
        """Bookings of one client under this professional.

        Filters on both the professional and the normalized phone, so a
        client who books with several professionals only sees this one's
        rows.
        """
        normalized = format_phone_international(phone)
        if not normalized:
            return []

        query = self.select(Booking).where(Booking.client_phone == normalized)
        if statuses:
            query = query.where(Booking.status.in_(list(statuses)))
        if from_date is not None:
            query = query.where(Booking.booking_date >= from_date)

        return await self.all(query.order_by(Booking.booking_date, Booking.start_time))

    async def update_booking(self, booking_id: str, values: dict[str, Any], *conditions: Any) -> int:
        """Conditionally update one booking of this professional.

        The UPDATE predicate always carries the professional id and the
        booking id, plus any extra conditions (e.g. status == confirmed).

        Returns:
            Number of rows affected (0 for another professional's booking)
        """
        booking_key = canonical_id(booking_id)
        if booking_key is None:
            return 0

        statement = (
            update(Booking)
            .where(
                Booking.professional_id == self.professional_id,
                Booking.id == booking_key,
                *conditions,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.execute(statement)
        return result.rowcount

    async def update_owned(self, model: type, row_id: str, values: dict[str, Any]) -> int:
        """Update a tenant-owned catalog row by id under this professional."""
        row_key = canonical_id(row_id)
        if row_key is None:
            return 0

        statement = (
            update(model)
            .where(model.professional_id == self.professional_id, model.id == row_key)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.execute(statement)
        return result.rowcount
