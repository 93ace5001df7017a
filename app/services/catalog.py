"""Catalog management: services, weekly working hours and blocked dates."""

import logging
from datetime import date, time
from typing import Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.scheduling import BlockedDate, DayOfWeek, Service, ServiceLocation, WorkingHours
from app.services.tenant_scope import TenantScope

logger = logging.getLogger(__name__)


class CatalogService:
    """Tenant-scoped writes to a professional's catalog and schedule."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_service(
        self,
        professional_id: str,
        name: str,
        duration_minutes: int,
        price: float | None = None,
        location_mode: ServiceLocation | str = ServiceLocation.IN_SALON,
        description: str | None = None,
    ) -> Service:
        """Create a service for a professional."""
        if not name or not name.strip():
            raise ValidationError("name is required", fields=["name"])
        if duration_minutes is None or duration_minutes <= 0:
            raise ValidationError("duration_minutes must be positive", fields=["duration_minutes"])
        try:
            mode = ServiceLocation(location_mode)
        except ValueError:
            raise ValidationError(
                f"Unknown location mode '{location_mode}'",
                fields=["location_mode"],
            )

        scope = await TenantScope.resolve(self.session, professional_id)
        service = Service(
            professional_id=scope.professional_id,
            name=name.strip(),
            duration_minutes=duration_minutes,
            price=price,
            location_mode=mode,
            description=description,
            is_active=True,
        )
        self.session.add(service)
        await scope.commit()

        logger.info(
            f"Created service {service.name} ({duration_minutes}min)",
            extra={"professional_id": scope.professional_id},
        )
        return service

    async def list_services(self, professional_id: str, active_only: bool = True) -> Sequence[Service]:
        scope = await TenantScope.resolve(self.session, professional_id)
        query = scope.select(Service)
        if active_only:
            query = query.where(Service.is_active == True)
        return await scope.all(query.order_by(Service.name))

    async def deactivate_service(self, professional_id: str, service_id: str) -> None:
        """Hide a service from booking. Existing bookings are left alone.

        Raises:
            NotFoundError: Unknown service, or one owned by another professional
        """
        scope = await TenantScope.resolve(self.session, professional_id)
        rows = await scope.update_owned(Service, service_id, {"is_active": False})
        if rows == 0:
            await scope.rollback()
            raise NotFoundError("Service not found")
        await scope.commit()

    async def set_working_hours(
        self,
        professional_id: str,
        day_of_week: DayOfWeek | int,
        start_time: time,
        end_time: time,
        is_available: bool = True,
    ) -> WorkingHours:
        """Create or replace the working window for one weekday.

        A concurrent request creating the same weekday first turns the
        insert into an update of its row.
        """
        try:
            day = DayOfWeek(day_of_week)
        except ValueError:
            raise ValidationError("day_of_week must be between 0 and 6", fields=["day_of_week"])
        if start_time >= end_time:
            raise ValidationError("start_time must be before end_time", fields=["start_time", "end_time"])

        scope = await TenantScope.resolve(self.session, professional_id)
        try:
            return await self._write_working_hours(scope, day, start_time, end_time, is_available)
        except IntegrityError:
            await scope.rollback()
            logger.info(
                f"Working hours for {day.name} created concurrently, updating instead",
                extra={"professional_id": scope.professional_id},
            )

        try:
            return await self._write_working_hours(scope, day, start_time, end_time, is_available)
        except IntegrityError as exc:
            await scope.rollback()
            raise ConflictError(
                "Working hours were changed by another request",
                code="concurrent_update",
            ) from exc

    async def _write_working_hours(
        self,
        scope: TenantScope,
        day: DayOfWeek,
        start_time: time,
        end_time: time,
        is_available: bool,
    ) -> WorkingHours:
        hours = await scope.first(
            scope.select(WorkingHours).where(WorkingHours.day_of_week == int(day))
        )
        if hours is None:
            hours = WorkingHours(professional_id=scope.professional_id, day_of_week=int(day))
            self.session.add(hours)

        hours.start_time = start_time
        hours.end_time = end_time
        hours.is_available = is_available
        await scope.commit()
        return hours

    async def block_date(
        self,
        professional_id: str,
        blocked_date: date,
        reason: str | None = None,
    ) -> BlockedDate:
        """Mark a date as not worked. Blocking an already blocked date is a no-op."""
        scope = await TenantScope.resolve(self.session, professional_id)
        query = scope.select(BlockedDate).where(BlockedDate.blocked_date == blocked_date)
        existing = await scope.first(query)
        if existing is not None:
            return existing

        blocked = BlockedDate(
            professional_id=scope.professional_id,
            blocked_date=blocked_date,
            reason=reason,
        )
        self.session.add(blocked)
        try:
            await scope.commit()
        except IntegrityError as exc:
            await scope.rollback()
            existing = await scope.first(query)
            if existing is None:
                raise ConflictError(
                    "Blocked dates were changed by another request",
                    code="concurrent_update",
                ) from exc
            return existing
        return blocked
