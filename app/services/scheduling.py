"""Booking lifecycle: availability queries, creation and status changes.

Every operation takes the professional id from a trusted caller and works
through a TenantScope, so nothing here can read or change another
professional's rows.

Creation re-checks conflicts against current data on every call. Two
requests racing for the same slot may both pass that check; the partial
unique index on confirmed bookings then rejects the loser, which surfaces
as the same ConflictError as a detected conflict.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Callable, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.booking.availability import (
    has_conflict,
    list_free_slots,
    same_day_cutoff,
    suggest_slot,
    to_minutes,
)
from app.booking.policy import (
    can_transition,
    is_terminal,
    resolve_service_location,
    validate_booking_request,
    validate_service_location,
)
from app.booking.temporal import (
    is_canonical_time,
    minutes_to_time,
    normalize_date,
    normalize_time,
    to_time,
)
from app.core.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    TransientError,
    ValidationError,
)
from app.core.logging import audit_logger
from app.models.scheduling import Booking, BookingSource, BookingStatus, Service, WorkingHours
from app.services.notifications import (
    LoggingNotificationDispatcher,
    NotificationDispatcher,
    NotificationTemplate,
    booking_notifications,
)
from app.services.tenant_scope import TenantScope, canonical_id
from app.utils.phone import format_phone_international
from app.utils.time import local_today, utc_now

logger = logging.getLogger(__name__)

DEFAULT_LOOK_AHEAD_DAYS = 7


@dataclass
class ClientInfo:
    """Identity of the client making a booking."""

    name: str | None
    phone: str | None
    email: str | None = None


@dataclass
class SlotSuggestion:
    """A free slot on a specific day."""

    date: date
    start_time: str


@dataclass
class DayAvailability:
    """Free start times on one day."""

    date: date
    slots: list[str]


class SchedulingService:
    """Service for booking availability and lifecycle."""

    def __init__(
        self,
        session: AsyncSession,
        dispatcher: NotificationDispatcher | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.session = session
        self.dispatcher = dispatcher or LoggingNotificationDispatcher()
        self.clock = clock or utc_now

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _today(self, scope: TenantScope) -> date:
        return local_today(scope.timezone, self.clock())

    def _parse_day(self, scope: TenantScope, value: date | str) -> date:
        """Normalize a loose date into a date in the professional's calendar."""
        if isinstance(value, date):
            return value

        normalized = normalize_date(value, today=self._today(scope))
        try:
            return date.fromisoformat(normalized)
        except ValueError:
            raise ValidationError(
                f"Invalid date '{value}'",
                code="invalid_date",
                fields=["booking_date"],
            )

    @staticmethod
    def _parse_time(value: str, field_name: str) -> str:
        normalized = normalize_time(value)
        if not is_canonical_time(normalized):
            raise ValidationError(
                f"Invalid time '{value}'",
                code="invalid_time",
                fields=[field_name],
            )
        return normalized

    async def resolve_date(self, professional_id: str | None, value: date | str) -> date:
        """Normalize a loose date against the professional's local today."""
        scope = await TenantScope.resolve(self.session, professional_id)
        return self._parse_day(scope, value)

    async def _open_hours(self, scope: TenantScope, day: date) -> WorkingHours | None:
        """Working window for a day, or None if it is closed or blocked."""
        if await scope.is_blocked(day):
            return None
        return await scope.working_hours_for(day.weekday())

    async def _check_bookable(
        self,
        scope: TenantScope,
        day: date,
        start_minutes: int,
        duration_minutes: int,
    ) -> None:
        """Refuse closed days, starts outside working hours and too-soon starts."""
        if day < self._today(scope):
            raise ConflictError("Cannot book a date in the past", code="too_soon")

        hours = await self._open_hours(scope, day)
        if hours is None:
            raise ConflictError("The professional does not work on this day", code="day_unavailable")

        if start_minutes < to_minutes(hours.start_time) or (
            start_minutes + duration_minutes > to_minutes(hours.end_time)
        ):
            raise ConflictError(
                f"Outside working hours ({hours.start_time:%H:%M}-{hours.end_time:%H:%M})",
                code="outside_hours",
            )

        cutoff = same_day_cutoff(day, self.clock(), scope.timezone)
        if cutoff is not None and start_minutes < cutoff:
            raise ConflictError(
                f"Too soon, the earliest start today is {minutes_to_time(cutoff)}",
                code="too_soon",
            )

    async def _notify(
        self,
        scope: TenantScope,
        booking: Booking,
        service: Service | None,
        template: NotificationTemplate,
    ) -> None:
        """Enqueue notifications. Failures are logged, the booking stands."""
        for request in booking_notifications(booking, service, scope.business_name, template):
            try:
                await self.dispatcher.enqueue(request)
            except Exception:
                logger.exception(
                    f"Failed to enqueue {template.value} for booking {booking.id}",
                    extra={"professional_id": scope.professional_id, "booking_id": booking.id},
                )

    async def _notify_cancelled(self, scope: TenantScope, booking: Booking) -> None:
        """Enqueue cancellation notices, naming the service when it still exists."""
        try:
            service = await scope.get_service(booking.service_id, active_only=False)
        except (NotFoundError, TransientError):
            logger.warning(
                f"Service {booking.service_id} unavailable for cancellation notice",
                extra={"professional_id": scope.professional_id, "booking_id": booking.id},
            )
            service = None
        await self._notify(scope, booking, service, NotificationTemplate.BOOKING_CANCELLED)

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------

    async def get_available_slots(
        self,
        professional_id: str | None,
        service_id: str | None,
        booking_date: date | str | None,
    ) -> list[str]:
        """List free start times for a service on a day."""
        availability = await self.get_day_availability(professional_id, service_id, booking_date)
        return availability.slots

    async def get_day_availability(
        self,
        professional_id: str | None,
        service_id: str | None,
        booking_date: date | str | None,
    ) -> DayAvailability:
        """Free start times for a service on a day, with the resolved date.

        Returns an empty list for closed, blocked or past days. For today,
        starts before the same-day cutoff are left out.

        Raises:
            ValidationError: A required argument is missing
            NotFoundError: Unknown professional or service
        """
        missing = [
            name
            for name, value in (
                ("professional_id", professional_id),
                ("service_id", service_id),
                ("date", booking_date),
            )
            if not value
        ]
        if missing:
            raise ValidationError(
                f"Missing required parameters: {', '.join(missing)}",
                fields=missing,
            )

        scope = await TenantScope.resolve(self.session, professional_id)
        service = await scope.get_service(service_id)
        day = self._parse_day(scope, booking_date)

        if day < self._today(scope):
            return DayAvailability(date=day, slots=[])

        hours = await self._open_hours(scope, day)
        if hours is None:
            return DayAvailability(date=day, slots=[])

        existing = await scope.confirmed_bookings(day)
        slots = list_free_slots(
            existing,
            service.duration_minutes,
            hours.start_time,
            hours.end_time,
            not_before=same_day_cutoff(day, self.clock(), scope.timezone),
        )
        return DayAvailability(date=day, slots=slots)

    async def _suggest_for_day(
        self,
        scope: TenantScope,
        day: date,
        duration_minutes: int,
        after_time: str | None,
    ) -> str | None:
        if day < self._today(scope):
            return None

        hours = await self._open_hours(scope, day)
        if hours is None:
            return None

        existing = await scope.confirmed_bookings(day)
        return suggest_slot(
            day,
            existing,
            duration_minutes,
            hours.start_time,
            hours.end_time,
            after_time=after_time,
            now=self.clock(),
            tz_name=scope.timezone,
        )

    async def suggest_alternative(
        self,
        professional_id: str | None,
        booking_date: date | str,
        duration_minutes: int,
        after_time: str | None = None,
    ) -> str | None:
        """Suggest the first free slot on a day, never earlier than after_time.

        Returns:
            "HH:MM" or None when the day has no room
        """
        if not duration_minutes or duration_minutes <= 0:
            raise ValidationError(
                "duration_minutes must be positive",
                fields=["duration_minutes"],
            )
        after = self._parse_time(after_time, "after_time") if after_time else None

        scope = await TenantScope.resolve(self.session, professional_id)
        day = self._parse_day(scope, booking_date)
        return await self._suggest_for_day(scope, day, duration_minutes, after)

    async def suggest_next_opening(
        self,
        professional_id: str | None,
        duration_minutes: int,
        from_date: date | str | None = None,
        after_time: str | None = None,
        look_ahead_days: int = DEFAULT_LOOK_AHEAD_DAYS,
    ) -> SlotSuggestion | None:
        """Search forward day by day for the next free slot.

        after_time only restricts the first day searched.
        """
        if not duration_minutes or duration_minutes <= 0:
            raise ValidationError(
                "duration_minutes must be positive",
                fields=["duration_minutes"],
            )
        after = self._parse_time(after_time, "after_time") if after_time else None

        scope = await TenantScope.resolve(self.session, professional_id)
        start_day = self._parse_day(scope, from_date) if from_date else self._today(scope)

        for offset in range(look_ahead_days + 1):
            day = start_day + timedelta(days=offset)
            slot = await self._suggest_for_day(
                scope, day, duration_minutes, after if offset == 0 else None
            )
            if slot is not None:
                return SlotSuggestion(date=day, start_time=slot)

        return None

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create_booking(
        self,
        professional_id: str | None,
        service_id: str | None,
        booking_date: date | str | None,
        start_time: str | None,
        client: ClientInfo,
        *,
        source: BookingSource | str = BookingSource.BOOKING_PAGE,
        service_location: str | None = None,
        customer_address: str | None = None,
        notes: str | None = None,
        idempotency_key: str | None = None,
    ) -> Booking:
        """Create a confirmed booking.

        Flow: validate, resolve professional and service, normalize the
        requested slot, replay an idempotent retry, refuse closed or too
        soon slots, check conflicts against current confirmed bookings,
        persist, then enqueue notifications.

        Raises:
            ValidationError: Missing or malformed input
            NotFoundError: Unknown/inactive professional, or a service that
                is missing, inactive or owned by another professional
            ConflictError: Slot taken (pre-check or unique index), day
                closed, outside working hours or too soon
            TransientError: Store timed out or is unavailable
        """
        check = validate_booking_request(
            professional_id=professional_id,
            service_id=service_id,
            booking_date=booking_date if not isinstance(booking_date, date) else booking_date.isoformat(),
            start_time=start_time,
            client_name=client.name,
            client_phone=client.phone,
        )
        if not check.valid:
            raise ValidationError(
                f"Missing required fields: {', '.join(check.missing_fields)}",
                code="missing_fields",
                fields=check.missing_fields,
            )

        phone = format_phone_international(client.phone)
        if not phone:
            raise ValidationError("client_phone has no digits", fields=["client_phone"])
        try:
            booking_source = BookingSource(source)
        except ValueError:
            raise ValidationError(f"Unknown booking source '{source}'", fields=["source"])

        scope = await TenantScope.resolve(self.session, professional_id)
        service = await scope.get_service(service_id)

        day = self._parse_day(scope, booking_date)
        start = self._parse_time(start_time, "start_time")
        location_check = validate_service_location(
            service.location_mode, service_location, customer_address
        )
        if not location_check.valid:
            raise ValidationError(
                "; ".join(location_check.errors),
                code="invalid_location",
                fields=["service_location"],
            )

        if idempotency_key:
            previous = await scope.booking_by_idempotency_key(idempotency_key)
            if previous is not None:
                logger.info(
                    f"Replaying booking {previous.id} for idempotency key",
                    extra={"professional_id": scope.professional_id, "booking_id": previous.id},
                )
                return previous

        start_minutes = to_minutes(start)
        duration = service.duration_minutes
        await self._check_bookable(scope, day, start_minutes, duration)

        existing = await scope.confirmed_bookings(day)
        if has_conflict(start_minutes, duration, existing):
            raise ConflictError(f"{start} on {day.isoformat()} is not available", code="slot_unavailable")

        booking = Booking(
            professional_id=scope.professional_id,
            service_id=service.id,
            client_name=client.name.strip(),
            client_phone=phone,
            client_email=(client.email or "").strip() or None,
            booking_date=day,
            start_time=to_time(start),
            end_time=to_time(minutes_to_time(start_minutes + duration)),
            status=BookingStatus.CONFIRMED,
            source=booking_source,
            service_location=resolve_service_location(service.location_mode, service_location),
            customer_address=customer_address,
            notes=notes,
            idempotency_key=idempotency_key,
        )
        self.session.add(booking)

        try:
            await scope.commit()
        except IntegrityError as exc:
            await scope.rollback()
            if idempotency_key:
                winner = await scope.booking_by_idempotency_key(idempotency_key)
                if winner is not None:
                    return winner
            logger.info(
                f"Slot {day.isoformat()} {start} lost to a concurrent booking",
                extra={"professional_id": scope.professional_id},
            )
            raise ConflictError(
                f"{start} on {day.isoformat()} is not available",
                code="slot_unavailable",
            ) from exc

        audit_logger.log(
            action="booking_created",
            actor_type=booking_source.value,
            professional_id=scope.professional_id,
            booking_id=booking.id,
            metadata={"date": day.isoformat(), "start_time": start, "service_id": service.id},
        )

        await self._notify(scope, booking, service, NotificationTemplate.BOOKING_CONFIRMED)
        return booking

    # ------------------------------------------------------------------
    # Status changes
    # ------------------------------------------------------------------

    async def get_booking(self, professional_id: str | None, booking_id: str | None) -> Booking:
        scope = await TenantScope.resolve(self.session, professional_id)
        return await scope.get_booking(booking_id)

    async def _transition(
        self,
        scope: TenantScope,
        booking: Booking,
        target: BookingStatus,
        values: dict[str, Any],
        actor: str,
        *conditions: Any,
    ) -> Booking:
        """Apply a guarded status change to a booking already read under scope."""
        current = booking.status
        if not can_transition(current, target):
            if is_terminal(current):
                raise InvalidTransitionError(f"Booking is already {BookingStatus(current).value}")
            raise InvalidTransitionError(
                f"Booking is {BookingStatus(current).value} and cannot become {target.value}"
            )

        rows = await scope.update_booking(
            booking.id,
            {"status": target, **values},
            Booking.status == BookingStatus.CONFIRMED,
            *conditions,
        )
        if rows == 0:
            await scope.rollback()
            raise InvalidTransitionError("Booking was changed by another request")

        await scope.commit()
        updated = await scope.get_booking(booking.id)

        audit_logger.log(
            action=f"booking_{target.value}",
            actor_type=actor,
            professional_id=scope.professional_id,
            booking_id=updated.id,
            metadata={"from": BookingStatus(current).value},
        )
        return updated

    async def cancel_booking(
        self,
        professional_id: str | None,
        booking_id: str | None,
        reason: str | None = None,
        cancelled_by: str = "professional",
    ) -> Booking:
        """Cancel a confirmed booking and notify the client.

        Raises:
            NotFoundError: Unknown booking, or one owned by another professional
            InvalidTransitionError: Booking is already in a terminal state
        """
        scope = await TenantScope.resolve(self.session, professional_id)
        booking = await scope.get_booking(booking_id)

        updated = await self._transition(
            scope,
            booking,
            BookingStatus.CANCELLED,
            {
                "cancellation_reason": reason,
                "cancelled_by": cancelled_by,
                "cancelled_at": self.clock(),
            },
            cancelled_by,
        )
        await self._notify_cancelled(scope, updated)
        return updated

    async def complete_booking(self, professional_id: str | None, booking_id: str | None) -> Booking:
        """Mark a confirmed booking as completed."""
        scope = await TenantScope.resolve(self.session, professional_id)
        booking = await scope.get_booking(booking_id)
        return await self._transition(
            scope,
            booking,
            BookingStatus.COMPLETED,
            {"completed_at": self.clock()},
            "professional",
        )

    async def mark_no_show(self, professional_id: str | None, booking_id: str | None) -> Booking:
        """Mark a confirmed booking as a no-show."""
        scope = await TenantScope.resolve(self.session, professional_id)
        booking = await scope.get_booking(booking_id)
        return await self._transition(scope, booking, BookingStatus.NO_SHOW, {}, "professional")

    # ------------------------------------------------------------------
    # Chat-bot intents
    # ------------------------------------------------------------------

    async def list_active_bookings(
        self,
        professional_id: str | None,
        client_phone: str | None,
        from_date: date | None = None,
    ) -> Sequence[Booking]:
        """Confirmed bookings of a client with this professional, from today on."""
        if not client_phone or not format_phone_international(client_phone):
            raise ValidationError("client_phone is required", fields=["client_phone"])

        scope = await TenantScope.resolve(self.session, professional_id)
        return await scope.bookings_for_phone(
            client_phone,
            from_date=from_date or self._today(scope),
        )

    async def cancel_client_booking(
        self,
        professional_id: str | None,
        client_phone: str | None,
        booking_id: str | None = None,
        reason: str | None = None,
    ) -> Booking:
        """Cancel one of a client's upcoming bookings ("cancel my booking").

        Without a booking id the client must have exactly one upcoming
        booking. The UPDATE predicate carries the professional, the booking
        and the client's phone.

        Raises:
            ValidationError: No phone, or several bookings and no id given
            NotFoundError: No matching upcoming booking for this client
        """
        if not client_phone or not format_phone_international(client_phone):
            raise ValidationError("client_phone is required", fields=["client_phone"])

        phone = format_phone_international(client_phone)
        scope = await TenantScope.resolve(self.session, professional_id)
        active = await scope.bookings_for_phone(phone, from_date=self._today(scope))

        if booking_id:
            booking_key = canonical_id(booking_id)
            matches = [booking for booking in active if booking.id == booking_key]
            if not matches:
                raise NotFoundError("Booking not found")
            target = matches[0]
        elif not active:
            raise NotFoundError("No upcoming bookings for this client")
        elif len(active) > 1:
            raise ValidationError(
                "Client has several upcoming bookings, a booking id is required",
                code="ambiguous_booking",
                fields=["booking_id"],
            )
        else:
            target = active[0]

        updated = await self._transition(
            scope,
            target,
            BookingStatus.CANCELLED,
            {
                "cancellation_reason": reason,
                "cancelled_by": "client",
                "cancelled_at": self.clock(),
            },
            "client",
            Booking.client_phone == phone,
        )
        await self._notify_cancelled(scope, updated)
        return updated
