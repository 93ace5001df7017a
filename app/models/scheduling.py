"""Scheduling models: services, weekly working hours, blocked dates and bookings.

Bookings are never physically deleted. Cancellation, completion and no-show
are status changes applied through guarded conditional updates.
"""

from datetime import date, datetime, time
from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TenantOwnedMixin, TimestampMixin


class ServiceLocation(str, Enum):
    """Where a service is delivered."""

    IN_SALON = "in_salon"
    AT_HOME = "at_home"
    BOTH = "both"


class Service(Base, TimestampMixin, TenantOwnedMixin):
    """A bookable service offered by one professional."""

    __tablename__ = "services"
    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="duration_positive"),
    )

    name: Mapped[str] = mapped_column(
        String(150),
        nullable=False,
    )
    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    # Duration in minutes; the booking end time is derived from it
    duration_minutes: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    price: Mapped[float | None] = mapped_column(
        Numeric(10, 2, asdecimal=False),
        nullable=True,
    )
    location_mode: Mapped[ServiceLocation] = mapped_column(
        String(20),
        default=ServiceLocation.IN_SALON,
        nullable=False,
    )
    # Inactive services are hidden from booking and availability
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Service {self.name} {self.duration_minutes}min>"


class DayOfWeek(int, Enum):
    """Day of week for the recurring schedule (matches date.weekday())."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6


class WorkingHours(Base, TimestampMixin, TenantOwnedMixin):
    """Weekly working window for one weekday.

    Days without a row, or with is_available=False, are closed.
    """

    __tablename__ = "working_hours"
    __table_args__ = (
        UniqueConstraint("professional_id", "day_of_week", name="uq_working_hours_professional_day"),
    )

    day_of_week: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    start_time: Mapped[time] = mapped_column(
        Time,
        nullable=False,
    )
    end_time: Mapped[time] = mapped_column(
        Time,
        nullable=False,
    )
    is_available: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<WorkingHours {self.day_of_week} {self.start_time}-{self.end_time}>"


class BlockedDate(Base, TimestampMixin, TenantOwnedMixin):
    """A single date the professional does not work (holiday, training...)."""

    __tablename__ = "blocked_dates"
    __table_args__ = (
        UniqueConstraint("professional_id", "blocked_date", name="uq_blocked_dates_professional_date"),
    )

    blocked_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )
    reason: Mapped[str | None] = mapped_column(
        String(200),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<BlockedDate {self.blocked_date}>"


class BookingStatus(str, Enum):
    """Status of a booking. Everything except CONFIRMED is terminal."""

    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


class BookingSource(str, Enum):
    """Channel the booking came through."""

    BOOKING_PAGE = "booking_page"
    CHATBOT = "chatbot"
    DASHBOARD = "dashboard"


class Booking(Base, TimestampMixin, TenantOwnedMixin):
    """A client's reservation of one service at one start time."""

    __tablename__ = "bookings"
    __table_args__ = (
        # Store-level guard against two confirmed bookings at the same start
        Index(
            "uq_bookings_confirmed_slot",
            "professional_id",
            "booking_date",
            "start_time",
            unique=True,
            postgresql_where=text("status = 'confirmed'"),
            sqlite_where=text("status = 'confirmed'"),
        ),
        UniqueConstraint(
            "professional_id", "idempotency_key", name="uq_bookings_professional_idempotency_key"
        ),
        Index("ix_bookings_professional_date", "professional_id", "booking_date"),
    )

    service_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("services.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    # Client identity; phone is stored in international form
    client_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    client_phone: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        index=True,
    )
    client_email: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    # Local wall-clock date and times in the professional's timezone
    booking_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )
    start_time: Mapped[time] = mapped_column(
        Time,
        nullable=False,
    )
    # Legacy chat-bot rows may have no end time (treated as one hour)
    end_time: Mapped[time | None] = mapped_column(
        Time,
        nullable=True,
    )
    status: Mapped[BookingStatus] = mapped_column(
        String(20),
        default=BookingStatus.CONFIRMED,
        nullable=False,
        index=True,
    )
    source: Mapped[BookingSource] = mapped_column(
        String(20),
        default=BookingSource.BOOKING_PAGE,
        nullable=False,
    )
    service_location: Mapped[ServiceLocation | None] = mapped_column(
        String(20),
        nullable=True,
    )
    customer_address: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    notes: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    # Client supplied key making create retries safe
    idempotency_key: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )
    # Cancellation tracking
    cancelled_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    cancelled_by: Mapped[str | None] = mapped_column(
        String(30),
        nullable=True,
    )
    cancellation_reason: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Booking {self.id[:8]}... {self.booking_date} {self.start_time} status={self.status}>"
