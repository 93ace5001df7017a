"""Pydantic schemas for availability and booking operations.

Request fields are optional at the schema level on purpose: missing values
are reported by the booking engine as a 400 listing every missing field,
the same way for HTTP and chat-bot callers.
"""

from datetime import date, datetime, time
from typing import Any

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.booking.temporal import format_time


def _clock(value: Any) -> Any:
    if isinstance(value, time):
        return format_time(value)
    return value


# =============================================================================
# Availability
# =============================================================================


class AvailableSlotsRead(BaseModel):
    """Free start times for a service on a day."""

    date: date
    service_id: str
    slots: list[str]


class SlotSuggestionRead(BaseModel):
    """Suggested alternative slot (start_time is None when the day is full)."""

    date: date
    start_time: str | None
    available: bool


# =============================================================================
# Bookings
# =============================================================================


class BookingCreate(BaseModel):
    """Schema for creating a booking.

    booking_date accepts YYYY-MM-DD, DD/MM/YYYY, DD-MM-YYYY and
    today/tomorrow tokens; start_time accepts HH:MM and 9h/9h30 forms.
    """

    service_id: str | None = None
    booking_date: str | None = None
    start_time: str | None = None
    client_name: str | None = Field(None, max_length=200)
    client_phone: str | None = Field(None, max_length=32)
    client_email: EmailStr | None = None
    service_location: str | None = None
    customer_address: str | None = Field(None, max_length=500)
    notes: str | None = Field(None, max_length=2000)
    source: str = Field(default="booking_page", description="booking_page, chatbot or dashboard")
    idempotency_key: str | None = Field(None, max_length=100)


class BookingRead(BaseModel):
    """Schema for reading a booking."""

    id: str
    professional_id: str
    service_id: str
    client_name: str
    client_phone: str
    client_email: str | None
    booking_date: date
    start_time: str
    end_time: str | None
    status: str
    source: str
    service_location: str | None
    customer_address: str | None
    notes: str | None
    cancellation_reason: str | None
    cancelled_by: str | None
    cancelled_at: datetime | None
    completed_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def format_clock(cls, value: Any) -> Any:
        return _clock(value)


class BookingCancel(BaseModel):
    """Schema for cancelling a booking."""

    reason: str | None = Field(None, max_length=1000)


class ClientBookingCancel(BaseModel):
    """Schema for a client cancelling their own booking by phone."""

    client_phone: str | None = None
    booking_id: str | None = None
    reason: str | None = Field(None, max_length=1000)
