"""Pydantic schemas for request/response validation."""

from app.schemas.booking import (
    AvailableSlotsRead,
    BookingCancel,
    BookingCreate,
    BookingRead,
    ClientBookingCancel,
    SlotSuggestionRead,
)

__all__ = [
    "AvailableSlotsRead",
    "SlotSuggestionRead",
    "BookingCreate",
    "BookingRead",
    "BookingCancel",
    "ClientBookingCancel",
]
