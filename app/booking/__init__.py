"""Booking rules: input normalization, slot availability and lifecycle policy."""

from app.booking.availability import (
    BUFFER_MINUTES,
    BookedInterval,
    earliest_start_today,
    has_conflict,
    list_free_slots,
    suggest_slot,
)
from app.booking.policy import can_transition, validate_booking_request
from app.booking.temporal import normalize_date, normalize_time, time_to_minutes

__all__ = [
    "BUFFER_MINUTES",
    "BookedInterval",
    "has_conflict",
    "earliest_start_today",
    "suggest_slot",
    "list_free_slots",
    "can_transition",
    "validate_booking_request",
    "normalize_date",
    "normalize_time",
    "time_to_minutes",
]
