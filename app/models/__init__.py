"""Database models for the booking engine."""

from app.models.contact import Contact
from app.models.professional import Professional
from app.models.scheduling import (
    BlockedDate,
    Booking,
    BookingSource,
    BookingStatus,
    DayOfWeek,
    Service,
    ServiceLocation,
    WorkingHours,
)

__all__ = [
    # Tenant
    "Professional",
    # Catalog
    "Service",
    "ServiceLocation",
    "WorkingHours",
    "DayOfWeek",
    "BlockedDate",
    # Bookings
    "Booking",
    "BookingStatus",
    "BookingSource",
    # Contacts
    "Contact",
]
