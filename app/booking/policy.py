"""Booking lifecycle policy.

Pure rules deciding which status changes are allowed and whether a booking
request carries everything needed to create it. Nothing here touches the
database.
"""

from dataclasses import dataclass, field
from typing import Optional

from app.models.scheduling import BookingStatus, ServiceLocation

# confirmed is the only non-terminal state; creation is the only way in
ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.CONFIRMED: frozenset(
        {BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW}
    ),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.NO_SHOW: frozenset(),
}

REQUIRED_BOOKING_FIELDS = (
    "professional_id",
    "service_id",
    "booking_date",
    "start_time",
    "client_name",
    "client_phone",
)


@dataclass
class BookingRequestCheck:
    """Result of validating a booking request.

    Attributes:
        valid: Whether the request may proceed
        missing_fields: Required fields that were empty or absent
        errors: Human-readable problems with supplied values
    """

    valid: bool
    missing_fields: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def is_terminal(status: str) -> bool:
    """Check whether a status has no outgoing transitions."""
    return not ALLOWED_TRANSITIONS.get(BookingStatus(status), frozenset())


def can_transition(current: str, target: str) -> bool:
    """Check whether a booking may move from one status to another.

    Examples:
        >>> can_transition("confirmed", "cancelled")
        True
        >>> can_transition("cancelled", "confirmed")
        False
        >>> can_transition("completed", "no_show")
        False
    """
    try:
        current_status = BookingStatus(current)
        target_status = BookingStatus(target)
    except ValueError:
        return False

    return target_status in ALLOWED_TRANSITIONS[current_status]


def validate_booking_request(**values: Optional[str]) -> BookingRequestCheck:
    """Check that every required booking field is present and non-blank.

    Args:
        **values: Field values keyed by name (see REQUIRED_BOOKING_FIELDS)

    Returns:
        BookingRequestCheck listing missing fields in declaration order
    """
    missing = []
    for name in REQUIRED_BOOKING_FIELDS:
        value = values.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)

    return BookingRequestCheck(
        valid=not missing,
        missing_fields=missing,
        errors=[f"{name} is required" for name in missing],
    )


def validate_service_location(
    location_mode: str,
    service_location: Optional[str],
    customer_address: Optional[str],
) -> BookingRequestCheck:
    """Validate the requested location against how the service is offered.

    A service offered both ways needs the client to pick one. Home visits
    need an address.

    Args:
        location_mode: The service's ServiceLocation value
        service_location: Location the client asked for (may be None)
        customer_address: Address for home visits

    Returns:
        BookingRequestCheck with errors when the combination is invalid
    """
    mode = ServiceLocation(location_mode)
    errors = []

    chosen = service_location
    if chosen is None and mode != ServiceLocation.BOTH:
        chosen = mode.value

    if chosen is None:
        errors.append("service_location is required for this service")
    elif chosen not in {ServiceLocation.IN_SALON.value, ServiceLocation.AT_HOME.value}:
        errors.append(f"Unknown service_location '{chosen}'")
    elif mode != ServiceLocation.BOTH and chosen != mode.value:
        errors.append(f"This service is only offered {mode.value}")
    elif chosen == ServiceLocation.AT_HOME.value and not (customer_address or "").strip():
        errors.append("customer_address is required for home visits")

    return BookingRequestCheck(valid=not errors, errors=errors)


def resolve_service_location(location_mode: str, service_location: Optional[str]) -> str:
    """Location stored on the booking once validation has passed."""
    if service_location:
        return service_location
    return ServiceLocation(location_mode).value
