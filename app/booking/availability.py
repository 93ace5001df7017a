"""Slot availability rules.

Pure functions over one (professional, date, service) at a time. Times are
handled as minutes since midnight; the only timezone-aware input is "now",
used for the today cutoff.

Every existing booking blocks its own interval plus a mandatory buffer after
its end. The buffer only extends the end of existing bookings, never their
start, so a new booking may end exactly when an existing one begins.
"""

from datetime import date, datetime, time
from typing import Iterable, NamedTuple, Protocol

from app.booking.temporal import minutes_to_time, time_to_minutes
from app.utils.time import local_now

# Mandatory gap after every booking
BUFFER_MINUTES = 15

# Assumed length of bookings stored without an end time
LEGACY_BOOKING_MINUTES = 60

# Grain at which start times are offered
SLOT_STEP_MINUTES = 60

# Minimum lead time for a same-day booking
TODAY_LEAD_MINUTES = 60


class BookedInterval(NamedTuple):
    """An existing booking's interval as "HH:MM[:SS]" strings."""

    start_time: str
    end_time: str | None = None


class HasInterval(Protocol):
    start_time: str | time
    end_time: str | time | None


def to_minutes(value: str | time | int) -> int:
    """Convert a clock value (string, time or minutes) to minutes since midnight."""
    if isinstance(value, int):
        return value
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    return time_to_minutes(value)


def effective_end(booking: HasInterval) -> int:
    """End of the interval a booking blocks, buffer included."""
    start = to_minutes(booking.start_time)
    if booking.end_time is None:
        end = start + LEGACY_BOOKING_MINUTES
    else:
        end = to_minutes(booking.end_time)
    return end + BUFFER_MINUTES


def has_conflict(
    candidate_start: str | time | int,
    duration_minutes: int,
    existing_bookings: Iterable[HasInterval],
) -> bool:
    """Check whether a candidate start overlaps any existing booking.

    Examples:
        >>> has_conflict("11:15", 60, [BookedInterval("10:00", "11:00")])
        False
        >>> has_conflict("11:05", 60, [BookedInterval("10:00", "11:00")])
        True

    Args:
        candidate_start: Requested start ("HH:MM", time, or minutes)
        duration_minutes: Length of the requested service
        existing_bookings: Confirmed bookings for the same professional and day

    Returns:
        True if the candidate overlaps a booking or its trailing buffer
    """
    start = to_minutes(candidate_start)
    end = start + duration_minutes

    for booking in existing_bookings:
        booking_start = to_minutes(booking.start_time)
        if start < effective_end(booking) and end > booking_start:
            return True

    return False


def earliest_start_today(now: datetime) -> int:
    """Earliest start allowed today: the next full hour at least an hour away.

    Args:
        now: Current local wall-clock time

    Returns:
        Minutes since midnight (may exceed a day late in the evening)
    """
    now_minutes = now.hour * 60 + now.minute
    lead = now_minutes + TODAY_LEAD_MINUTES
    return -(-lead // SLOT_STEP_MINUTES) * SLOT_STEP_MINUTES


def same_day_cutoff(
    booking_date: date,
    now: datetime | None = None,
    tz_name: str | None = None,
) -> int | None:
    """Today cutoff in minutes if booking_date is the local today, else None."""
    current = local_now(tz_name, now)
    if booking_date != current.date():
        return None
    return earliest_start_today(current)


def suggest_slot(
    booking_date: date | str,
    existing_bookings: Iterable[HasInterval],
    duration_minutes: int,
    work_start: str | time,
    work_end: str | time,
    after_time: str | time | None = None,
    now: datetime | None = None,
    tz_name: str | None = None,
) -> str | None:
    """Find the first free start time on a day.

    The search begins at the later of the working day start and after_time,
    is pushed to the same-day cutoff when booking_date is today in the
    professional's timezone, and walks forward in whole-slot steps.

    Args:
        booking_date: Day being searched
        existing_bookings: Confirmed bookings for that day
        duration_minutes: Length of the service
        work_start: Start of the working window
        work_end: End of the working window (the service must end by then)
        after_time: Never suggest anything earlier than this
        now: Current time (defaults to the system clock)
        tz_name: Professional's IANA timezone

    Returns:
        "HH:MM" of the first free slot, or None if nothing fits
    """
    if isinstance(booking_date, str):
        booking_date = date.fromisoformat(booking_date)

    bookings = list(existing_bookings)
    day_start = to_minutes(work_start)
    day_end = to_minutes(work_end)

    lower_bound = day_start
    if after_time is not None:
        lower_bound = max(lower_bound, to_minutes(after_time))

    cutoff = same_day_cutoff(booking_date, now, tz_name)
    if cutoff is not None:
        lower_bound = max(lower_bound, cutoff)

    candidate = lower_bound
    while candidate + duration_minutes <= day_end:
        if not has_conflict(candidate, duration_minutes, bookings):
            return minutes_to_time(candidate)
        candidate += SLOT_STEP_MINUTES

    return None


def list_free_slots(
    existing_bookings: Iterable[HasInterval],
    duration_minutes: int,
    work_start: str | time,
    work_end: str | time,
    not_before: int | str | time | None = None,
) -> list[str]:
    """List every free start time across the working window.

    Args:
        existing_bookings: Confirmed bookings for the day
        duration_minutes: Length of the service
        work_start: Start of the working window
        work_end: End of the working window
        not_before: Skip candidates starting earlier than this

    Returns:
        Ordered "HH:MM" starts; empty when the day is full
    """
    bookings = list(existing_bookings)
    day_end = to_minutes(work_end)
    floor = to_minutes(not_before) if not_before is not None else None

    slots: list[str] = []
    candidate = to_minutes(work_start)
    while candidate + duration_minutes <= day_end:
        if (floor is None or candidate >= floor) and not has_conflict(
            candidate, duration_minutes, bookings
        ):
            slots.append(minutes_to_time(candidate))
        candidate += SLOT_STEP_MINUTES

    return slots
