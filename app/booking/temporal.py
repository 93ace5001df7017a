"""Date and time normalization for loosely formatted input.

Booking requests reach us from a public booking page and from a chat-bot,
so dates and times come in whatever shape the client typed. Everything is
reduced to canonical "YYYY-MM-DD" and "HH:MM" strings before it touches the
availability rules.

The date parser is lenient: unknown input falls back to today instead of
raising. Callers confirm the resulting date with the client.
"""

import logging
import re
from datetime import date, time, timedelta

from app.utils.time import local_today

logger = logging.getLogger(__name__)

TODAY_TOKENS = frozenset({"today", "hoje"})
TOMORROW_TOKENS = frozenset({"tomorrow", "amanhã", "amanha"})

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DMY_DATE = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})$")
_HOUR_ONLY = re.compile(r"^(\d{1,2})[hH]$")
_HOUR_MINUTE_H = re.compile(r"^(\d{1,2})[hH](\d{2})$")
_CLOCK = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")
_CANONICAL_TIME = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def normalize_date(value: str, today: date | None = None) -> str:
    """Normalize a date token to YYYY-MM-DD.

    Accepts canonical dates, DD/MM/YYYY, DD-MM-YYYY and the words
    today/hoje and tomorrow/amanhã/amanha.

    Args:
        value: Raw date string
        today: Reference date for relative tokens (defaults to the local
            date in the business timezone)

    Returns:
        Canonical date string. Unrecognized input yields today's date.
    """
    reference = today or local_today()
    text = (value or "").strip()
    lowered = text.lower()

    if lowered in TODAY_TOKENS:
        return reference.isoformat()
    if lowered in TOMORROW_TOKENS:
        return (reference + timedelta(days=1)).isoformat()
    if _ISO_DATE.match(text):
        return text

    match = _DMY_DATE.match(text)
    if match:
        day, month, year = match.groups()
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}"

    logger.warning("Unrecognized date %r, using today (%s)", value, reference.isoformat())
    return reference.isoformat()


def normalize_time(value: str) -> str:
    """Normalize a time token to HH:MM.

    Accepts HH:MM, HH:MM:SS (seconds dropped) and the colloquial 9h, 9h30,
    18h forms. Anything else is returned unchanged; use is_canonical_time()
    to tell whether parsing succeeded.
    """
    text = (value or "").strip()

    match = _HOUR_ONLY.match(text)
    if match:
        return f"{match.group(1).zfill(2)}:00"

    match = _HOUR_MINUTE_H.match(text) or _CLOCK.match(text)
    if match:
        hour, minute = match.groups()
        return f"{hour.zfill(2)}:{minute}"

    return text


def is_canonical_time(value: str) -> bool:
    """Check that a value is a valid HH:MM clock time (00:00-23:59)."""
    return bool(_CANONICAL_TIME.match(value or ""))


def time_to_minutes(value: str) -> int:
    """Convert "HH:MM" or "HH:MM:SS" to minutes since midnight."""
    hours, minutes = value.split(":")[:2]
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_time(value: time) -> str:
    """Format a stored time as HH:MM."""
    return value.strftime("%H:%M")


def to_time(value: str) -> time:
    """Convert an "HH:MM[:SS]" string into a time object (seconds dropped)."""
    minutes = time_to_minutes(value)
    return time(minutes // 60, minutes % 60)
