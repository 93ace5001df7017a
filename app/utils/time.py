"""Time and datetime utilities."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.core.config import settings


def utc_now() -> datetime:
    """Get current UTC datetime.

    Returns:
        Current datetime in UTC timezone
    """
    return datetime.now(timezone.utc)


def get_zone(tz_name: str | None) -> ZoneInfo:
    """Resolve an IANA timezone name, falling back to the business timezone.

    Args:
        tz_name: IANA name such as "Europe/Dublin" (may be empty)

    Returns:
        ZoneInfo for the name, or for settings.business_timezone
    """
    if tz_name:
        try:
            return ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError):
            pass
    return ZoneInfo(settings.business_timezone)


def local_now(tz_name: str | None = None, now: datetime | None = None) -> datetime:
    """Get the current wall-clock time in a professional's timezone.

    Args:
        tz_name: IANA timezone name (defaults to the business timezone)
        now: Optional aware "now" to convert instead of the system clock

    Returns:
        Timezone-aware datetime in the requested zone
    """
    current = now or utc_now()
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    return current.astimezone(get_zone(tz_name))


def local_today(tz_name: str | None = None, now: datetime | None = None) -> date:
    """Get today's date in a professional's timezone."""
    return local_now(tz_name, now).date()

