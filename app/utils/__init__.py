"""Utility functions."""

from app.utils.phone import detect_language_from_phone, format_phone_international
from app.utils.time import local_now, local_today, utc_now

__all__ = [
    "utc_now",
    "local_now",
    "local_today",
    "format_phone_international",
    "detect_language_from_phone",
]
