"""Phone number helpers.

Client phones arrive from the booking page, the chat-bot and contact imports
in every shape imaginable. They are stored in international form so that
lookups by phone match regardless of how the number was typed.
"""

import re

from app.core.config import settings

# Calling code -> notification language
COUNTRY_LANGUAGES: dict[str, str] = {
    "55": "pt",  # Brazil
    "351": "pt",  # Portugal
    "353": "en",  # Ireland
    "44": "en",  # United Kingdom
    "1": "en",  # US / Canada
    "234": "en",  # Nigeria
    "91": "hi",  # India
    "54": "es",  # Argentina
    "52": "es",  # Mexico
    "34": "es",  # Spain
    "966": "ar",  # Saudi Arabia
    "971": "ar",  # UAE
}

# Numbers this short (without "+") are national numbers
MAX_NATIONAL_DIGITS = 10


def format_phone_international(phone: str, default_country_code: str | None = None) -> str:
    """Format a phone number as +<country><number>.

    Examples:
        >>> format_phone_international("085 123 4567")
        '+353851234567'
        >>> format_phone_international("+55 (11) 91234-5678")
        '+5511912345678'

    Args:
        phone: Raw phone number as typed
        default_country_code: Calling code assumed for national numbers

    Returns:
        Normalized phone, or an empty string when there are no digits
    """
    raw = (phone or "").strip()
    cleaned = re.sub(r"\D", "", raw)
    if not cleaned:
        return ""

    if not raw.startswith("+") and len(cleaned) <= MAX_NATIONAL_DIGITS:
        country = default_country_code or settings.default_phone_country_code
        cleaned = country + cleaned.removeprefix("0")

    return "+" + cleaned


def detect_language_from_phone(phone: str) -> str:
    """Detect the preferred notification language from the calling code."""
    cleaned = re.sub(r"\D", "", phone or "")

    # Try 3, 2, then 1 digit calling codes
    for length in (3, 2, 1):
        language = COUNTRY_LANGUAGES.get(cleaned[:length])
        if language:
            return language

    return "en"
