"""Tests for phone normalization and language detection."""

import pytest

from app.utils.phone import detect_language_from_phone, format_phone_international


class TestFormatPhoneInternational:
    """Tests for format_phone_international."""

    @pytest.mark.parametrize(
        "raw",
        ["085 123 4567", "0851234567", "+353 85 123 4567", "+353851234567", "(085) 123-4567"],
    )
    def test_irish_forms_are_equivalent(self, raw: str) -> None:
        assert format_phone_international(raw) == "+353851234567"

    def test_foreign_number_with_plus_is_kept(self) -> None:
        assert format_phone_international("+55 (11) 91234-5678") == "+5511912345678"

    def test_long_number_without_plus_is_treated_as_international(self) -> None:
        assert format_phone_international("5511912345678") == "+5511912345678"

    def test_custom_default_country(self) -> None:
        assert format_phone_international("912 345 678", default_country_code="351") == "+351912345678"

    @pytest.mark.parametrize("raw", ["", "   ", "abc", None])
    def test_no_digits_gives_empty_string(self, raw: str | None) -> None:
        assert format_phone_international(raw) == ""


class TestDetectLanguage:
    """Tests for detect_language_from_phone."""

    @pytest.mark.parametrize(
        "phone,language",
        [
            ("+353851234567", "en"),
            ("+5511912345678", "pt"),
            ("+351912345678", "pt"),
            ("+34612345678", "es"),
            ("+971501234567", "ar"),
            ("+919812345678", "hi"),
            ("+12025550123", "en"),
            ("+81312345678", "en"),
        ],
    )
    def test_language_by_calling_code(self, phone: str, language: str) -> None:
        assert detect_language_from_phone(phone) == language
