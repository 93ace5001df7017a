"""Tests for the slot availability rules.

Covers the conflict predicate with its trailing buffer, the next-slot
search (including the after_time regression), full-day listing and the
same-day cutoff.
"""

from datetime import date, datetime, time, timezone

import pytest

from app.booking.availability import (
    BUFFER_MINUTES,
    BookedInterval,
    earliest_start_today,
    has_conflict,
    list_free_slots,
    suggest_slot,
)
from app.booking.temporal import minutes_to_time, time_to_minutes

# A day far from "now" so the same-day cutoff never applies
FUTURE_DAY = date(2030, 1, 15)
NOW = datetime(2025, 6, 2, 8, 0, tzinfo=timezone.utc)  # 09:00 in Dublin


class TestHasConflict:
    """Tests for the conflict predicate."""

    def test_buffer_examples(self) -> None:
        existing = [BookedInterval("10:00", "11:00")]

        assert has_conflict("11:15", 60, existing) is False
        assert has_conflict("11:05", 60, existing) is True

    def test_no_bookings_never_conflicts(self) -> None:
        assert has_conflict("09:00", 60, []) is False

    @pytest.mark.parametrize("end", ["10:00", "12:30", "15:45", "17:00"])
    def test_buffer_boundary(self, end: str) -> None:
        """E+15 is always free and E+14 always conflicts."""
        existing = [BookedInterval("09:00", end)]
        end_minutes = time_to_minutes(end)

        assert has_conflict(end_minutes + BUFFER_MINUTES, 30, existing) is False
        assert has_conflict(end_minutes + BUFFER_MINUTES - 1, 30, existing) is True

    def test_candidate_may_end_exactly_when_booking_starts(self) -> None:
        """The buffer only extends the end of existing bookings."""
        existing = [BookedInterval("11:00", "12:00")]

        assert has_conflict("10:00", 60, existing) is False
        assert has_conflict("10:01", 60, existing) is True

    def test_legacy_booking_without_end_lasts_one_hour(self) -> None:
        existing = [BookedInterval("14:00", None)]

        assert has_conflict("15:14", 30, existing) is True
        assert has_conflict("15:15", 30, existing) is False

    def test_seconds_in_stored_times_are_ignored(self) -> None:
        existing = [BookedInterval("10:00:00", "11:00:00")]

        assert has_conflict("11:15", 60, existing) is False

    def test_accepts_time_objects(self) -> None:
        class Row:
            start_time = time(10, 0)
            end_time = time(11, 0)

        assert has_conflict(time(11, 0), 60, [Row()]) is True
        assert has_conflict(time(11, 15), 60, [Row()]) is False


class TestSuggestSlot:
    """Tests for the next-available-slot search."""

    def test_empty_day_returns_opening_time(self) -> None:
        assert suggest_slot(FUTURE_DAY, [], 60, "09:00", "18:00", now=NOW) == "09:00"

    def test_skips_booking_and_its_buffer(self) -> None:
        """10:00 is inside the 10:00-10:15 buffer, so 11:00 is next."""
        existing = [BookedInterval("09:00", "10:00")]

        assert suggest_slot(FUTURE_DAY, existing, 60, "09:00", "18:00", now=NOW) == "11:00"

    def test_never_suggests_before_after_time(self) -> None:
        existing = [BookedInterval("14:00", "15:00"), BookedInterval("15:00", "16:00")]

        result = suggest_slot(
            FUTURE_DAY, existing, 60, "09:00", "18:00", after_time="14:00", now=NOW
        )

        assert result == "17:00"
        assert time_to_minutes(result) >= time_to_minutes("14:00")

    def test_after_time_ignores_free_earlier_slots(self) -> None:
        existing = [BookedInterval("15:00", "16:00")]

        result = suggest_slot(
            FUTURE_DAY, existing, 60, "09:00", "18:00", after_time="15:00", now=NOW
        )

        assert result == "17:00"

    def test_long_service_after_morning_booking(self) -> None:
        existing = [BookedInterval("09:00", "11:00")]

        assert suggest_slot(FUTURE_DAY, existing, 120, "09:00", "18:00", now=NOW) == "12:00"

    def test_returns_none_when_day_is_full(self) -> None:
        existing = [BookedInterval("09:00", "17:45")]

        assert suggest_slot(FUTURE_DAY, existing, 60, "09:00", "18:00", now=NOW) is None

    def test_returns_none_when_duration_cannot_fit(self) -> None:
        assert suggest_slot(FUTURE_DAY, [], 600, "09:00", "18:00", now=NOW) is None

    def test_service_must_end_by_closing_time(self) -> None:
        existing = [BookedInterval("09:00", "16:00")]

        assert suggest_slot(FUTURE_DAY, existing, 60, "09:00", "18:00", now=NOW) == "17:00"
        assert suggest_slot(FUTURE_DAY, existing, 90, "09:00", "18:00", now=NOW) is None

    def test_today_starts_after_cutoff(self) -> None:
        """At 09:00 local the earliest same-day start is 10:00."""
        today = date(2025, 6, 2)

        assert suggest_slot(today, [], 60, "09:00", "18:00", now=NOW) == "10:00"

    def test_today_uses_professional_timezone(self) -> None:
        """08:00 UTC is 09:00 in Dublin but 04:00 in New York."""
        today = date(2025, 6, 2)

        assert suggest_slot(today, [], 60, "09:00", "18:00", now=NOW, tz_name="Europe/Dublin") == "10:00"
        assert suggest_slot(today, [], 60, "09:00", "18:00", now=NOW, tz_name="America/New_York") == "09:00"

    def test_accepts_iso_date_string(self) -> None:
        assert suggest_slot("2030-01-15", [], 60, "09:00", "18:00", now=NOW) == "09:00"

    @pytest.mark.parametrize("after", ["09:00", "10:30", "12:00", "13:45", "16:00", "17:00"])
    def test_result_never_precedes_after_time(self, after: str) -> None:
        existing = [
            BookedInterval("09:00", "10:00"),
            BookedInterval("12:00", "13:00"),
            BookedInterval("15:00", "16:00"),
        ]

        result = suggest_slot(FUTURE_DAY, existing, 60, "09:00", "18:00", after_time=after, now=NOW)

        if result is not None:
            assert time_to_minutes(result) >= time_to_minutes(after)
            assert not has_conflict(result, 60, existing)


class TestEarliestStartToday:
    """Tests for the same-day cutoff."""

    @pytest.mark.parametrize(
        "hour,minute,expected",
        [
            (9, 0, "10:00"),
            (9, 1, "11:00"),
            (9, 59, "11:00"),
            (13, 30, "15:00"),
            (0, 0, "01:00"),
        ],
    )
    def test_next_full_hour_an_hour_away(self, hour: int, minute: int, expected: str) -> None:
        now = datetime(2025, 6, 2, hour, minute)

        assert minutes_to_time(earliest_start_today(now)) == expected


class TestListFreeSlots:
    """Tests for full day listing."""

    def test_empty_day_lists_every_hour(self) -> None:
        slots = list_free_slots([], 60, "09:00", "18:00")

        assert slots == [f"{hour:02d}:00" for hour in range(9, 18)]

    def test_booking_removes_its_slot_and_the_next(self) -> None:
        slots = list_free_slots([BookedInterval("10:00", "11:00")], 60, "09:00", "18:00")

        assert "10:00" not in slots
        assert "11:00" not in slots
        assert "09:00" in slots
        assert "12:00" in slots

    def test_not_before_skips_early_slots(self) -> None:
        slots = list_free_slots([], 60, "09:00", "18:00", not_before="13:00")

        assert slots[0] == "13:00"

    def test_fully_booked_day_is_empty(self) -> None:
        assert list_free_slots([BookedInterval("09:00", "18:00")], 60, "09:00", "18:00") == []

    def test_listing_matches_predicate(self) -> None:
        """A grid slot is listed if and only if it does not conflict."""
        existing = [
            BookedInterval("09:30", "10:15"),
            BookedInterval("13:00", None),
            BookedInterval("16:00", "16:45"),
        ]
        slots = set(list_free_slots(existing, 45, "09:00", "18:00"))

        for start in range(9 * 60, 18 * 60 - 45 + 1, 60):
            label = minutes_to_time(start)
            assert (label in slots) == (not has_conflict(start, 45, existing))
