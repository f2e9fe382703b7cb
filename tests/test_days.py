"""Tests for calendar-day helpers."""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from readstreak.days import (
    calendar_day,
    day_bounds_utc,
    days_between,
    from_storage,
    hours_remaining_today,
    is_valid_timezone,
    resolve_timezone,
    to_storage,
    today_in_timezone,
)

NEW_YORK = "America/New_York"
TOKYO = "Asia/Tokyo"


class TestTimezoneValidation:
    """Tests for timezone validation and fallback."""

    def test_known_timezones_are_valid(self):
        assert is_valid_timezone(NEW_YORK)
        assert is_valid_timezone("Asia/Kolkata")
        assert is_valid_timezone("UTC")

    def test_unknown_timezones_are_invalid(self):
        assert not is_valid_timezone("Mars/Olympus_Mons")
        assert not is_valid_timezone("")
        assert not is_valid_timezone(None)
        assert not is_valid_timezone("../etc/passwd")

    def test_resolve_falls_back_to_baseline(self):
        """Test unknown names resolve to America/New_York."""
        assert resolve_timezone("Not/AZone") == ZoneInfo(NEW_YORK)
        assert resolve_timezone(TOKYO) == ZoneInfo(TOKYO)


class TestCalendarDay:
    """Tests for mapping timestamps onto calendar days."""

    def test_same_instant_differs_by_timezone(self):
        """Test one UTC instant falls on different days in different zones."""
        moment = datetime(2025, 3, 10, 20, 0, tzinfo=timezone.utc)

        assert calendar_day(moment, NEW_YORK) == date(2025, 3, 10)
        assert calendar_day(moment, TOKYO) == date(2025, 3, 11)

    def test_naive_datetimes_are_utc(self):
        naive = datetime(2025, 3, 10, 2, 0)

        assert calendar_day(naive, "UTC") == date(2025, 3, 10)
        assert calendar_day(naive, NEW_YORK) == date(2025, 3, 9)

    def test_local_midnight_splits_days(self):
        """Test 23:50 and 00:10 local are different days 20 minutes apart."""
        zone = ZoneInfo(NEW_YORK)
        before = datetime(2025, 3, 9, 23, 50, tzinfo=zone)
        after = datetime(2025, 3, 10, 0, 10, tzinfo=zone)

        assert after - before == timedelta(minutes=20)
        assert calendar_day(before, NEW_YORK) == date(2025, 3, 9)
        assert calendar_day(after, NEW_YORK) == date(2025, 3, 10)
        # Both on the same UTC day
        assert calendar_day(before, "UTC") == calendar_day(after, "UTC")

    def test_today_in_timezone(self):
        now = datetime(2025, 3, 10, 16, 0, tzinfo=timezone.utc)

        assert today_in_timezone(NEW_YORK, now) == date(2025, 3, 10)
        assert today_in_timezone(TOKYO, now) == date(2025, 3, 11)


class TestDayBounds:
    """Tests for converting calendar days to UTC intervals."""

    def test_new_york_bounds(self):
        start, end = day_bounds_utc(date(2025, 1, 15), NEW_YORK)

        assert start == datetime(2025, 1, 15, 5, 0, tzinfo=timezone.utc)
        assert end == datetime(2025, 1, 16, 5, 0, tzinfo=timezone.utc)

    def test_tokyo_bounds_start_previous_utc_day(self):
        start, end = day_bounds_utc(date(2025, 12, 8), TOKYO)

        assert start == datetime(2025, 12, 7, 15, 0, tzinfo=timezone.utc)
        assert end - start == timedelta(hours=24)

    def test_half_hour_offset(self):
        start, _ = day_bounds_utc(date(2025, 6, 1), "Asia/Kolkata")

        assert start == datetime(2025, 5, 31, 18, 30, tzinfo=timezone.utc)

    def test_dst_start_day_is_23_hours(self):
        """Test spring-forward day is one hour shorter."""
        start, end = day_bounds_utc(date(2025, 3, 9), NEW_YORK)

        assert end - start == timedelta(hours=23)

    def test_days_between(self):
        assert days_between(date(2025, 2, 27), date(2025, 3, 1)) == 2
        assert days_between(date(2025, 3, 1), date(2025, 3, 1)) == 0


class TestHoursRemaining:
    """Tests for hours left in the user's day."""

    def test_noon_leaves_twelve_hours(self):
        now = datetime(2025, 3, 10, 16, 0, tzinfo=timezone.utc)

        assert hours_remaining_today(NEW_YORK, now) == 12

    def test_uses_user_timezone_not_utc(self):
        """Test 01:00 in Tokyo leaves 23 hours although UTC is mid-afternoon."""
        now = datetime(2025, 3, 10, 16, 0, tzinfo=timezone.utc)

        assert hours_remaining_today(TOKYO, now) == 23

    def test_rounds_down(self):
        zone = ZoneInfo(NEW_YORK)
        now = datetime(2025, 3, 10, 23, 30, tzinfo=zone)

        assert hours_remaining_today(NEW_YORK, now) == 0


class TestStorageFormat:
    """Tests for timestamp serialization."""

    def test_fixed_width_utc(self):
        whole = to_storage(datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc))
        fractional = to_storage(datetime(2025, 3, 10, 12, 0, 0, 5, tzinfo=timezone.utc))

        assert len(whole) == len(fractional)
        assert whole < fractional

    def test_converts_to_utc(self):
        local = datetime(2025, 3, 10, 0, 10, tzinfo=ZoneInfo(NEW_YORK))

        stored = to_storage(local)

        assert stored.startswith("2025-03-10T04:10:00")
        assert from_storage(stored) == local
