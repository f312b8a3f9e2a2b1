"""Tests for the fixed-offset IST time windows."""

from datetime import UTC, datetime, timedelta

import pytest

from roomsplit.exceptions import ValidationError
from roomsplit.ledger.timewindow import (
    day_window,
    end_of_local_date,
    month_window,
    parse_local_date,
    start_of_day,
    start_of_month,
    start_of_week,
    week_window,
)

# Wednesday 20:00 UTC == Thursday 2024-01-18 01:30 IST
NOW = datetime(2024, 1, 17, 20, 0, tzinfo=UTC)


class TestStartBoundaries:
    """Tests for start-of-period calculations."""

    def test_start_of_day_uses_ist_date(self):
        """After 18:30 UTC it is already the next day in IST."""
        assert start_of_day(NOW) == datetime(2024, 1, 17, 18, 30, tzinfo=UTC)

    def test_start_of_day_before_offset(self):
        now = datetime(2024, 1, 17, 10, 0, tzinfo=UTC)
        assert start_of_day(now) == datetime(2024, 1, 16, 18, 30, tzinfo=UTC)

    def test_start_of_week_is_monday(self):
        assert start_of_week(NOW) == datetime(2024, 1, 14, 18, 30, tzinfo=UTC)

    def test_sunday_goes_back_six_days(self):
        sunday = datetime(2024, 1, 21, 6, 0, tzinfo=UTC)  # 11:30 IST Sunday
        assert start_of_week(sunday) == datetime(2024, 1, 14, 18, 30, tzinfo=UTC)

    def test_monday_is_its_own_week_start(self):
        monday = datetime(2024, 1, 15, 0, 0, tzinfo=UTC)  # 05:30 IST Monday
        assert start_of_week(monday) == datetime(2024, 1, 14, 18, 30, tzinfo=UTC)

    def test_start_of_month(self):
        assert start_of_month(NOW) == datetime(2023, 12, 31, 18, 30, tzinfo=UTC)

    def test_month_rolls_over_in_ist_first(self):
        now = datetime(2024, 1, 31, 19, 0, tzinfo=UTC)  # Feb 1 00:30 IST
        assert start_of_month(now) == datetime(2024, 1, 31, 18, 30, tzinfo=UTC)

    def test_naive_now_taken_as_utc(self):
        assert start_of_day(datetime(2024, 1, 17, 20, 0)) == start_of_day(NOW)


class TestWindows:
    """Tests for inclusive period windows."""

    def test_day_window_ends_one_ms_early(self):
        window = day_window(NOW)
        assert window.end - window.start == timedelta(days=1) - timedelta(
            milliseconds=1
        )

    def test_week_window_length(self):
        window = week_window(NOW)
        assert window.end == datetime(
            2024, 1, 21, 18, 29, 59, 999000, tzinfo=UTC
        )

    def test_month_window_january(self):
        window = month_window(NOW)
        assert window.end == datetime(2024, 1, 31, 18, 29, 59, 999000, tzinfo=UTC)

    def test_month_window_leap_february(self):
        window = month_window(datetime(2024, 2, 10, tzinfo=UTC))
        assert window.start == datetime(2024, 1, 31, 18, 30, tzinfo=UTC)
        assert window.end == datetime(2024, 2, 29, 18, 29, 59, 999000, tzinfo=UTC)

    def test_contains_is_inclusive(self):
        window = day_window(NOW)
        assert window.contains(window.start)
        assert window.contains(window.end)
        assert not window.contains(window.end + timedelta(milliseconds=1))


class TestLocalDates:
    """Tests for parsing YYYY-MM-DD as IST calendar days."""

    def test_parse_local_date(self):
        assert parse_local_date("2024-03-05") == datetime(
            2024, 3, 4, 18, 30, tzinfo=UTC
        )

    def test_end_of_local_date(self):
        assert end_of_local_date("2024-03-05") == datetime(
            2024, 3, 5, 18, 29, 59, 999000, tzinfo=UTC
        )

    def test_full_iso_datetime_kept(self):
        assert end_of_local_date("2024-03-05T10:00:00+00:00") == datetime(
            2024, 3, 5, 10, 0, tzinfo=UTC
        )

    @pytest.mark.parametrize("value", ["2024-13-01", "tomorrow", "05/03/2024"])
    def test_invalid_dates(self, value):
        with pytest.raises(ValidationError) as exc_info:
            parse_local_date(value, "start_date")
        assert exc_info.value.field == "start_date"
