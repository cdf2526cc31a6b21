"""
Tests for calendar-day helpers.
"""
from datetime import date, datetime, time

import pytest

from stockroom.core.dates import to_calendar_date, day_range, previous_day_end
from stockroom.core.errors import ValidationError


class TestToCalendarDate:

    def test_time_of_day_is_dropped(self):
        assert to_calendar_date("2024-01-01T17:45:00") == date(2024, 1, 1)
        assert to_calendar_date(datetime(2024, 1, 1, 23, 59)) == date(2024, 1, 1)

    def test_plain_date_string(self):
        assert to_calendar_date("2024-03-05") == date(2024, 3, 5)

    def test_utc_suffix(self):
        assert to_calendar_date("2024-03-05T10:00:00Z") == date(2024, 3, 5)

    @pytest.mark.parametrize("value", ["", "not-a-date", None])
    def test_invalid(self, value):
        with pytest.raises(ValidationError):
            to_calendar_date(value)


class TestDayRange:

    def test_inclusive_window(self):
        start, end, window_start, window_end = day_range("2024-01-01", "2024-01-03")

        assert (start, end) == (date(2024, 1, 1), date(2024, 1, 3))
        assert window_start == datetime(2024, 1, 1, 0, 0)
        assert window_end == datetime.combine(date(2024, 1, 3), time.max)

    def test_missing_start(self):
        with pytest.raises(ValidationError, match="startDate is required"):
            day_range(None, "2024-01-03")

    def test_missing_end_required(self):
        with pytest.raises(ValidationError, match="endDate is required"):
            day_range("2024-01-01", None)

    def test_missing_end_defaults_to_today(self):
        _, end, _, _ = day_range("2024-01-01", None, require_end=False)

        assert end == date.today()

    def test_end_before_start(self):
        with pytest.raises(ValidationError):
            day_range("2024-01-03", "2024-01-01")

    def test_previous_day_end(self):
        assert previous_day_end(date(2024, 1, 1)) == datetime.combine(date(2023, 12, 31), time.max)
