"""
Calendar-day helpers shared by daily calculations and reports.

Daily calculations are keyed by calendar date (time of day dropped).
Report windows are inclusive: [start 00:00:00, end 23:59:59.999999].
"""
from datetime import date, datetime, time, timedelta
from typing import Optional, Union

from stockroom.core.errors import ValidationError


DateLike = Union[date, datetime, str]


def to_calendar_date(value: DateLike) -> date:
    """
    Truncate a date, datetime or ISO string to its calendar date.

    Examples:
        >>> to_calendar_date("2024-01-01T17:45:00")
        datetime.date(2024, 1, 1)
        >>> to_calendar_date(datetime(2024, 1, 1, 23, 59))
        datetime.date(2024, 1, 1)
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            pass
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            pass
    raise ValidationError(f"Invalid date: {value!r}")


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max)


def day_range(
    start: Optional[DateLike],
    end: Optional[DateLike],
    require_end: bool = True,
) -> tuple[date, date, datetime, datetime]:
    """
    Resolve an inclusive reporting window.

    Returns (start_date, end_date, window_start, window_end). A missing
    start is always an error; a missing end is an error unless
    `require_end` is False, in which case the window runs to today.
    """
    if not start:
        raise ValidationError("startDate is required")
    if not end and require_end:
        raise ValidationError("endDate is required")

    start_date = to_calendar_date(start)
    end_date = to_calendar_date(end) if end else date.today()

    if end_date < start_date:
        raise ValidationError("endDate must not be before startDate")

    return start_date, end_date, start_of_day(start_date), end_of_day(end_date)


def previous_day_end(day: date) -> datetime:
    """End of the day before `day`; the opening-stock cut-off for a window starting on `day`."""
    return end_of_day(day - timedelta(days=1))
