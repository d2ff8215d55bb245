"""
Calendar-date helpers for the recurrence engine.

All arithmetic is integer arithmetic on ``datetime.date`` values. Timestamps
only enter through ``to_calendar_date``, which pins them to one configured
time zone before the time-of-day is dropped.
"""

from datetime import date, datetime, timedelta
from typing import Union

import pytz


def weekday_index(value: date) -> int:
    """Weekday as 0=Sunday .. 6=Saturday."""
    return value.isoweekday() % 7


def whole_days_between(start: date, end: date) -> int:
    return (end - start).days


def whole_weeks_between(start: date, end: date) -> int:
    # Floor division keeps dates before ``start`` on their own (negative) week
    return whole_days_between(start, end) // 7


def months_between(start: date, end: date) -> int:
    """Calendar-month difference, ignoring the day of month."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def roll_date(year: int, month: int, day: int) -> date:
    """
    Build a date, carrying overflow forward instead of raising.

    Month 13 becomes January of the next year, and day 31 of a 30-day month
    becomes the 1st of the following month. Nothing is clamped.
    """
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    return date(year, month, 1) + timedelta(days=day - 1)


def add_months(value: date, months: int) -> date:
    return roll_date(value.year, value.month + months, value.day)


def with_day(value: date, day: int) -> date:
    """Move ``value`` to ``day`` within its month, rolling over like ``roll_date``."""
    return roll_date(value.year, value.month, day)


def to_calendar_date(value: Union[date, datetime], tz=pytz.utc) -> date:
    """
    Strip a date or timestamp to its calendar date in ``tz``.

    Naive datetimes are stored as UTC throughout the service, so they are
    localized to UTC before conversion.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = pytz.utc.localize(value)
        return value.astimezone(tz).date()
    return value
