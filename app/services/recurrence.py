"""
Recurrence evaluation for recurring room messages.

``should_fire`` decides whether a rule is due on a given calendar date and is
the only authority for firing. ``next_occurrence`` is advisory (admin views,
audit) and is never consulted when deciding to fire.

Note the two functions anchor differently: ``should_fire`` counts whole units
from ``start_date`` while ``next_occurrence`` steps from the last firing. After
a missed cycle the displayed next date can differ from the date that actually
fires. This is existing behaviour and is pinned by tests.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional, Union

import pytz

from app.models.recurring_message import RecurrencePattern
from app.utils.dates import (
    add_months,
    months_between,
    to_calendar_date,
    weekday_index,
    whole_days_between,
    whole_weeks_between,
    with_day,
)

logger = logging.getLogger(__name__)

WEEKDAY_PROBES = 7


def _interval(rule) -> Optional[int]:
    interval = rule.recurrence_interval
    if isinstance(interval, bool) or not isinstance(interval, int) or interval < 1:
        return None
    return interval


def should_fire(rule, as_of: Union[date, datetime], tz=pytz.utc) -> bool:
    """
    Return True if ``rule`` should emit its message on ``as_of``.

    Args:
        rule: RecurringMessage (or any object with the same attributes)
        as_of: Evaluation date; a timestamp is reduced to its date in ``tz``
        tz: The single configured scheduling time zone

    Returns:
        True if the rule is due and has not already fired that day
    """
    today = to_calendar_date(as_of, tz)

    if not rule.is_active:
        return False
    if today < rule.start_date:
        return False
    if rule.end_date is not None and today > rule.end_date:
        return False

    if rule.last_sent_at is not None and to_calendar_date(rule.last_sent_at, tz) == today:
        return False

    interval = _interval(rule)
    if interval is None:
        logger.debug(f"Invalid recurrence interval for rule {rule.id}")
        return False
    pattern = rule.recurrence_pattern

    if pattern == RecurrencePattern.DAILY:
        return whole_days_between(rule.start_date, today) % interval == 0

    if pattern == RecurrencePattern.WEEKLY:
        if rule.days_of_week and weekday_index(today) not in rule.days_of_week:
            return False
        return whole_weeks_between(rule.start_date, today) % interval == 0

    if pattern == RecurrencePattern.MONTHLY:
        # No clamping: a rule anchored on the 31st skips 30-day months
        if today.day != rule.start_date.day:
            return False
        return months_between(rule.start_date, today) % interval == 0

    logger.debug(f"Unrecognized recurrence pattern '{pattern}' for rule {rule.id}")
    return False


def next_occurrence(rule, today: Union[date, datetime], tz=pytz.utc) -> Optional[date]:
    """
    Compute the next date on which ``rule`` would fire.

    Args:
        rule: RecurringMessage (or any object with the same attributes)
        today: Current date supplied by the caller's clock
        tz: The single configured scheduling time zone

    Returns:
        The next calendar date, or None if the rule will never fire again
    """
    if not rule.is_active:
        return None

    today = to_calendar_date(today, tz)
    if rule.start_date > today:
        return rule.start_date

    if rule.last_sent_at is not None:
        anchor = to_calendar_date(rule.last_sent_at, tz)
    else:
        anchor = rule.start_date - timedelta(days=1)

    interval = _interval(rule)
    if interval is None:
        return None
    pattern = rule.recurrence_pattern

    if pattern == RecurrencePattern.DAILY:
        candidate = anchor + timedelta(days=interval)
    elif pattern == RecurrencePattern.WEEKLY:
        candidate = anchor + timedelta(weeks=interval)
        if rule.days_of_week:
            for offset in range(WEEKDAY_PROBES):
                probe = candidate + timedelta(days=offset)
                if weekday_index(probe) in rule.days_of_week:
                    candidate = probe
                    break
            else:
                return None
    elif pattern == RecurrencePattern.MONTHLY:
        candidate = with_day(add_months(anchor, interval), rule.start_date.day)
    else:
        return None

    if rule.end_date is not None and candidate > rule.end_date:
        return None

    return candidate
