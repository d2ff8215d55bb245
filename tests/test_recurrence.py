"""
Tests for occurrence evaluation and next-occurrence calculation
"""
from datetime import date, datetime, timedelta

import pytest
import pytz

from app.services.recurrence import next_occurrence, should_fire
from app.utils.dates import weekday_index


def firing_dates(rule, start: date, days: int):
    return [
        start + timedelta(days=offset)
        for offset in range(days)
        if should_fire(rule, start + timedelta(days=offset))
    ]


@pytest.mark.unit
class TestShouldFireDaily:
    """Tests for daily cadence"""

    def test_every_third_day_from_start(self, make_rule):
        start = date(2024, 3, 1)
        rule = make_rule(start_date=start, recurrence_interval=3)

        fired = firing_dates(rule, start, 30)

        assert fired == [start + timedelta(days=n) for n in range(0, 30, 3)]

    def test_not_before_start_date(self, make_rule):
        rule = make_rule(start_date=date(2024, 1, 10), recurrence_interval=3)
        assert should_fire(rule, date(2024, 1, 7)) is False

    def test_accepts_timestamp_as_of(self, make_rule):
        rule = make_rule()
        assert should_fire(rule, datetime(2024, 1, 5, 23, 59)) is True


@pytest.mark.unit
class TestShouldFireWeekly:
    """Tests for weekly cadence and weekday filters"""

    def test_monday_and_wednesday_only(self, make_rule):
        start = date(2024, 1, 1)
        rule = make_rule(start_date=start, recurrence_pattern="weekly", days_of_week=[1, 3])

        fired = firing_dates(rule, start, 28)

        assert fired
        assert {weekday_index(d) for d in fired} == {1, 3}
        assert len(fired) == 8

    def test_every_other_monday(self, make_rule):
        rule = make_rule(
            start_date=date(2024, 1, 1),
            recurrence_pattern="weekly",
            recurrence_interval=2,
            days_of_week=[1],
        )

        assert should_fire(rule, date(2024, 1, 1)) is True
        assert should_fire(rule, date(2024, 1, 8)) is False
        assert should_fire(rule, date(2024, 1, 15)) is True
        assert should_fire(rule, date(2024, 1, 22)) is False
        assert should_fire(rule, date(2024, 1, 29)) is True
        assert should_fire(rule, date(2024, 1, 2)) is False

    def test_without_day_filter_fires_every_day_of_due_week(self, make_rule):
        rule = make_rule(start_date=date(2024, 1, 1), recurrence_pattern="weekly", recurrence_interval=2)

        fired = firing_dates(rule, date(2024, 1, 1), 21)

        # Weeks are counted from the start date, so whole weeks 0 and 2 are due
        assert fired == (
            [date(2024, 1, 1) + timedelta(days=n) for n in range(7)]
            + [date(2024, 1, 15) + timedelta(days=n) for n in range(7)]
        )

    def test_day_filter_ignored_for_daily_pattern(self, make_rule):
        rule = make_rule(days_of_week=[1])
        assert should_fire(rule, date(2024, 1, 2)) is True


@pytest.mark.unit
class TestShouldFireMonthly:
    """Tests for monthly cadence"""

    def test_day_31_skips_short_months(self, make_rule):
        rule = make_rule(start_date=date(2024, 1, 31), recurrence_pattern="monthly")

        fired = firing_dates(rule, date(2024, 1, 1), 182)

        assert fired == [date(2024, 1, 31), date(2024, 3, 31), date(2024, 5, 31)]

    def test_every_second_month(self, make_rule):
        rule = make_rule(start_date=date(2024, 1, 15), recurrence_pattern="monthly", recurrence_interval=2)

        assert should_fire(rule, date(2024, 2, 15)) is False
        assert should_fire(rule, date(2024, 3, 15)) is True
        assert should_fire(rule, date(2024, 3, 16)) is False
        assert should_fire(rule, date(2025, 1, 15)) is True


@pytest.mark.unit
class TestShouldFireGuards:
    """Tests for idempotency, windows and inactive rules"""

    def test_no_double_fire_same_day(self, make_rule):
        rule = make_rule()
        as_of = date(2024, 1, 5)

        assert should_fire(rule, as_of) is True
        rule.last_sent_at = datetime(2024, 1, 5, 9, 30)
        assert should_fire(rule, as_of) is False
        assert should_fire(rule, date(2024, 1, 6)) is True

    def test_same_day_uses_scheduling_time_zone(self, make_rule):
        new_york = pytz.timezone("America/New_York")
        # 02:00 UTC on the 6th is still the evening of the 5th in New York
        rule = make_rule(last_sent_at=datetime(2024, 1, 6, 2, 0))

        assert should_fire(rule, date(2024, 1, 5), new_york) is False
        assert should_fire(rule, date(2024, 1, 5)) is True

    def test_end_date_is_inclusive(self, make_rule):
        rule = make_rule(end_date=date(2024, 1, 10))

        assert should_fire(rule, date(2024, 1, 10)) is True
        assert should_fire(rule, date(2024, 1, 11)) is False
        assert firing_dates(rule, date(2024, 1, 11), 60) == []

    def test_inactive_never_fires(self, make_rule):
        rule = make_rule(is_active=False)
        assert firing_dates(rule, date(2024, 1, 1), 60) == []

    def test_unknown_pattern_never_fires(self, make_rule):
        rule = make_rule(recurrence_pattern="yearly")
        assert firing_dates(rule, date(2024, 1, 1), 400) == []

    @pytest.mark.parametrize("interval", [0, -2, None])
    def test_invalid_interval_never_fires(self, make_rule, interval):
        rule = make_rule(recurrence_interval=interval)
        assert firing_dates(rule, date(2024, 1, 1), 30) == []


@pytest.mark.unit
class TestNextOccurrence:
    """Tests for the advisory next-occurrence calculation"""

    def test_not_started_returns_start_date(self, make_rule):
        rule = make_rule(start_date=date(2024, 2, 1))
        assert next_occurrence(rule, date(2024, 1, 15)) == date(2024, 2, 1)

    def test_daily_never_sent_anchors_day_before_start(self, make_rule):
        rule = make_rule(start_date=date(2024, 1, 1))
        assert next_occurrence(rule, date(2024, 1, 10)) == date(2024, 1, 1)

    def test_daily_steps_from_last_sent(self, make_rule):
        rule = make_rule(recurrence_interval=3, last_sent_at=datetime(2024, 1, 10, 9, 0))
        assert next_occurrence(rule, date(2024, 1, 10)) == date(2024, 1, 13)

    def test_weekly_with_matching_day(self, make_rule):
        rule = make_rule(
            recurrence_pattern="weekly",
            recurrence_interval=2,
            days_of_week=[1],
            last_sent_at=datetime(2024, 1, 1, 9, 0),
        )
        assert next_occurrence(rule, date(2024, 1, 2)) == date(2024, 1, 15)

    def test_weekly_probes_forward_to_allowed_day(self, make_rule):
        rule = make_rule(
            recurrence_pattern="weekly",
            days_of_week=[3],
            last_sent_at=datetime(2024, 1, 1, 9, 0),
        )
        assert next_occurrence(rule, date(2024, 1, 2)) == date(2024, 1, 10)

    def test_weekly_with_no_reachable_day(self, make_rule):
        rule = make_rule(recurrence_pattern="weekly", days_of_week=[9], last_sent_at=datetime(2024, 1, 1))
        assert next_occurrence(rule, date(2024, 1, 2)) is None

    def test_weekly_without_days(self, make_rule):
        rule = make_rule(recurrence_pattern="weekly", last_sent_at=datetime(2024, 1, 3, 12, 0))
        assert next_occurrence(rule, date(2024, 1, 4)) == date(2024, 1, 10)

    def test_monthly_keeps_start_day(self, make_rule):
        rule = make_rule(
            start_date=date(2024, 1, 15),
            recurrence_pattern="monthly",
            last_sent_at=datetime(2024, 2, 15, 9, 0),
        )
        assert next_occurrence(rule, date(2024, 2, 20)) == date(2024, 3, 15)

    def test_monthly_day_31_rolls_over(self, make_rule):
        rule = make_rule(
            start_date=date(2024, 1, 31),
            recurrence_pattern="monthly",
            last_sent_at=datetime(2024, 1, 31, 9, 0),
        )
        # Jan 31 + 1 month rolls to Mar 2, then day 31 gives Mar 31
        assert next_occurrence(rule, date(2024, 2, 1)) == date(2024, 3, 31)

    def test_past_end_date_returns_none(self, make_rule):
        rule = make_rule(
            recurrence_interval=3,
            end_date=date(2024, 1, 12),
            last_sent_at=datetime(2024, 1, 10, 9, 0),
        )
        assert next_occurrence(rule, date(2024, 1, 10)) is None

    def test_inactive_returns_none(self, make_rule):
        rule = make_rule(is_active=False, start_date=date(2030, 1, 1))
        assert next_occurrence(rule, date(2024, 1, 1)) is None

    def test_unknown_pattern_returns_none(self, make_rule):
        rule = make_rule(recurrence_pattern="yearly")
        assert next_occurrence(rule, date(2024, 1, 10)) is None

    def test_invalid_interval_returns_none(self, make_rule):
        rule = make_rule(recurrence_interval=0)
        assert next_occurrence(rule, date(2024, 1, 10)) is None


@pytest.mark.unit
class TestAnchorMismatch:
    """next_occurrence steps from the last send while should_fire counts from the start date"""

    def test_never_sent_interval_rule(self, make_rule):
        rule = make_rule(start_date=date(2024, 1, 1), recurrence_interval=3)

        assert next_occurrence(rule, date(2024, 1, 1)) == date(2024, 1, 3)
        assert should_fire(rule, date(2024, 1, 1)) is True
        assert should_fire(rule, date(2024, 1, 3)) is False

    def test_missed_tick_does_not_shift_firing(self, make_rule):
        rule = make_rule(
            start_date=date(2024, 1, 1),
            recurrence_interval=3,
            last_sent_at=datetime(2024, 1, 1, 9, 0),
        )

        # The Jan 4 tick was missed; the display still points at Jan 4
        assert next_occurrence(rule, date(2024, 1, 6)) == date(2024, 1, 4)
        assert should_fire(rule, date(2024, 1, 6)) is False
        assert should_fire(rule, date(2024, 1, 7)) is True
