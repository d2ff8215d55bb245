"""Clock for the recurring message engine."""
import os
from datetime import date, datetime

import pytz
from dotenv import load_dotenv

from app.utils.dates import to_calendar_date

load_dotenv()

# All calendar dates are evaluated in this one zone
SCHEDULER_TIMEZONE = os.environ.get("SCHEDULER_TIMEZONE", "UTC")


class Clock:
    """Source of "now" and "today" in the configured scheduling time zone."""

    def __init__(self, timezone_name: str = SCHEDULER_TIMEZONE):
        self.tz = pytz.timezone(timezone_name)

    def now(self) -> datetime:
        """Current instant as naive UTC, matching stored timestamps."""
        return datetime.utcnow()

    def today(self) -> date:
        """Current calendar date in the scheduling zone."""
        return self.local_date(self.now())

    def local_date(self, value) -> date:
        return to_calendar_date(value, self.tz)
