"""Wall clock pinned to one named time zone.

Every date-boundary decision (which day a baseline belongs to, whether it is
time to reset or summarize) goes through a Clock so the values compared are
structured dates and times, never formatted strings.
"""

from datetime import date, datetime, time
from typing import Optional
from zoneinfo import ZoneInfo

from .config import settings


class Clock:
    """Current instant and local date in a fixed zone."""

    def __init__(self, tz_name: Optional[str] = None):
        self.tz = ZoneInfo(tz_name or settings.timezone)

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()


def minute_of(value) -> time:
    """Truncate a datetime or time to hour:minute."""
    return time(value.hour, value.minute)
