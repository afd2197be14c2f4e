"""
Clock Module

Wall-clock access for the ordering engine. Day boundaries are the calendar
date of a timestamp in the configured time zone, so everything that needs
"today" asks a Clock instead of calling time.time() directly.
"""

import time
from datetime import date, datetime, tzinfo
from typing import Optional


class Clock:
    """
    System clock with a configurable time zone.

    Attributes:
        tz: Time zone for day boundaries (None = server local time)
    """

    def __init__(self, tz: Optional[tzinfo] = None):
        self.tz = tz

    def now(self) -> float:
        """Current time as epoch seconds."""
        return time.time()

    def day_for(self, timestamp: float) -> date:
        """Calendar date a timestamp falls on."""
        return datetime.fromtimestamp(timestamp, tz=self.tz).date()

    def today(self) -> date:
        return self.day_for(self.now())


class FrozenClock(Clock):
    """
    Clock that only moves when told to.

    Example:
        >>> clock = FrozenClock(datetime(2024, 5, 1, 23, 59).timestamp())
        >>> clock.advance(120)
        >>> clock.today()
        datetime.date(2024, 5, 2)
    """

    def __init__(self, start: float, tz: Optional[tzinfo] = None):
        super().__init__(tz)
        self._now = start

    def now(self) -> float:
        return self._now

    def set(self, timestamp: float) -> None:
        self._now = timestamp

    def advance(self, seconds: float) -> None:
        self._now += seconds
