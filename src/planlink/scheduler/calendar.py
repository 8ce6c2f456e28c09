"""Pluggable day arithmetic for the scheduler."""

import math
from datetime import date, timedelta
from typing import Protocol

from .config import CalendarType

SATURDAY = 5


class Calendar(Protocol):
    """Moves a date by a signed number of days."""

    def add_days(self, day: date, days: float) -> date:
        """Return the date `days` after `day` (before it when negative)."""
        ...


def whole_days(days: float) -> int:
    """Round a day count away from zero, so 2.5 -> 3 and -2.5 -> -3."""
    magnitude = math.ceil(abs(days))
    return magnitude if days >= 0 else -magnitude


class CalendarDays:
    """Plain calendar-day arithmetic; every day counts.

    Fractional counts round away from zero so that moving forward and back by
    the same duration returns to the starting date.
    """

    def add_days(self, day: date, days: float) -> date:
        return day + timedelta(days=whole_days(days))


class WorkingDays:
    """Counts Monday-Friday only.

    Fractional durations round up to whole working days. Zero days returns the
    date unchanged, even when it falls on a weekend.
    """

    def add_days(self, day: date, days: float) -> date:
        count = whole_days(days)
        remaining = abs(count)
        step = timedelta(days=1 if count >= 0 else -1)
        result = day
        while remaining > 0:
            result += step
            if result.weekday() < SATURDAY:
                remaining -= 1
        return result


def create_calendar(calendar_type: CalendarType) -> Calendar:
    """Create a calendar instance for a configured calendar type."""
    if calendar_type == CalendarType.CALENDAR_DAYS:
        return CalendarDays()
    if calendar_type == CalendarType.WORKING_DAYS:
        return WorkingDays()

    msg = f"Unknown calendar type: {calendar_type}"
    raise ValueError(msg)
