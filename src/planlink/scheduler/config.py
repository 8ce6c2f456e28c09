"""Configuration classes for the scheduler."""

from datetime import date
from enum import Enum

from pydantic import BaseModel


class CalendarType(str, Enum):
    """Available day-arithmetic calendars."""

    CALENDAR_DAYS = "calendar_days"
    WORKING_DAYS = "working_days"  # Skips Saturdays and Sundays


class SchedulingConfig(BaseModel):
    """Configuration for date computation."""

    calendar: CalendarType = CalendarType.CALENDAR_DAYS

    # Start date for items with neither predecessors nor a start date of their own
    project_start_date: date | None = None
