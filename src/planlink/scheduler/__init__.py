"""Scheduler package - dependency-driven date computation.

Main entry points:
- compute_dates: Pure forward pass returning a ScheduleResult
- recompute_schedule: Forward pass that writes dates back into the graph
- ForwardPassScheduler: The algorithm itself, for callers needing its pieces

Configuration:
- SchedulingConfig: Calendar selection and project start date
- Calendar / CalendarDays / WorkingDays: Pluggable day arithmetic
"""

from .calendar import Calendar, CalendarDays, WorkingDays, create_calendar
from .config import CalendarType, SchedulingConfig
from .core import ItemDates, ScheduleResult
from .forward_pass import (
    ForwardPassScheduler,
    apply_dates,
    check_predecessor_dates,
    compute_dates,
    preview_item_dates,
    recompute_schedule,
    topological_order,
)

__all__ = [
    # Core dataclasses
    "ItemDates",
    "ScheduleResult",
    # Configuration
    "SchedulingConfig",
    "CalendarType",
    # Calendars
    "Calendar",
    "CalendarDays",
    "WorkingDays",
    "create_calendar",
    # Algorithm
    "ForwardPassScheduler",
    "topological_order",
    "compute_dates",
    "apply_dates",
    "recompute_schedule",
    "preview_item_dates",
    "check_predecessor_dates",
]
