from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from rokuoff.models import Schedule


def format_clock(now: datetime) -> str:
    return f"{now.hour:02d}:{now.minute:02d}"


def weekday_index(now: datetime) -> int:
    """Weekday of ``now`` with Sunday as 0, matching ``Schedule.days``."""
    return now.isoweekday() % 7


def is_due(schedule: Schedule, now: datetime) -> bool:
    if not schedule.is_enabled:
        return False
    if schedule.time != format_clock(now):
        return False
    return not schedule.days or weekday_index(now) in schedule.days


def due_schedules(schedules: Iterable[Schedule], now: datetime) -> list[Schedule]:
    """Schedules that should fire during the minute containing ``now``.

    Pure: the result depends only on the arguments, and input order is kept.
    """
    return [schedule for schedule in schedules if is_due(schedule, now)]
