"""Schedule model and day-of-week helpers.

Weekdays are encoded 0..6 starting on Sunday. An empty ``days`` list means
the schedule runs every day.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import datetime

from pydantic import BaseModel, field_validator

CLOCK_PATTERN = re.compile(r"[0-9]{2}:[0-9]{2}")

DAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
_SHORT_NAMES = [name.lower() for name in DAY_NAMES]

_DAY_ALIASES = {
    "daily": (),
    "everyday": (),
    "all": (),
    "weekdays": (1, 2, 3, 4, 5),
    "weekends": (0, 6),
}


def validate_clock(value: str) -> str:
    if not CLOCK_PATTERN.fullmatch(value):
        raise ValueError(f"Time must be HH:MM (24h), got {value!r}")
    hour, minute = int(value[:2]), int(value[3:])
    if hour > 23 or minute > 59:
        raise ValueError(f"Time out of range: {value!r}")
    return value


def normalize_days(days: Iterable[int]) -> list[int]:
    result: set[int] = set()
    for day in days:
        if not 0 <= day <= 6:
            raise ValueError(f"Weekday must be between 0 (Sun) and 6 (Sat), got {day}")
        result.add(day)
    return sorted(result)


def parse_days(value: str) -> list[int]:
    """Parse ``"mon,wed"``, ``"1,3"``, ``"weekdays"`` and friends."""
    days: set[int] = set()
    for token in (part.strip().lower() for part in value.split(",")):
        if not token:
            continue
        if token in _DAY_ALIASES:
            alias = _DAY_ALIASES[token]
            if not alias:
                return []
            days.update(alias)
        elif token.isascii() and token.isdigit():
            days.add(int(token))
        elif len(token) >= 3 and token[:3] in _SHORT_NAMES:
            days.add(_SHORT_NAMES.index(token[:3]))
        else:
            raise ValueError(f"Unknown day: {token!r}")
    return normalize_days(days)


def format_days(days: Iterable[int]) -> str:
    ordered = sorted(set(days))
    if not ordered or len(ordered) == 7:
        return "Every day"
    return ", ".join(DAY_NAMES[day] for day in ordered)


class Schedule(BaseModel):
    model_config = {"extra": "forbid"}

    id: str
    device_id: str
    device_name: str
    time: str
    days: list[int] = []
    is_enabled: bool = True
    created_at: datetime

    @field_validator("time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        return validate_clock(value)

    @field_validator("days")
    @classmethod
    def _check_days(cls, value: list[int]) -> list[int]:
        return normalize_days(value)
