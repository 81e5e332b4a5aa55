from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import datetime

from pydantic import ValidationError

from rokuoff.models import Schedule, normalize_days, validate_clock
from rokuoff.storage import Database


class ScheduleError(ValueError):
    pass


class UnknownDeviceError(ScheduleError):
    pass


class UnknownScheduleError(ScheduleError):
    pass


def _clock(time: str) -> str:
    try:
        return validate_clock(time.strip())
    except ValueError as exc:
        raise ScheduleError(str(exc)) from exc


def _days(days: Iterable[int]) -> list[int]:
    try:
        return normalize_days(days)
    except ValueError as exc:
        raise ScheduleError(str(exc)) from exc


def create_schedule(
    store: Database,
    device_id: str,
    time: str,
    days: Iterable[int] = (),
    enabled: bool = True,
) -> Schedule:
    time, normalized = _clock(time), _days(days)
    device = next((d for d in store.get_devices() if d.id == device_id), None)
    if device is None:
        raise UnknownDeviceError(f"No device with id {device_id!r}")

    schedule = Schedule(
        id=uuid.uuid4().hex,
        device_id=device.id,
        device_name=device.name,
        time=time,
        days=normalized,
        is_enabled=enabled,
        created_at=datetime.now().astimezone(),
    )
    schedules = store.get_schedules()
    schedules.append(schedule)
    store.save_schedules(schedules)
    return schedule


def _replace(
    store: Database, schedule_id: str, updates: dict[str, object]
) -> Schedule:
    schedules = store.get_schedules()
    for index, schedule in enumerate(schedules):
        if schedule.id == schedule_id:
            try:
                updated = Schedule.model_validate(
                    {**schedule.model_dump(), **updates}
                )
            except ValidationError as exc:
                raise ScheduleError(str(exc)) from exc
            schedules[index] = updated
            store.save_schedules(schedules)
            return updated
    raise UnknownScheduleError(f"No schedule with id {schedule_id!r}")


def set_enabled(store: Database, schedule_id: str, enabled: bool) -> Schedule:
    return _replace(store, schedule_id, {"is_enabled": enabled})


def update_schedule(
    store: Database,
    schedule_id: str,
    time: str | None = None,
    days: Iterable[int] | None = None,
) -> Schedule:
    updates: dict[str, object] = {}
    if time is not None:
        updates["time"] = _clock(time)
    if days is not None:
        updates["days"] = _days(days)
    return _replace(store, schedule_id, updates)


def remove_schedule(store: Database, schedule_id: str) -> bool:
    schedules = store.get_schedules()
    remaining = [s for s in schedules if s.id != schedule_id]
    if len(remaining) == len(schedules):
        return False
    store.save_schedules(remaining)
    return True
