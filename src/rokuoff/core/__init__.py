from __future__ import annotations

from .client import DeviceClient, extract_device_name
from .daemon import SchedulerDaemon
from .evaluator import due_schedules, format_clock, is_due, weekday_index
from .registry import (
    DuplicateAddressError,
    DuplicateIdError,
    InvalidAddressError,
    RegistryError,
    add_manual_device,
    find_device,
    merge_discovered,
    normalize_address,
    power_off_all,
    refresh_status,
    remove_device,
)
from .schedules import (
    ScheduleError,
    UnknownDeviceError,
    UnknownScheduleError,
    create_schedule,
    remove_schedule,
    set_enabled,
    update_schedule,
)

__all__ = [
    "DeviceClient",
    "DuplicateAddressError",
    "DuplicateIdError",
    "InvalidAddressError",
    "RegistryError",
    "ScheduleError",
    "SchedulerDaemon",
    "UnknownDeviceError",
    "UnknownScheduleError",
    "add_manual_device",
    "create_schedule",
    "due_schedules",
    "extract_device_name",
    "find_device",
    "format_clock",
    "is_due",
    "merge_discovered",
    "normalize_address",
    "power_off_all",
    "refresh_status",
    "remove_device",
    "remove_schedule",
    "set_enabled",
    "update_schedule",
    "weekday_index",
]
