"""rokuoff - scheduled power-off for Roku devices on the local network."""

from __future__ import annotations

from importlib.metadata import version

from .config import Settings, get_settings
from .core import DeviceClient, SchedulerDaemon, due_schedules
from .models import AppSettings, Device, LogEntry, Schedule
from .storage import Database

__all__ = [
    "AppSettings",
    "Database",
    "Device",
    "DeviceClient",
    "LogEntry",
    "Schedule",
    "SchedulerDaemon",
    "Settings",
    "__version__",
    "due_schedules",
    "get_settings",
]

__version__ = version("rokuoff")
