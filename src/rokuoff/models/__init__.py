"""Data models for rokuoff."""

from rokuoff.models.device import Device, default_device_name, manual_device_id
from rokuoff.models.log import LogEntry, Severity
from rokuoff.models.results import CommandResult, ValidationOutcome
from rokuoff.models.schedule import (
    DAY_NAMES,
    Schedule,
    format_days,
    normalize_days,
    parse_days,
    validate_clock,
)
from rokuoff.models.settings import AppSettings

__all__ = [
    "DAY_NAMES",
    "AppSettings",
    "CommandResult",
    "Device",
    "LogEntry",
    "Schedule",
    "Severity",
    "ValidationOutcome",
    "default_device_name",
    "format_days",
    "manual_device_id",
    "normalize_days",
    "parse_days",
    "validate_clock",
]
