from __future__ import annotations

import json
import os
import tempfile
import threading
import uuid
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from rokuoff.models import AppSettings, Device, LogEntry, Schedule, Severity

DEVICES_FILE = "devices.json"
SCHEDULES_FILE = "schedules.json"
LOGS_FILE = "logs.json"
SETTINGS_FILE = "settings.json"

MAX_LOG_ENTRIES = 1000

_devices_adapter = TypeAdapter(list[Device])
_schedules_adapter = TypeAdapter(list[Schedule])
_logs_adapter = TypeAdapter(list[LogEntry])


def _now() -> datetime:
    return datetime.now().astimezone()


class Database:
    """JSON-file store for devices, schedules, the activity log and app settings.

    Each collection lives in its own file under ``data_dir``. Missing files read
    as empty collections (or default settings); unreadable files raise
    ``ValueError`` naming the file.
    """

    def __init__(self, data_dir: Path) -> None:
        self._data_dir = data_dir
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._data_dir

    @property
    def devices_path(self) -> Path:
        return self._data_dir / DEVICES_FILE

    @property
    def schedules_path(self) -> Path:
        return self._data_dir / SCHEDULES_FILE

    @property
    def logs_path(self) -> Path:
        return self._data_dir / LOGS_FILE

    @property
    def settings_path(self) -> Path:
        return self._data_dir / SETTINGS_FILE

    def ensure_dirs(self) -> None:
        self._data_dir.mkdir(parents=True, exist_ok=True)

    def _read(self, path: Path) -> Any:
        if not path.exists():
            return None
        try:
            with path.open("r", encoding="utf-8") as handle:
                return json.load(handle)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in data file: {path}\n{exc}") from exc

    def _write(self, path: Path, payload: bytes) -> None:
        self.ensure_dirs()
        fd, tmp_name = tempfile.mkstemp(dir=self._data_dir, prefix=f".{path.name}.")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _load_list(self, path: Path, adapter: TypeAdapter[Any]) -> Any:
        data = self._read(path)
        if data is None:
            return []
        try:
            return adapter.validate_python(data)
        except ValidationError as exc:
            raise ValueError(f"Invalid data file: {path}\n{exc}") from exc

    # Devices
    def get_devices(self) -> list[Device]:
        with self._lock:
            return self._load_list(self.devices_path, _devices_adapter)

    def save_devices(self, devices: list[Device]) -> None:
        with self._lock:
            self._write(
                self.devices_path, _devices_adapter.dump_json(devices, indent=2)
            )

    # Schedules
    def get_schedules(self) -> list[Schedule]:
        with self._lock:
            return self._load_list(self.schedules_path, _schedules_adapter)

    def save_schedules(self, schedules: list[Schedule]) -> None:
        with self._lock:
            self._write(
                self.schedules_path, _schedules_adapter.dump_json(schedules, indent=2)
            )

    # Activity log, newest first
    def get_logs(self) -> list[LogEntry]:
        with self._lock:
            return self._load_list(self.logs_path, _logs_adapter)

    def _save_logs(self, logs: list[LogEntry]) -> None:
        self._write(self.logs_path, _logs_adapter.dump_json(logs, indent=2))

    def add_log(
        self, severity: Severity, message: str, device_name: str | None = None
    ) -> LogEntry:
        entry = LogEntry(
            id=uuid.uuid4().hex,
            timestamp=_now(),
            severity=severity,
            message=message,
            device_name=device_name,
        )
        with self._lock:
            logs = self.get_logs()
            logs.insert(0, entry)
            self._save_logs(logs[:MAX_LOG_ENTRIES])
        return entry

    def clear_logs(self) -> None:
        with self._lock:
            self.logs_path.unlink(missing_ok=True)

    def prune_logs(self, retention_days: int, now: datetime | None = None) -> int:
        """Drop entries older than ``retention_days``. Returns the number removed."""
        cutoff = _aware((now or _now()) - timedelta(days=retention_days))
        with self._lock:
            logs = self.get_logs()
            kept = [entry for entry in logs if _aware(entry.timestamp) >= cutoff]
            removed = len(logs) - len(kept)
            if removed:
                self._save_logs(kept)
        return removed

    # App settings
    def get_settings(self) -> AppSettings:
        with self._lock:
            data = self._read(self.settings_path)
        if data is None:
            return AppSettings()
        try:
            return AppSettings.model_validate(data)
        except ValidationError as exc:
            raise ValueError(
                f"Invalid settings file: {self.settings_path}\n{exc}"
            ) from exc

    def save_settings(self, settings: AppSettings) -> None:
        with self._lock:
            self._write(
                self.settings_path, settings.model_dump_json(indent=2).encode("utf-8")
            )

    def clear_all(self) -> None:
        """Remove every device, schedule and log entry. App settings are kept."""
        with self._lock:
            self.save_devices([])
            self.save_schedules([])
            self.clear_logs()

    def init(self) -> bool:
        """Create the data directory and empty collections. Returns True if created."""
        with self._lock:
            created = not self._data_dir.exists()
            self.ensure_dirs()
            if not self.devices_path.exists():
                self.save_devices([])
            if not self.schedules_path.exists():
                self.save_schedules([])
            if not self.settings_path.exists():
                self.save_settings(AppSettings())
        return created


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.astimezone()
