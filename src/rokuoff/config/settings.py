from __future__ import annotations

import json
import os
import tomllib
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from .paths import default_config_path, default_data_dir, expand_path

CONFIG_ENV_VAR = "ROKUOFF_CONFIG"


class DatabaseConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    path: str = Field(default_factory=lambda: str(default_data_dir()))


class DeviceConfig(BaseModel):
    """ECP endpoint settings. Timeouts are in seconds."""

    model_config = {"frozen": True, "extra": "forbid"}

    port: int = Field(default=8060, ge=1, le=65535)
    probe_timeout: float = Field(default=3.0, gt=0, le=3.0)
    command_timeout: float = Field(default=3.0, gt=0, le=3.0)
    info_timeout: float = Field(default=5.0, gt=0, le=5.0)


class DiscoveryConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    timeout: float = Field(default=3.0, gt=0, le=30.0)
    mx: int = Field(default=2, ge=1, le=5)


class SchedulerConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    interval: float = Field(default=60.0, gt=0)


class Settings(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    device: DeviceConfig = Field(default_factory=DeviceConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)


def resolve_config_path(allow_missing: bool = False) -> tuple[Path, bool]:
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        path = expand_path(env_path)
        if not allow_missing and not path.exists():
            raise FileNotFoundError(f"{CONFIG_ENV_VAR} points to missing file: {path}")
        return path, path.exists()

    path = default_config_path()
    return path, path.exists()


def load_settings(path: Path) -> Settings:
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in config file: {path}\n{exc}") from exc

    try:
        return Settings.model_validate(data or {})
    except ValidationError as exc:
        raise ValueError(f"Invalid config file: {path}\n{exc}") from exc


@lru_cache
def get_settings() -> Settings:
    path, exists = resolve_config_path(allow_missing=False)
    if exists:
        return load_settings(path)
    return Settings()


def data_dir_from_settings(settings: Settings) -> Path:
    return expand_path(settings.database.path)


def _toml_string(value: str) -> str:
    return json.dumps(value)


def render_settings_toml(settings: Settings) -> str:
    lines = [
        "# rokuoff configuration",
        "",
        "[database]",
        f"path = {_toml_string(settings.database.path)}",
        "",
        "[device]",
        f"port = {settings.device.port}",
        f"probe_timeout = {settings.device.probe_timeout}",
        f"command_timeout = {settings.device.command_timeout}",
        f"info_timeout = {settings.device.info_timeout}",
        "",
        "[discovery]",
        f"timeout = {settings.discovery.timeout}",
        f"mx = {settings.discovery.mx}",
        "",
        "[scheduler]",
        f"interval = {settings.scheduler.interval}",
        "",
    ]
    return "\n".join(lines)


def write_settings(settings: Settings, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_settings_toml(settings))
