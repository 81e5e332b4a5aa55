from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer

from rokuoff.config import (
    Settings,
    data_dir_from_settings,
    get_settings,
    resolve_config_path,
)
from rokuoff.core import DeviceClient
from rokuoff.models import AppSettings
from rokuoff.storage import Database


def load_settings_or_exit() -> Settings:
    try:
        return get_settings()
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc


def resolve_config_path_or_exit(allow_missing: bool = False) -> tuple[Path, bool]:
    try:
        return resolve_config_path(allow_missing=allow_missing)
    except FileNotFoundError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc


def load_app_settings_or_exit(db: Database) -> AppSettings:
    try:
        return db.get_settings()
    except (OSError, ValueError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc


@contextmanager
def store_or_exit() -> Iterator[None]:
    """Report store and input errors on stderr and exit with status 1."""
    try:
        yield
    except (OSError, ValueError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc


def fail(message: str) -> typer.Exit:
    """Print ``message`` to stderr and return an Exit for the caller to raise."""
    typer.echo(message, err=True)
    return typer.Exit(1)


def build_database(settings: Settings, data_dir: Path | None = None) -> Database:
    path = data_dir or data_dir_from_settings(settings)
    return Database(path)


def build_client(settings: Settings) -> DeviceClient:
    return DeviceClient(settings.device, settings.discovery)
