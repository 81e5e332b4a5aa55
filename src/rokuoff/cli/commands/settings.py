from __future__ import annotations

import typer
from rich.console import Console

from rokuoff.cli.common import (
    build_database,
    load_app_settings_or_exit,
    load_settings_or_exit,
    store_or_exit,
)
from rokuoff.models import AppSettings

app = typer.Typer(help="View and change app settings", no_args_is_help=True)


def _print_settings(settings: AppSettings) -> None:
    console = Console()
    console.print(f"Discovery enabled: {settings.discovery_enabled}")
    console.print(f"Scheduler enabled: {settings.scheduler_enabled}")
    console.print(f"Log retention: {settings.log_retention_days} day(s)")


@app.command("show")
def show() -> None:
    """Show app settings."""
    db = build_database(load_settings_or_exit())
    _print_settings(load_app_settings_or_exit(db))


@app.command("set")
def set_settings(
    discovery: bool | None = typer.Option(
        None, "--discovery/--no-discovery", help="Allow network discovery"
    ),
    scheduler: bool | None = typer.Option(
        None, "--scheduler/--no-scheduler", help="Allow the scheduler to run"
    ),
    retention_days: int | None = typer.Option(
        None, "--retention-days", min=1, help="Days of activity log to keep"
    ),
) -> None:
    """Change app settings. Options that are not given keep their value."""
    db = build_database(load_settings_or_exit())
    current = load_app_settings_or_exit(db)

    updates: dict[str, object] = {}
    if discovery is not None:
        updates["discovery_enabled"] = discovery
    if scheduler is not None:
        updates["scheduler_enabled"] = scheduler
    if retention_days is not None:
        updates["log_retention_days"] = retention_days

    updated = current.model_copy(update=updates)
    with store_or_exit():
        db.save_settings(updated)
        for key, value in updates.items():
            db.add_log("info", f"Settings updated: {key} = {value}")
    _print_settings(updated)


@app.command("clear-data")
def clear_data(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Remove all devices, schedules and log entries. This cannot be undone."""
    if not yes:
        typer.confirm(
            "This will remove all devices, schedules, and logs. Continue?", abort=True
        )

    db = build_database(load_settings_or_exit())
    with store_or_exit():
        db.clear_all()
    Console().print("[green]✓[/green] All data has been cleared")
