from __future__ import annotations

from datetime import datetime, timedelta

import typer
from rich.console import Console
from rich.table import Table

from rokuoff.cli.common import (
    build_database,
    fail,
    load_settings_or_exit,
    store_or_exit,
)
from rokuoff.core import (
    create_schedule,
    due_schedules,
    find_device,
    remove_schedule,
    set_enabled,
    update_schedule,
    weekday_index,
)
from rokuoff.models import Schedule, format_days, parse_days, validate_clock

app = typer.Typer(help="Manage power-off schedules", no_args_is_help=True)

DAYS_HELP = "Days to run: 'mon,wed', '1,3', 'weekdays', 'weekends' or 'daily'"


def _parse_days_or_exit(value: str) -> list[int]:
    try:
        return parse_days(value)
    except ValueError as exc:
        raise fail(str(exc)) from exc


def _schedule_table(schedules: list[Schedule], device_ids: set[str]) -> Table:
    table = Table()
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Device", style="green")
    table.add_column("Time")
    table.add_column("Days")
    table.add_column("Enabled")

    for schedule in sorted(schedules, key=lambda s: (s.time, s.device_name)):
        device = schedule.device_name
        if schedule.device_id not in device_ids:
            device += " [dim](removed)[/dim]"
        table.add_row(
            schedule.id[:8],
            device,
            schedule.time,
            format_days(schedule.days),
            "[green]yes[/green]" if schedule.is_enabled else "[dim]no[/dim]",
        )
    return table


def _resolve_id(schedules: list[Schedule], ref: str) -> str:
    """Accept a full id or an unambiguous prefix, as shown by 'list'."""
    matches = [s.id for s in schedules if s.id.startswith(ref)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        raise fail(f"Schedule '{ref}' not found")
    raise fail(f"Schedule id '{ref}' is ambiguous")


@app.command("list")
def list_schedules() -> None:
    """List schedules."""
    settings = load_settings_or_exit()
    db = build_database(settings)
    with store_or_exit():
        schedules = db.get_schedules()
        device_ids = {device.id for device in db.get_devices()}

    console = Console()
    if not schedules:
        console.print("No schedules defined.")
        return

    console.print(_schedule_table(schedules, device_ids))
    console.print(f"\n{len(schedules)} schedule(s)")


@app.command("add")
def add_schedule(
    device: str = typer.Argument(..., help="Device id, address or name"),
    time: str = typer.Argument(..., help="Time of day, HH:MM (24h)"),
    days: str = typer.Option("daily", "--days", "-d", help=DAYS_HELP),
    disabled: bool = typer.Option(False, "--disabled", help="Create it disabled"),
) -> None:
    """Schedule a device to be powered off at a time of day."""
    settings = load_settings_or_exit()
    db = build_database(settings)

    with store_or_exit():
        target = find_device(db.get_devices(), device)
    if target is None:
        raise fail(f"Device '{device}' not found")

    selected_days = _parse_days_or_exit(days)
    with store_or_exit():
        schedule = create_schedule(
            db, target.id, time, selected_days, enabled=not disabled
        )

    Console().print(
        f"[green]✓[/green] Scheduled '{target.name}' at {schedule.time} "
        f"({format_days(schedule.days)}) as {schedule.id[:8]}"
    )


def _toggle(ref: str, enabled: bool) -> None:
    settings = load_settings_or_exit()
    db = build_database(settings)
    with store_or_exit():
        schedule_id = _resolve_id(db.get_schedules(), ref)
        schedule = set_enabled(db, schedule_id, enabled)
    state = "enabled" if schedule.is_enabled else "disabled"
    Console().print(f"[green]✓[/green] Schedule {schedule.id[:8]} {state}")


@app.command("enable")
def enable(ref: str = typer.Argument(..., help="Schedule id or prefix")) -> None:
    """Enable a schedule."""
    _toggle(ref, True)


@app.command("disable")
def disable(ref: str = typer.Argument(..., help="Schedule id or prefix")) -> None:
    """Disable a schedule without deleting it."""
    _toggle(ref, False)


@app.command("edit")
def edit(
    ref: str = typer.Argument(..., help="Schedule id or prefix"),
    time: str | None = typer.Option(None, "--time", "-t", help="New time, HH:MM"),
    days: str | None = typer.Option(None, "--days", "-d", help=DAYS_HELP),
) -> None:
    """Change the time or days of a schedule."""
    if time is None and days is None:
        raise fail("Nothing to change; pass --time and/or --days")

    settings = load_settings_or_exit()
    db = build_database(settings)
    new_days = None if days is None else _parse_days_or_exit(days)
    with store_or_exit():
        schedule_id = _resolve_id(db.get_schedules(), ref)
        schedule = update_schedule(db, schedule_id, time=time, days=new_days)

    Console().print(
        f"[green]✓[/green] Schedule {schedule.id[:8]} now runs at {schedule.time} "
        f"({format_days(schedule.days)})"
    )


@app.command("remove")
def remove(ref: str = typer.Argument(..., help="Schedule id or prefix")) -> None:
    """Delete a schedule."""
    settings = load_settings_or_exit()
    db = build_database(settings)
    with store_or_exit():
        schedule_id = _resolve_id(db.get_schedules(), ref)
        remove_schedule(db, schedule_id)
    Console().print(f"[green]✓[/green] Removed schedule {schedule_id[:8]}")


@app.command("due")
def due(
    at: str | None = typer.Option(None, "--at", help="Time to check, HH:MM"),
    day: str | None = typer.Option(None, "--day", help="Weekday to check, e.g. 'sat'"),
) -> None:
    """Show which schedules would fire at a given time (default: now)."""
    now = datetime.now()
    if at is not None:
        try:
            clock = validate_clock(at)
        except ValueError as exc:
            raise fail(str(exc)) from exc
        now = now.replace(hour=int(clock[:2]), minute=int(clock[3:]), second=0)
    if day is not None:
        days = _parse_days_or_exit(day)
        if len(days) != 1:
            raise fail("--day takes a single weekday")
        now += timedelta(days=(days[0] - weekday_index(now)) % 7)

    settings = load_settings_or_exit()
    db = build_database(settings)
    with store_or_exit():
        matches = due_schedules(db.get_schedules(), now)
        device_ids = {device.id for device in db.get_devices()}

    console = Console()
    label = now.strftime("%a %H:%M")
    if not matches:
        console.print(f"Nothing due at {label}.")
        return
    console.print(_schedule_table(matches, device_ids))
    console.print(f"\n{len(matches)} schedule(s) due at {label}")
