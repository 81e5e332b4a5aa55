from __future__ import annotations

from datetime import datetime

import typer
from rich.console import Console
from rich.table import Table

from rokuoff.cli.common import (
    build_client,
    build_database,
    fail,
    load_app_settings_or_exit,
    load_settings_or_exit,
    store_or_exit,
)
from rokuoff.core import (
    DeviceClient,
    add_manual_device,
    find_device,
    merge_discovered,
    power_off_all,
    refresh_status,
    remove_device,
)
from rokuoff.models import Device
from rokuoff.storage import Database
from rokuoff.utils.redaction import Redactor

app = typer.Typer(help="Manage Roku devices", no_args_is_help=True)


def _format_seen(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "never"


def _device_table(devices: list[Device], redactor: Redactor) -> Table:
    table = Table()
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="green")
    table.add_column("Address")
    table.add_column("Source")
    table.add_column("Status")
    table.add_column("Last Seen")

    for device in devices:
        status = "[green]online[/green]" if device.is_online else "[red]offline[/red]"
        table.add_row(
            redactor.redact_id(device.id),
            device.name,
            redactor.redact_address(device.address),
            "manual" if device.is_manual else "discovered",
            status,
            _format_seen(device.last_seen_at),
        )
    return table


@app.command("list")
def list_devices(
    redact: bool = typer.Option(
        False, "--redact", help="Redact addresses and serials in output"
    ),
) -> None:
    """List registered devices."""
    settings = load_settings_or_exit()
    db = build_database(settings)
    with store_or_exit():
        devices = db.get_devices()

    console = Console()
    if not devices:
        console.print("No devices registered.")
        console.print("Use 'rokuoff devices discover' or 'rokuoff devices add'.")
        return

    console.print(_device_table(devices, Redactor(enabled=redact)))
    console.print(f"\n{len(devices)} device(s)")


@app.command("add")
def add_device(
    address: str = typer.Argument(..., help="IP address or hostname of the device"),
    name: str | None = typer.Option(None, "--name", "-n", help="Display name"),
    validate: bool = typer.Option(
        True, help="Query the device for its name and status before adding"
    ),
) -> None:
    """Add a device by address."""
    settings = load_settings_or_exit()
    db = build_database(settings)
    client = build_client(settings)

    with store_or_exit():
        device = add_manual_device(db, client, address, name=name, validate=validate)

    console = Console()
    console.print(f"[green]✓[/green] Added '{device.name}' as {device.id}")
    if validate and not device.is_online:
        console.print("[yellow]![/yellow] Device did not respond; it is marked offline")


@app.command("remove")
def remove(ref: str = typer.Argument(..., help="Device id, address or name")) -> None:
    """Remove a device. Its schedules are kept but will be skipped."""
    settings = load_settings_or_exit()
    db = build_database(settings)

    console = Console()
    with store_or_exit():
        device = find_device(db.get_devices(), ref)
        removed = device is not None and remove_device(db, device.id)
    if device is None or not removed:
        console.print(f"[yellow]![/yellow] Device '{ref}' not found")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Removed device '{device.name}'")


@app.command("discover")
def discover(
    save: bool = typer.Option(True, help="Add newly found devices to the registry"),
    force: bool = typer.Option(
        False, "--force", help="Search even if discovery is disabled in settings"
    ),
    redact: bool = typer.Option(False, "--redact", help="Redact sensitive values"),
) -> None:
    """Search the local network for Roku devices via SSDP."""
    console = Console()
    settings = load_settings_or_exit()
    db = build_database(settings)

    if not force and not load_app_settings_or_exit(db).discovery_enabled:
        console.print("[yellow]![/yellow] Discovery is disabled (use --force).")
        raise typer.Exit(1)

    console.print("Searching for Roku devices...")
    devices = build_client(settings).discover()

    if not devices:
        console.print("No Roku devices found.")
        return

    console.print(_device_table(devices, Redactor(enabled=redact)))
    console.print(f"\n[green]Found {len(devices)} device(s)[/green]")

    if save:
        with store_or_exit():
            added = merge_discovered(db, devices)
        console.print(f"[green]✓[/green] Added {len(added)} new device(s)")


@app.command("probe")
def probe() -> None:
    """Check which registered devices are reachable."""
    settings = load_settings_or_exit()
    db = build_database(settings)
    with store_or_exit():
        devices = refresh_status(db, build_client(settings))

    console = Console()
    if not devices:
        console.print("No devices registered.")
        return
    console.print(_device_table(devices, Redactor(enabled=False)))
    online = sum(1 for device in devices if device.is_online)
    console.print(f"\n{online}/{len(devices)} device(s) online")


def _power_off_everything(db: Database, client: DeviceClient) -> None:
    console = Console()
    with store_or_exit():
        results = power_off_all(db, client)

    if not results:
        console.print("No devices registered.")
        return

    failed = 0
    for device, result in results:
        if result.success:
            console.print(f"[green]✓[/green] {device.name}")
        else:
            failed += 1
            console.print(f"[red]✗[/red] {device.name}: {result.error}")
    console.print(f"\nTested {len(results)} device(s), {failed} failed")
    if failed:
        raise typer.Exit(1)


@app.command("power-off")
def power_off(
    ref: str | None = typer.Argument(None, help="Device id, address or name"),
    all_devices: bool = typer.Option(
        False, "--all", help="Send the command to every registered device"
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Send the power command to a device now."""
    if all_devices and ref is not None:
        raise fail("Pass a device or --all, not both")
    if not all_devices and ref is None:
        raise fail("Pass a device, or --all for every device")

    settings = load_settings_or_exit()
    db = build_database(settings)
    client = build_client(settings)

    if all_devices:
        if not yes:
            typer.confirm("Send a power off command to all devices?", abort=True)
        _power_off_everything(db, client)
        return

    assert ref is not None
    with store_or_exit():
        device = find_device(db.get_devices(), ref)
    if device is None:
        raise fail(f"Device '{ref}' not found")

    result = client.send_power_off(device.address)

    console = Console()
    with store_or_exit():
        if result.success:
            db.add_log(
                "success", f"Manual power off sent to {device.name}", device.name
            )
        else:
            db.add_log(
                "error",
                f"Manual power off failed for {device.name}: {result.error}",
                device.name,
            )
    if not result.success:
        console.print(f"[red]✗[/red] {result.error}")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Power off sent to '{device.name}'")
