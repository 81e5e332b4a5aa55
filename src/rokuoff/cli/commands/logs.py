from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from rokuoff.cli.common import (
    build_database,
    fail,
    load_app_settings_or_exit,
    load_settings_or_exit,
    store_or_exit,
)

app = typer.Typer(help="Inspect the activity log", no_args_is_help=True)

SEVERITY_STYLES = {
    "info": "blue",
    "success": "green",
    "warning": "yellow",
    "error": "red",
}


@app.command("list")
def list_logs(
    limit: int = typer.Option(50, "--limit", "-n", min=1, help="Entries to show"),
    severity: str | None = typer.Option(
        None, "--severity", "-s", help="Only show info, success, warning or error"
    ),
) -> None:
    """Show recent activity, newest first."""
    if severity is not None and severity not in SEVERITY_STYLES:
        raise fail(f"Unknown severity: {severity}")

    settings = load_settings_or_exit()
    db = build_database(settings)
    with store_or_exit():
        logs = db.get_logs()

    if severity is not None:
        logs = [entry for entry in logs if entry.severity == severity]

    console = Console()
    if not logs:
        console.print("No activity recorded.")
        return

    table = Table()
    table.add_column("Time", no_wrap=True)
    table.add_column("Level")
    table.add_column("Device", style="green")
    table.add_column("Message")

    for entry in logs[:limit]:
        style = SEVERITY_STYLES[entry.severity]
        table.add_row(
            entry.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            f"[{style}]{entry.severity}[/{style}]",
            entry.device_name or "",
            entry.message,
        )

    console.print(table)
    if len(logs) > limit:
        console.print(f"\nShowing {limit} of {len(logs)} entries")


@app.command("clear")
def clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete all activity log entries."""
    if not yes:
        typer.confirm("Delete all activity log entries?", abort=True)

    settings = load_settings_or_exit()
    with store_or_exit():
        build_database(settings).clear_logs()
    Console().print("[green]✓[/green] Activity log cleared")


@app.command("prune")
def prune() -> None:
    """Drop entries older than the configured retention period."""
    settings = load_settings_or_exit()
    db = build_database(settings)
    retention = load_app_settings_or_exit(db).log_retention_days
    with store_or_exit():
        removed = db.prune_logs(retention)
    Console().print(
        f"[green]✓[/green] Removed {removed} entries older than {retention} day(s)"
    )
