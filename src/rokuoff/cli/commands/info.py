from __future__ import annotations

import typer
from rich.console import Console

from rokuoff.cli.common import (
    build_database,
    load_settings_or_exit,
    resolve_config_path_or_exit,
    store_or_exit,
)


def register(app: typer.Typer) -> None:
    @app.command()
    def info() -> None:
        """Show data directory info and stats."""
        settings = load_settings_or_exit()
        db = build_database(settings)
        with store_or_exit():
            devices = db.get_devices()
            schedules = db.get_schedules()
            logs = db.get_logs()
            app_settings = db.get_settings()

        config_path, config_exists = resolve_config_path_or_exit(allow_missing=True)

        console = Console()

        console.print("[bold]rokuoff info[/bold]\n")
        console.print(f"Data directory: {db.path}")
        console.print(f"Config file: {config_path if config_exists else 'defaults'}")

        console.print("\n[bold]Configuration[/bold]")
        console.print(f"Device port: {settings.device.port}")
        console.print(f"Command timeout: {settings.device.command_timeout}s")
        console.print(f"Check interval: {settings.scheduler.interval}s")

        console.print("\n[bold]Settings[/bold]")
        console.print(f"Discovery enabled: {app_settings.discovery_enabled}")
        console.print(f"Scheduler enabled: {app_settings.scheduler_enabled}")
        console.print(f"Log retention: {app_settings.log_retention_days} day(s)")

        console.print("\n[bold]Statistics[/bold]")
        online = sum(1 for device in devices if device.is_online)
        enabled = sum(1 for schedule in schedules if schedule.is_enabled)
        console.print(f"Devices: {len(devices)} ({online} online)")
        console.print(f"Schedules: {len(schedules)} ({enabled} enabled)")
        console.print(f"Log entries: {len(logs)}")
        if logs:
            console.print(f"Last activity: {logs[0].timestamp:%Y-%m-%d %H:%M:%S}")
