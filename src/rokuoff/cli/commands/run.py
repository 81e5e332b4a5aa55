from __future__ import annotations

import logging
import signal
import threading

import typer
from rich.console import Console

from rokuoff.cli.common import (
    build_client,
    build_database,
    load_app_settings_or_exit,
    load_settings_or_exit,
)
from rokuoff.core import SchedulerDaemon

logger = logging.getLogger(__name__)


def register(app: typer.Typer) -> None:
    @app.command()
    def run(
        once: bool = typer.Option(
            False, "--once", help="Evaluate schedules for the current minute and exit"
        ),
    ) -> None:
        """Run the scheduler in the foreground."""
        console = Console()
        settings = load_settings_or_exit()
        db = build_database(settings)

        if not load_app_settings_or_exit(db).scheduler_enabled:
            console.print(
                "[yellow]![/yellow] Scheduler is disabled. "
                "Enable it with 'rokuoff settings set --scheduler'."
            )
            raise typer.Exit(1)

        daemon = SchedulerDaemon(
            db, build_client(settings), interval=settings.scheduler.interval
        )

        if once:
            results = daemon.tick()
            failed = sum(1 for result in results if not result.success)
            console.print(f"Sent {len(results)} command(s), {failed} failed")
            return

        # the handler only flags shutdown; stop() runs on the main loop below
        shutdown = threading.Event()
        signal.signal(signal.SIGTERM, lambda *_: shutdown.set())

        console.print(
            f"Scheduler running, checking every {settings.scheduler.interval:g}s. "
            "Press Ctrl+C to stop."
        )
        logger.info("Using data directory %s", db.path)
        daemon.start()
        try:
            while daemon.is_running() and not shutdown.wait(1.0):
                pass
        except KeyboardInterrupt:
            console.print("Stopping scheduler...")
        finally:
            daemon.stop()
            if not daemon.wait(10.0):
                logger.warning("Scheduler worker still busy, exiting anyway")
