"""Background scheduler that powers devices off at their scheduled times.

The daemon has two states, stopped and running. While running, a single
worker thread evaluates the schedules once per interval; device commands in a
tick are sent one at a time. Failures are written to the activity log and
never stop the daemon.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from datetime import datetime

from rokuoff.core.client import DeviceClient
from rokuoff.core.evaluator import due_schedules
from rokuoff.models import CommandResult, Device, Schedule, Severity
from rokuoff.storage import Database

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 60.0
# seconds past the minute boundary
TICK_OFFSET = 1.0

_LOG_LEVELS = {
    "info": logging.INFO,
    "success": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class SchedulerDaemon:
    def __init__(
        self,
        store: Database,
        client: DeviceClient,
        interval: float = DEFAULT_INTERVAL,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self._client = client
        self._interval = interval
        self._clock = clock
        self._lock = threading.Lock()
        self._stop_event: threading.Event | None = None
        self._thread: threading.Thread | None = None
        self._last_minute: str | None = None

    def is_running(self) -> bool:
        return self._stop_event is not None

    def start(self) -> None:
        """Evaluate once right away, then every interval until stopped."""
        with self._lock:
            if self._stop_event is not None:
                return
            stop_event = threading.Event()
            self._stop_event = stop_event
            self._record("info", "Scheduler started - checking every minute")

        # stop() may be called while this first tick runs
        self.tick()

        with self._lock:
            if stop_event.is_set():
                return
            self._thread = threading.Thread(
                target=self._run,
                args=(stop_event,),
                name="rokuoff-scheduler",
                daemon=True,
            )
            self._thread.start()

    def stop(self) -> None:
        """Prevent further ticks. A tick already underway runs to completion."""
        with self._lock:
            if self._stop_event is None:
                return
            self._stop_event.set()
            self._stop_event = None
            self._record("info", "Scheduler stopped")

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the worker thread exits. Returns False on timeout."""
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def _run(self, stop_event: threading.Event) -> None:
        next_at = time.monotonic() + self._delay_to_next_tick()
        while not stop_event.wait(max(0.0, next_at - time.monotonic())):
            self.tick()
            next_at = self._next_deadline(next_at)
        logger.debug("Scheduler worker exiting")

    def _next_deadline(self, previous: float) -> float:
        now = time.monotonic()
        if self._interval >= 60:
            if now - previous >= self._interval:
                logger.warning("Tick overran the %gs interval", self._interval)
            return now + self._delay_to_next_tick()

        next_at = previous + self._interval
        if next_at <= now:
            skipped = int((now - next_at) // self._interval) + 1
            logger.warning("Tick overran, skipping %d tick(s)", skipped)
            next_at += skipped * self._interval
        return next_at

    def _delay_to_next_tick(self) -> float:
        """Seconds until the next tick.

        Intervals of a minute or more are re-aligned to the wall clock on every
        tick, landing just after a minute boundary, so clock slew does not
        add up to a skipped minute.
        """
        if self._interval < 60:
            return self._interval
        wall = self._clock()
        into_minute = wall.second + wall.microsecond / 1_000_000
        return self._interval - into_minute + TICK_OFFSET

    def tick(self) -> list[CommandResult]:
        """Run every schedule due in the current minute.

        A minute that has already been evaluated is not evaluated again.
        """
        now = self._clock()
        minute = now.strftime("%Y-%m-%d %H:%M")
        if minute == self._last_minute:
            logger.debug("Minute %s already evaluated", minute)
            return []
        self._last_minute = minute

        results: list[CommandResult] = []
        try:
            schedules = self._store.get_schedules()
            devices = {device.id: device for device in self._store.get_devices()}

            for schedule in due_schedules(schedules, now):
                device = devices.get(schedule.device_id)
                if device is None:
                    logger.debug(
                        "Skipping schedule %s: device %s no longer exists",
                        schedule.id,
                        schedule.device_id,
                    )
                    continue
                results.append(self.execute_schedule(schedule, device))

            retention = self._store.get_settings().log_retention_days
            self._store.prune_logs(retention)
        except Exception as exc:
            logger.exception("Scheduler tick failed")
            self._record("error", f"Scheduler error: {exc}")
        return results

    def execute_schedule(self, schedule: Schedule, device: Device) -> CommandResult:
        logger.debug("Executing schedule %s at %s", schedule.id, schedule.time)
        self._record(
            "info",
            f"Executing schedule for {device.name} ({device.address})",
            device.name,
        )

        result = self._client.send_power_off(device.address)

        if result.success:
            self._record(
                "success",
                f"Power off command sent successfully to {device.name}",
                device.name,
            )
        else:
            self._record(
                "error",
                f"Failed to send power off command to {device.name}: "
                f"{result.error or 'Unknown error'}",
                device.name,
            )
        return result

    def _record(
        self, severity: Severity, message: str, device_name: str | None = None
    ) -> None:
        logger.log(_LOG_LEVELS[severity], message)
        try:
            self._store.add_log(severity, message, device_name)
        except Exception:
            logger.exception("Could not write activity log entry")
