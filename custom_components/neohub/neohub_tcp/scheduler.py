"""
Background scheduler for recurring hub tasks.

Runs callbacks on daemon worker threads with fixed-delay semantics: the
next run is scheduled ``delay`` seconds after the previous run finished,
so a slow hub exchange stretches the cadence rather than queueing runs.

Usage:
    scheduler = Scheduler()
    task = scheduler.schedule_with_fixed_delay(poll, 60, 60, name="lazy")

    # Later, from any thread:
    task.cancel()
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

_LOGGER = logging.getLogger(__name__)


class RecurringTask:
    """
    Handle for one recurring callback running on its own worker thread.

    Attributes:
        name: Name for logging/identification
        initial_delay: Seconds before the first run
        delay: Seconds between the end of one run and the start of the next
    """

    def __init__(
        self,
        callback: Callable[[], None],
        initial_delay: float,
        delay: float,
        name: str = "unnamed",
        logger: logging.Logger = None,
    ):
        self.callback = callback
        self.initial_delay = initial_delay
        self.delay = delay
        self.name = name
        self.logger = logger or _LOGGER

        self._cancelled = threading.Event()
        self._thread: threading.Thread | None = None

        # Observability metrics
        self._execution_count: int = 0
        self._error_count: int = 0
        self._last_execution_time: float = 0

    def start(self) -> None:
        """Spawn the worker thread."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._run, daemon=True, name=f"neohub-{self.name}"
        )
        self._thread.start()

    def cancel(self) -> None:
        """
        Stop scheduling further runs.

        A run already in progress is allowed to finish. Safe to call more
        than once and from any thread, including the task's own callback.
        """
        self._cancelled.set()

    def join(self, timeout: float | None = None) -> None:
        """Wait for the worker thread to exit (after cancel)."""
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def _run(self) -> None:
        if self._cancelled.wait(self.initial_delay):
            return

        while not self._cancelled.is_set():
            try:
                start = time.monotonic()
                self.callback()
                self._last_execution_time = time.monotonic() - start
                self._execution_count += 1
            except Exception:
                self._error_count += 1
                self.logger.exception("Scheduled callback '%s' error", self.name)

            if self._cancelled.wait(self.delay):
                break

        self.logger.debug("Scheduled task '%s' stopped", self.name)

    @property
    def execution_count(self) -> int:
        """Total number of successful executions."""
        return self._execution_count

    def get_stats(self) -> dict:
        """Get task statistics for diagnostics."""
        return {
            "name": self.name,
            "delay_s": self.delay,
            "cancelled": self.cancelled,
            "execution_count": self._execution_count,
            "error_count": self._error_count,
            "last_execution_s": round(self._last_execution_time, 3),
        }


class Scheduler:
    """Creates recurring tasks; shared by everything one hub schedules."""

    def __init__(self, logger: logging.Logger = None):
        self.logger = logger or _LOGGER

    def schedule_with_fixed_delay(
        self,
        callback: Callable[[], None],
        initial_delay: float,
        delay: float,
        name: str = "unnamed",
    ) -> RecurringTask:
        """Create and start a recurring task."""
        task = RecurringTask(callback, initial_delay, delay, name, self.logger)
        task.start()
        self.logger.debug(
            "Scheduled task '%s' every %ss (first run in %ss)", name, delay, initial_delay
        )
        return task
