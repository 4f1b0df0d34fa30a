"""Runs the hub's recurring tasks on Home Assistant timers."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable

from homeassistant.core import CALLBACK_TYPE, HomeAssistant, callback
from homeassistant.helpers.event import async_call_later, async_track_time_interval

_LOGGER = logging.getLogger(__name__)


class HassRecurringTask:
    """
    One recurring hub task driven by the event loop.

    The first run happens after ``initial_delay``, then every ``delay``
    seconds. Each run executes on an executor thread; a tick that arrives
    while the previous run is still busy is skipped.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        job: Callable[[], None],
        initial_delay: float,
        delay: float,
        name: str = "unnamed",
    ) -> None:
        self.hass = hass
        self.job = job
        self.initial_delay = initial_delay
        self.delay = delay
        self.name = name

        self._cancelled = False
        self._running = False
        self._unsub: CALLBACK_TYPE | None = None
        self._execution_count = 0
        self._error_count = 0

    @callback
    def async_start(self) -> None:
        """Arm the first run. Must be called from the event loop."""
        if self._unsub is not None or self._cancelled:
            return
        self._unsub = async_call_later(self.hass, self.initial_delay, self._async_first_tick)

    async def _async_first_tick(self, now: datetime) -> None:
        if self._cancelled:
            return
        self._unsub = async_track_time_interval(
            self.hass, self._async_tick, timedelta(seconds=self.delay)
        )
        await self._async_tick(now)

    async def _async_tick(self, now: datetime) -> None:
        if self._cancelled:
            return
        if self._running:
            _LOGGER.debug("Skipping '%s' run, previous run still busy", self.name)
            return

        self._running = True
        try:
            await self.hass.async_add_executor_job(self.job)
            self._execution_count += 1
        except Exception:
            self._error_count += 1
            _LOGGER.exception("Scheduled callback '%s' error", self.name)
        finally:
            self._running = False

    @callback
    def cancel(self) -> None:
        """Stop further runs; a run already on an executor thread finishes."""
        self._cancelled = True
        unsub, self._unsub = self._unsub, None
        if unsub is not None:
            unsub()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def execution_count(self) -> int:
        return self._execution_count

    def get_stats(self) -> dict:
        return {
            "name": self.name,
            "delay_s": self.delay,
            "cancelled": self._cancelled,
            "execution_count": self._execution_count,
            "error_count": self._error_count,
        }


class HassScheduler:
    """Drop-in for the library scheduler that arms its tasks on the event loop."""

    def __init__(self, hass: HomeAssistant) -> None:
        self.hass = hass

    @callback
    def schedule_with_fixed_delay(
        self,
        job: Callable[[], None],
        initial_delay: float,
        delay: float,
        name: str = "unnamed",
    ) -> HassRecurringTask:
        task = HassRecurringTask(self.hass, job, initial_delay, delay, name)
        task.async_start()
        _LOGGER.debug(
            "Scheduled task '%s' every %ss (first run in %ss)", name, delay, initial_delay
        )
        return task
