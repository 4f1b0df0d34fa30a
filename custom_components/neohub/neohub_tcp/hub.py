"""Dual-rate polling supervisor for a NeoHub."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Iterable, Optional

from .client import NeoHubSocket
from .const import (
    CMD_CODE_INFO,
    CMD_CODE_READ_DCB,
    FAST_POLL_CYCLES,
    FAST_POLL_INTERVAL,
    LAZY_POLL_INTERVAL,
    MSG_FMT_DCB_POLL_ERR,
    MSG_FMT_INFO_POLL_ERR,
    MSG_FMT_SET_VALUE_ERR,
    MSG_HUB_CONFIG,
)
from .models import (
    HubHealth,
    NeoHubConfiguration,
    NeoHubInfoResponse,
    NeoHubPollSink,
    NeoHubReadDcbResponse,
    NeoHubReturnResult,
    TemperatureUnit,
)
from .parser import create_info_response, create_read_dcb_response
from .scheduler import RecurringTask, Scheduler

_LOGGER = logging.getLogger(__name__)

StatusListener = Callable[[HubHealth, Optional[str]], None]
SinkProvider = Callable[[], Iterable[NeoHubPollSink]]
ConnectionFactory = Callable[[str, int], NeoHubSocket]


class FastPollingCounter:
    """Number of fast polling cycles still to go; never negative."""

    def __init__(self, value: int = 0):
        self._lock = threading.Lock()
        self._value = value

    def get(self) -> int:
        with self._lock:
            return self._value

    def set(self, value: int) -> None:
        with self._lock:
            self._value = value

    def decrement_if_positive(self) -> int:
        """Counts one cycle down unless already at zero, returns the new value."""
        with self._lock:
            if self._value > 0:
                self._value -= 1
            return self._value


class NeoHub:
    """
    Supervises the connection to one NeoHub.

    Two recurring tasks share the hub: a lazy one at the configured polling
    interval, and a fast one at FAST_POLL_INTERVAL which only polls while a
    burst is in progress. Commands start a burst so their effect shows up
    quickly. Only one exchange with the hub is in flight at any time.
    """

    def __init__(
        self,
        config: NeoHubConfiguration,
        sink_provider: Optional[SinkProvider] = None,
        status_listener: Optional[StatusListener] = None,
        scheduler: Optional[Scheduler] = None,
        connection_factory: Optional[ConnectionFactory] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config
        self.logger = logger or _LOGGER
        self._sink_provider = sink_provider or (lambda: ())
        self._status_listener = status_listener
        self._scheduler = scheduler or Scheduler(self.logger)
        self._connection_factory = connection_factory or NeoHubSocket

        self._socket: Optional[NeoHubSocket] = None
        self._lazy_polling_scheduler: Optional[RecurringTask] = None
        self._fast_polling_scheduler: Optional[RecurringTask] = None

        # one outbound exchange with the hub at a time
        self._exchange_lock = threading.Lock()
        self._fast_polling_calls_to_go = FastPollingCounter()

        self._health = HubHealth.UNKNOWN
        self._health_reason: Optional[str] = None

    # === HEALTH ===

    @property
    def health(self) -> HubHealth:
        return self._health

    @property
    def health_reason(self) -> Optional[str]:
        return self._health_reason

    @property
    def fast_polling_calls_to_go(self) -> int:
        return self._fast_polling_calls_to_go.get()

    @property
    def is_initialized(self) -> bool:
        return self._socket is not None and self.config is not None

    def _update_status(self, health: HubHealth, reason: Optional[str] = None) -> None:
        changed = health != self._health or reason != self._health_reason
        self._health = health
        self._health_reason = reason
        if not changed:
            return

        host_name = self.config.host_name if self.config is not None else "<unconfigured>"
        self.logger.info("NeoHub %s status: %s%s", host_name, health.value,
                         f" ({reason})" if reason else "")
        if self._status_listener is not None:
            try:
                self._status_listener(health, reason)
            except Exception:
                self.logger.exception("Status listener failed")

    # === LIFECYCLE ===

    def _validate_config(self) -> Optional[str]:
        """Returns a description of the first invalid parameter, None if all are valid."""
        config = self.config
        if config is None:
            return "parameter(s) hostName, portNumber, pollingInterval must be set!"

        self.logger.debug("hostname=%s", config.host_name)
        if not config.host_name:
            return "parameter hostName must be set!"

        self.logger.debug("port=%s", config.port_number)
        if config.port_number <= 0 or config.port_number > 0xFFFF:
            return "portNumber is invalid!"

        self.logger.debug("polling interval=%s", config.polling_interval)
        if not FAST_POLL_INTERVAL <= config.polling_interval <= LAZY_POLL_INTERVAL:
            return f"pollingInterval must be in range [{FAST_POLL_INTERVAL}..{LAZY_POLL_INTERVAL}]!"

        return None

    def initialize(self) -> None:
        """Validate the configuration and start background polling."""
        error = self._validate_config()
        if error is not None:
            self._update_status(HubHealth.OFFLINE_CONFIGURATION_ERROR, error)
            return

        self._socket = self._connection_factory(self.config.host_name, self.config.port_number)

        self.logger.debug("start background polling..")

        # create a "lazy" polling scheduler
        if self._lazy_polling_scheduler is None or self._lazy_polling_scheduler.cancelled:
            self._lazy_polling_scheduler = self._scheduler.schedule_with_fixed_delay(
                self._lazy_polling_execute,
                self.config.polling_interval,
                self.config.polling_interval,
                name="lazy-polling",
            )

        # create a "fast" polling scheduler
        self._fast_polling_calls_to_go.set(FAST_POLL_CYCLES)
        if self._fast_polling_scheduler is None or self._fast_polling_scheduler.cancelled:
            self._fast_polling_scheduler = self._scheduler.schedule_with_fixed_delay(
                self._fast_polling_execute,
                FAST_POLL_INTERVAL,
                FAST_POLL_INTERVAL,
                name="fast-polling",
            )

        self._update_status(HubHealth.UNKNOWN)

        # start a fast polling burst so the hub's devices show up quickly
        self.start_fast_polling_burst()

    def dispose(self) -> None:
        """Stop background polling. Safe to call repeatedly and from any thread."""
        self.logger.debug("stop background polling..")

        lazy, self._lazy_polling_scheduler = self._lazy_polling_scheduler, None
        if lazy is not None and not lazy.cancelled:
            lazy.cancel()

        fast, self._fast_polling_scheduler = self._fast_polling_scheduler, None
        if fast is not None and not fast.cancelled:
            fast.cancel()

    @property
    def polling_schedulers(self) -> tuple[Optional[RecurringTask], Optional[RecurringTask]]:
        """The (lazy, fast) task handles, None where not running."""
        return self._lazy_polling_scheduler, self._fast_polling_scheduler

    # === COMMANDS ===

    def start_fast_polling_burst(self) -> None:
        """Poll at the fast cadence for the next FAST_POLL_CYCLES cycles."""
        self._fast_polling_calls_to_go.set(FAST_POLL_CYCLES)

    def send_channel_value(self, command: str) -> NeoHubReturnResult:
        """Send an opaque command string to the hub."""
        with self._exchange_lock:
            if not self.is_initialized:
                return NeoHubReturnResult.ERR_INITIALIZATION

            try:
                self._socket.send_message(command)
            except Exception as err:
                self._update_status(HubHealth.OFFLINE_COMMUNICATION_ERROR)
                self.logger.warning(MSG_FMT_SET_VALUE_ERR, command, err)
                return NeoHubReturnResult.ERR_COMMUNICATION

            # start a fast polling burst to confirm the status change
            self.start_fast_polling_burst()
            return NeoHubReturnResult.SUCCEEDED

    # === POLLING ===

    def read_info_response(self) -> Optional[NeoHubInfoResponse]:
        """
        Sends an INFO request to the hub.

        Callers must hold the exchange lock; use poll_info_response otherwise.

        Returns:
            The full status of all devices, or None on any failure
        """
        if not self.is_initialized:
            self.logger.warning(MSG_HUB_CONFIG)
            return None

        try:
            response = self._socket.send_message(CMD_CODE_INFO)
            info_response = create_info_response(response)
        except Exception as err:
            self.logger.warning(MSG_FMT_INFO_POLL_ERR, err)
            self._update_status(HubHealth.OFFLINE_COMMUNICATION_ERROR)
            return None

        if info_response is None:
            self.logger.warning(MSG_FMT_INFO_POLL_ERR, "failed to create INFO Response")
            self._update_status(HubHealth.OFFLINE_COMMUNICATION_ERROR)
            return None

        if not info_response.devices:
            self.logger.warning(MSG_FMT_INFO_POLL_ERR, "no devices found")
            self._update_status(HubHealth.OFFLINE_COMMUNICATION_ERROR)
            return None

        if self._health != HubHealth.ONLINE:
            self._update_status(HubHealth.ONLINE)

        return info_response

    def poll_info_response(self) -> Optional[NeoHubInfoResponse]:
        """Like read_info_response, but takes its turn on the connection first."""
        with self._exchange_lock:
            return self.read_info_response()

    def read_dcb_response(self) -> Optional[NeoHubReadDcbResponse]:
        """Sends a READ_DCB request to the hub; failures are not fatal."""
        try:
            response = self._socket.send_message(CMD_CODE_READ_DCB)
            dcb_response = create_read_dcb_response(response)
        except Exception as err:
            self.logger.warning(MSG_FMT_DCB_POLL_ERR, err)
            return None

        if dcb_response is None:
            self.logger.warning(MSG_FMT_DCB_POLL_ERR, "failed to create DCB Response")
            return None

        return dcb_response

    def poll_dcb_response(self) -> Optional[NeoHubReadDcbResponse]:
        with self._exchange_lock:
            if not self.is_initialized:
                return None
            return self.read_dcb_response()

    def _dispatch(self, info_response: NeoHubInfoResponse, temperature_unit: TemperatureUnit) -> None:
        for sink in list(self._sink_provider()):
            try:
                sink.handle_poll_response(info_response, temperature_unit)
            except Exception:
                self.logger.exception("Dispatching poll response to %s failed", sink)

    def _lazy_polling_execute(self) -> None:
        """
        Callback of the lazy polling scheduler.

        Fetches the info for all devices from the hub and passes it to every
        registered sink.
        """
        with self._exchange_lock:
            try:
                info_response = self.read_info_response()

                if info_response is not None:
                    dcb_response = self.read_dcb_response()
                    temperature_unit = (
                        dcb_response.temperature_unit if dcb_response is not None
                        else TemperatureUnit.CELSIUS
                    )
                    self._dispatch(info_response, temperature_unit)
            finally:
                self._fast_polling_calls_to_go.decrement_if_positive()

    def _fast_polling_execute(self) -> None:
        """Callback of the fast polling scheduler; polls only during a burst."""
        if self._fast_polling_calls_to_go.get() > 0:
            self._lazy_polling_execute()
