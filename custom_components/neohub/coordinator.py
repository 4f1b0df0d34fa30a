"""Data update coordinator for the Heatmiser NeoHub integration."""
from __future__ import annotations

import logging

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.dispatcher import async_dispatcher_send, dispatcher_send
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed

from .const import SIGNAL_NEW_DEVICES
from .neohub_tcp import (
    HubHealth,
    NeoHub,
    NeoHubConfiguration,
    NeoHubDeviceInfo,
    NeoHubInfoResponse,
    NeoHubReturnResult,
    TemperatureUnit,
)
from .scheduler import HassScheduler

_LOGGER = logging.getLogger(__name__)


class NeoHubCoordinator(DataUpdateCoordinator[NeoHubInfoResponse]):
    """
    Push-based coordinator for one NeoHub.

    The hub polls on executor threads and hands every decoded snapshot to
    handle_poll_response, which forwards it to the event loop with
    async_set_updated_data. Entities are coordinator listeners and pick
    their own device's record from ``data``.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        config: NeoHubConfiguration,
        name: str,
    ) -> None:
        """Initialize the coordinator."""
        # No update_interval - the hub pushes its snapshots
        super().__init__(
            hass,
            _LOGGER,
            config_entry=config_entry,
            name=name,
            update_interval=None,
        )
        self.entry_id = config_entry.entry_id
        self.temperature_unit = TemperatureUnit.CELSIUS
        self._known_devices: set[str] = set()

        self.hub = NeoHub(
            config,
            sink_provider=lambda: (self,),
            status_listener=self._handle_status_change,
            scheduler=HassScheduler(hass),
            logger=_LOGGER,
        )
        _LOGGER.info("Initializing NeoHub coordinator for %s (%s:%s)",
                     name, config.host_name, config.port_number)

    def _take_new_devices(self, info_response: NeoHubInfoResponse) -> list[NeoHubDeviceInfo]:
        new_devices = [
            device for device in info_response.devices or []
            if device.device_name not in self._known_devices
        ]
        self._known_devices.update(device.device_name for device in new_devices)
        return new_devices

    # === HUB CALLBACKS (executor threads) ===

    def handle_poll_response(
        self, info_response: NeoHubInfoResponse, temperature_unit: TemperatureUnit
    ) -> None:
        """Publish a snapshot and announce devices not seen before."""
        self.temperature_unit = temperature_unit
        self.hass.add_job(self.async_set_updated_data, info_response)

        new_devices = self._take_new_devices(info_response)
        if new_devices:
            _LOGGER.info("Discovered %d new device(s) on %s: %s", len(new_devices), self.name,
                         ", ".join(device.device_name for device in new_devices))
            dispatcher_send(self.hass, SIGNAL_NEW_DEVICES.format(self.entry_id), new_devices)

    def _handle_status_change(self, health: HubHealth, reason: str | None) -> None:
        self.hass.add_job(self._async_handle_status_change, health, reason)

    @callback
    def _async_handle_status_change(self, health: HubHealth, reason: str | None) -> None:
        """Availability of every entity follows the hub's health."""
        self.last_update_success = health == HubHealth.ONLINE
        self.async_update_listeners()

    # === LIFECYCLE ===

    async def async_start(self) -> None:
        """Start background polling; raises if the configuration is unusable."""
        # initialize does no I/O and arms its timers on the event loop
        self.hub.initialize()
        if self.hub.health == HubHealth.OFFLINE_CONFIGURATION_ERROR:
            raise HomeAssistantError(self.hub.health_reason)

    def _fetch_snapshot(self) -> NeoHubInfoResponse | None:
        info_response = self.hub.poll_info_response()
        if info_response is None:
            return None
        dcb_response = self.hub.poll_dcb_response()
        if dcb_response is not None:
            self.temperature_unit = dcb_response.temperature_unit
        return info_response

    async def _async_update_data(self) -> NeoHubInfoResponse:
        """Read a snapshot on demand; used for the first refresh."""
        info_response = await self.hass.async_add_executor_job(self._fetch_snapshot)
        if info_response is None:
            raise UpdateFailed(f"Could not read device list from NeoHub {self.name}")

        new_devices = self._take_new_devices(info_response)
        # on the first refresh the platforms create entities from data directly
        if new_devices and self.data is not None:
            async_dispatcher_send(self.hass, SIGNAL_NEW_DEVICES.format(self.entry_id), new_devices)

        _LOGGER.debug("NeoHub %s reports devices: %s", self.name, info_response.device_names)
        return info_response

    async def async_send_command(self, command: str) -> None:
        """Send a command to the hub on an executor thread."""
        _LOGGER.debug("Coordinator: Sending command %s", command)
        result = await self.hass.async_add_executor_job(self.hub.send_channel_value, command)

        if result == NeoHubReturnResult.ERR_INITIALIZATION:
            raise HomeAssistantError(f"NeoHub {self.name} is not initialized")
        if result == NeoHubReturnResult.ERR_COMMUNICATION:
            raise HomeAssistantError(f"Failed to send command to NeoHub {self.name}")

    async def async_cleanup(self) -> None:
        """Stop background polling."""
        self.hub.dispose()
        _LOGGER.info("Coordinator cleanup completed")
