"""Support for Heatmiser NeoPlug outputs."""
from __future__ import annotations

import dataclasses
import logging
from typing import Any

from homeassistant.components.switch import SwitchDeviceClass, SwitchEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.dispatcher import async_dispatcher_connect
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .const import DOMAIN, OUTPUT_SUFFIX, SIGNAL_NEW_DEVICES
from .coordinator import NeoHubCoordinator
from .entity import NeoHubEntity
from .neohub_tcp import DeviceKind, NeoHubDeviceInfo
from .neohub_tcp.commands import create_timer_command

_LOGGER = logging.getLogger(__name__)


def _plugs(coordinator: NeoHubCoordinator, devices: list[NeoHubDeviceInfo]) -> list[NeoPlugSwitch]:
    return [NeoPlugSwitch(coordinator, device) for device in devices if device.kind == DeviceKind.PLUG]


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the NeoPlug switch platform."""
    coordinator: NeoHubCoordinator = hass.data[DOMAIN][config_entry.entry_id]

    async_add_entities(_plugs(coordinator, coordinator.data.devices or []))

    @callback
    def async_add_new_devices(devices: list[NeoHubDeviceInfo]) -> None:
        async_add_entities(_plugs(coordinator, devices))

    config_entry.async_on_unload(
        async_dispatcher_connect(
            hass, SIGNAL_NEW_DEVICES.format(config_entry.entry_id), async_add_new_devices
        )
    )


class NeoPlugSwitch(NeoHubEntity, SwitchEntity):
    """Representation of the output of a NeoPlug."""

    _attr_device_class = SwitchDeviceClass.OUTLET
    _attr_name = OUTPUT_SUFFIX

    def __init__(self, coordinator: NeoHubCoordinator, device: NeoHubDeviceInfo) -> None:
        """Initialize the switch."""
        super().__init__(coordinator, device, "output")

    @property
    def is_on(self) -> bool | None:
        return self.device.timer_on if self.device else None

    async def _async_set_output(self, on: bool) -> None:
        _LOGGER.info("Turning output of %s %s", self.device_name, "on" if on else "off")
        await self._async_send_command(create_timer_command(on, self.device_name))
        if self.device is not None:
            self._device = dataclasses.replace(self.device, timer_on=on)
        self.async_write_ha_state()

    async def async_turn_on(self, **kwargs: Any) -> None:
        await self._async_set_output(True)

    async def async_turn_off(self, **kwargs: Any) -> None:
        await self._async_set_output(False)
