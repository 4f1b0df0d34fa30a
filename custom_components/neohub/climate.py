"""Support for Heatmiser NeoStat thermostats."""
from __future__ import annotations

import dataclasses
import logging
from typing import Any

from homeassistant.components.climate import (
    ClimateEntity,
    ClimateEntityFeature,
    HVACAction,
    HVACMode,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import ATTR_TEMPERATURE
from homeassistant.core import HomeAssistant, callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.dispatcher import async_dispatcher_connect
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .const import ATTR_AWAY, ATTR_DEVICE_TYPE, ATTR_STANDBY, DOMAIN, SIGNAL_NEW_DEVICES
from .coordinator import NeoHubCoordinator
from .entity import NeoHubEntity
from .neohub_tcp import DeviceKind, NeoHubDeviceInfo
from .neohub_tcp.commands import create_frost_command, create_set_temperature_command
from .neohub_tcp.const import MAX_SET_TEMPERATURE, MIN_SET_TEMPERATURE

_LOGGER = logging.getLogger(__name__)


def _thermostats(
    coordinator: NeoHubCoordinator, devices: list[NeoHubDeviceInfo]
) -> list[NeoStatClimate]:
    return [
        NeoStatClimate(coordinator, device)
        for device in devices
        if device.kind == DeviceKind.THERMOSTAT
    ]


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the NeoStat climate platform."""
    coordinator: NeoHubCoordinator = hass.data[DOMAIN][config_entry.entry_id]

    async_add_entities(_thermostats(coordinator, coordinator.data.devices or []))

    @callback
    def async_add_new_devices(devices: list[NeoHubDeviceInfo]) -> None:
        async_add_entities(_thermostats(coordinator, devices))

    config_entry.async_on_unload(
        async_dispatcher_connect(
            hass, SIGNAL_NEW_DEVICES.format(config_entry.entry_id), async_add_new_devices
        )
    )


class NeoStatClimate(NeoHubEntity, ClimateEntity):
    """Representation of a NeoStat thermostat."""

    _attr_name = None
    _attr_hvac_modes = [HVACMode.HEAT, HVACMode.OFF]
    _attr_supported_features = (
        ClimateEntityFeature.TARGET_TEMPERATURE
        | ClimateEntityFeature.TURN_ON
        | ClimateEntityFeature.TURN_OFF
    )
    _attr_min_temp = MIN_SET_TEMPERATURE
    _attr_max_temp = MAX_SET_TEMPERATURE
    _attr_target_temperature_step = 0.5

    def __init__(self, coordinator: NeoHubCoordinator, device: NeoHubDeviceInfo) -> None:
        """Initialize the thermostat."""
        super().__init__(coordinator, device, "climate")

    @property
    def temperature_unit(self) -> str:
        return self.hass_temperature_unit

    @property
    def current_temperature(self) -> float | None:
        return self.device.current_temperature if self.device else None

    @property
    def target_temperature(self) -> float | None:
        return self.device.current_set_temperature if self.device else None

    @property
    def hvac_mode(self) -> HVACMode | None:
        """Frost protection (away) and standby both count as off."""
        if self.device is None:
            return None
        if self.device.away or self.device.standby:
            return HVACMode.OFF
        return HVACMode.HEAT

    @property
    def hvac_action(self) -> HVACAction | None:
        if self.device is None:
            return None
        if self.hvac_mode == HVACMode.OFF:
            return HVACAction.OFF
        return HVACAction.HEATING if self.device.heating else HVACAction.IDLE

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return additional state attributes."""
        if self.device is None:
            return {}
        return {
            ATTR_AWAY: self.device.away,
            ATTR_STANDBY: self.device.standby,
            ATTR_DEVICE_TYPE: self.device.device_type,
        }

    async def async_set_temperature(self, **kwargs: Any) -> None:
        """Set a new target temperature."""
        temperature = kwargs.get(ATTR_TEMPERATURE)
        if temperature is None:
            return

        _LOGGER.debug("Setting target temperature of %s to %s", self.device_name, temperature)
        try:
            command = create_set_temperature_command(temperature, self.device_name)
            await self._async_send_command(command)
        except ValueError as err:
            raise HomeAssistantError(f"Invalid temperature for {self.device_name}: {err}") from err

        if self.device is not None:
            self._device = dataclasses.replace(self.device, current_set_temperature=float(temperature))
        self.async_write_ha_state()

    async def async_set_hvac_mode(self, hvac_mode: HVACMode) -> None:
        """Switch between heating and frost protection."""
        if hvac_mode not in self._attr_hvac_modes:
            raise HomeAssistantError(f"Unsupported HVAC mode: {hvac_mode}")

        away = hvac_mode == HVACMode.OFF
        _LOGGER.info("Turning frost protection %s for %s", "on" if away else "off", self.device_name)
        await self._async_send_command(create_frost_command(away, self.device_name))

        if self.device is not None:
            self._device = dataclasses.replace(self.device, away=away, standby=False)
        self.async_write_ha_state()

    async def async_turn_on(self) -> None:
        await self.async_set_hvac_mode(HVACMode.HEAT)

    async def async_turn_off(self) -> None:
        await self.async_set_hvac_mode(HVACMode.OFF)
