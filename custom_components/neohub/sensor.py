"""Support for NeoHub temperature sensors."""
from __future__ import annotations

import logging

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorStateClass,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.dispatcher import async_dispatcher_connect
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .const import DOMAIN, FLOOR_TEMPERATURE_SUFFIX, SIGNAL_NEW_DEVICES, TEMPERATURE_SUFFIX
from .coordinator import NeoHubCoordinator
from .entity import NeoHubEntity
from .neohub_tcp import DeviceKind, NeoHubDeviceInfo

_LOGGER = logging.getLogger(__name__)


def _sensors(coordinator: NeoHubCoordinator, devices: list[NeoHubDeviceInfo]) -> list[SensorEntity]:
    entities: list[SensorEntity] = []
    for device in devices:
        if device.kind == DeviceKind.TEMPERATURE_SENSOR:
            entities.append(NeoTemperatureSensor(coordinator, device))
        elif device.kind == DeviceKind.THERMOSTAT and device.current_floor_temperature is not None:
            entities.append(NeoFloorTemperatureSensor(coordinator, device))
    return entities


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the NeoHub sensor platform."""
    coordinator: NeoHubCoordinator = hass.data[DOMAIN][config_entry.entry_id]

    async_add_entities(_sensors(coordinator, coordinator.data.devices or []))

    @callback
    def async_add_new_devices(devices: list[NeoHubDeviceInfo]) -> None:
        async_add_entities(_sensors(coordinator, devices))

    config_entry.async_on_unload(
        async_dispatcher_connect(
            hass, SIGNAL_NEW_DEVICES.format(config_entry.entry_id), async_add_new_devices
        )
    )


class NeoTemperatureSensor(NeoHubEntity, SensorEntity):
    """Room temperature of a wireless NeoAir temperature sensor."""

    _attr_device_class = SensorDeviceClass.TEMPERATURE
    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_name = TEMPERATURE_SUFFIX

    def __init__(self, coordinator: NeoHubCoordinator, device: NeoHubDeviceInfo) -> None:
        super().__init__(coordinator, device, "temperature")

    @property
    def native_unit_of_measurement(self) -> str:
        return self.hass_temperature_unit

    @property
    def native_value(self) -> float | None:
        return self.device.current_temperature if self.device else None


class NeoFloorTemperatureSensor(NeoHubEntity, SensorEntity):
    """Floor sensor temperature of a NeoStat."""

    _attr_device_class = SensorDeviceClass.TEMPERATURE
    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_name = FLOOR_TEMPERATURE_SUFFIX

    def __init__(self, coordinator: NeoHubCoordinator, device: NeoHubDeviceInfo) -> None:
        super().__init__(coordinator, device, "floor_temperature")

    @property
    def native_unit_of_measurement(self) -> str:
        return self.hass_temperature_unit

    @property
    def native_value(self) -> float | None:
        return self.device.current_floor_temperature if self.device else None
