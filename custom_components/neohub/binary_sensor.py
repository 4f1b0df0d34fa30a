"""Support for NeoHub binary sensors."""
from __future__ import annotations

import logging
from typing import Any

from homeassistant.components.binary_sensor import (
    BinarySensorDeviceClass,
    BinarySensorEntity,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import EntityCategory
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.dispatcher import async_dispatcher_connect
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .const import ATTR_DEVICE_TYPE, BATTERY_LOW_SUFFIX, CONTACT_SUFFIX, DOMAIN, SIGNAL_NEW_DEVICES
from .coordinator import NeoHubCoordinator
from .entity import NeoHubEntity
from .neohub_tcp import DeviceKind, NeoHubDeviceInfo

_LOGGER = logging.getLogger(__name__)


def _binary_sensors(
    coordinator: NeoHubCoordinator, devices: list[NeoHubDeviceInfo]
) -> list[BinarySensorEntity]:
    entities: list[BinarySensorEntity] = []
    for device in devices:
        if device.kind == DeviceKind.CONTACT:
            entities.append(NeoContactBinarySensor(coordinator, device))
        if device.is_battery_powered:
            entities.append(NeoBatteryLowBinarySensor(coordinator, device))
    return entities


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the NeoHub binary sensor platform."""
    coordinator: NeoHubCoordinator = hass.data[DOMAIN][config_entry.entry_id]

    async_add_entities(_binary_sensors(coordinator, coordinator.data.devices or []))

    @callback
    def async_add_new_devices(devices: list[NeoHubDeviceInfo]) -> None:
        async_add_entities(_binary_sensors(coordinator, devices))

    config_entry.async_on_unload(
        async_dispatcher_connect(
            hass, SIGNAL_NEW_DEVICES.format(config_entry.entry_id), async_add_new_devices
        )
    )


class NeoContactBinarySensor(NeoHubEntity, BinarySensorEntity):
    """Representation of a NeoContact door/window sensor."""

    _attr_device_class = BinarySensorDeviceClass.OPENING
    _attr_name = CONTACT_SUFFIX

    def __init__(self, coordinator: NeoHubCoordinator, device: NeoHubDeviceInfo) -> None:
        super().__init__(coordinator, device, "contact")

    @property
    def is_on(self) -> bool | None:
        """The hub reports an open contact through the TIMER flag."""
        return self.device.timer_on if self.device else None

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        if self.device is None:
            return {}
        return {ATTR_DEVICE_TYPE: self.device.device_type}


class NeoBatteryLowBinarySensor(NeoHubEntity, BinarySensorEntity):
    """Low battery alarm of a wireless device."""

    _attr_device_class = BinarySensorDeviceClass.BATTERY
    _attr_entity_category = EntityCategory.DIAGNOSTIC
    _attr_name = BATTERY_LOW_SUFFIX

    def __init__(self, coordinator: NeoHubCoordinator, device: NeoHubDeviceInfo) -> None:
        super().__init__(coordinator, device, "battery_low")
        self._attr_icon = "mdi:battery-alert"

    @property
    def is_on(self) -> bool | None:
        return self.device.low_battery if self.device else None
