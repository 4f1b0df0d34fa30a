"""Base entity for devices attached to a Heatmiser NeoHub."""
from __future__ import annotations

import logging
import time

from homeassistant.const import UnitOfTemperature
from homeassistant.core import callback
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DEBOUNCE_DELAY, DOMAIN, MANUFACTURER
from .coordinator import NeoHubCoordinator
from .neohub_tcp import NeoHubDeviceInfo, TemperatureUnit

_LOGGER = logging.getLogger(__name__)


class NeoHubEntity(CoordinatorEntity[NeoHubCoordinator]):
    """One entity of a device on the hub, following that device's record."""

    _attr_has_entity_name = True

    def __init__(
        self,
        coordinator: NeoHubCoordinator,
        device: NeoHubDeviceInfo,
        key: str,
    ) -> None:
        """Initialize the entity."""
        super().__init__(coordinator)
        self.device_name = device.device_name
        self._device: NeoHubDeviceInfo | None = device
        self._debounce_until = 0.0

        self._attr_unique_id = f"{coordinator.entry_id}_{device.device_name}_{key}"
        self._attr_device_info = {
            "identifiers": {(DOMAIN, f"{coordinator.entry_id}_{device.device_name}")},
            "name": device.device_name,
            "manufacturer": MANUFACTURER,
            "model": device.kind.value.replace("_", " ").title(),
            "via_device": (DOMAIN, coordinator.entry_id),
        }

    @property
    def device(self) -> NeoHubDeviceInfo | None:
        return self._device

    @property
    def available(self) -> bool:
        """Return True if the hub is online and reports this device."""
        return (
            super().available
            and self._device is not None
            and not self._device.offline
        )

    @property
    def hass_temperature_unit(self) -> str:
        if self.coordinator.temperature_unit == TemperatureUnit.FAHRENHEIT:
            return UnitOfTemperature.FAHRENHEIT
        return UnitOfTemperature.CELSIUS

    @callback
    def _handle_coordinator_update(self) -> None:
        """Take this device's record from the latest snapshot."""
        data = self.coordinator.data
        device = data.get_device_info(self.device_name) if data is not None else None

        if device is None:
            _LOGGER.debug("Device %s missing from poll response", self.device_name)
            self._device = None
        elif time.monotonic() < self._debounce_until:
            _LOGGER.debug("Ignoring poll response for %s while debouncing", self.device_name)
        else:
            self._device = device

        self.async_write_ha_state()

    def _start_debounce(self) -> None:
        """Hold on to the commanded state until the hub has caught up."""
        self._debounce_until = time.monotonic() + DEBOUNCE_DELAY

    async def _async_send_command(self, command: str) -> None:
        await self.coordinator.async_send_command(command)
        self._start_debounce()
