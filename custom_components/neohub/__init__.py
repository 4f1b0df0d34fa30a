"""The Heatmiser NeoHub integration."""
from __future__ import annotations

import logging

import voluptuous as vol
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import CONF_HOST, CONF_PORT, Platform
from homeassistant.core import HomeAssistant, ServiceCall
from homeassistant.exceptions import ConfigEntryError, HomeAssistantError
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers import device_registry as dr

from .const import (
    ATTR_COMMAND,
    CONF_POLLING_INTERVAL,
    DEFAULT_HUB_PORT,
    DEFAULT_NAME,
    DEFAULT_POLLING_INTERVAL,
    DOMAIN,
    MANUFACTURER,
    SERVICE_SEND_COMMAND,
)
from .coordinator import NeoHubCoordinator
from .neohub_tcp import NeoHubConfiguration

_LOGGER = logging.getLogger(__name__)

PLATFORMS: list[Platform] = [
    Platform.CLIMATE,
    Platform.SWITCH,
    Platform.SENSOR,
    Platform.BINARY_SENSOR,
]

# Service schemas
SERVICE_SEND_COMMAND_SCHEMA = vol.Schema({
    vol.Optional("entry_id"): cv.string,
    vol.Required(ATTR_COMMAND): cv.string,
})


def configuration_from_entry(entry: ConfigEntry) -> NeoHubConfiguration:
    """Build the hub's connection parameters from a config entry."""
    return NeoHubConfiguration(
        host_name=entry.data.get(CONF_HOST, ""),
        port_number=entry.data.get(CONF_PORT, DEFAULT_HUB_PORT),
        polling_interval=entry.data.get(CONF_POLLING_INTERVAL, DEFAULT_POLLING_INTERVAL),
    )


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up a NeoHub from a config entry."""
    coordinator = NeoHubCoordinator(
        hass, entry, configuration_from_entry(entry), entry.title or DEFAULT_NAME
    )

    # Start background polling; bad parameters are not worth retrying
    try:
        await coordinator.async_start()
    except HomeAssistantError as err:
        raise ConfigEntryError(str(err)) from err

    # Fetch the device list so entities can be created right away
    try:
        await coordinator.async_config_entry_first_refresh()
    except Exception:
        await coordinator.async_cleanup()
        raise

    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = coordinator

    device_registry = dr.async_get(hass)
    device_registry.async_get_or_create(
        config_entry_id=entry.entry_id,
        identifiers={(DOMAIN, entry.entry_id)},
        manufacturer=MANUFACTURER,
        name=entry.title or DEFAULT_NAME,
        model="NeoHub",
    )

    # Set up platforms
    try:
        await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    except Exception:
        hass.data[DOMAIN].pop(entry.entry_id)
        await coordinator.async_cleanup()
        raise

    # Register services
    async def handle_send_command(call: ServiceCall) -> None:
        """Forward a raw command string to one or all hubs."""
        command = call.data[ATTR_COMMAND]
        entry_id = call.data.get("entry_id")
        targets = [
            hub_coordinator
            for hub_entry_id, hub_coordinator in hass.data.get(DOMAIN, {}).items()
            if entry_id is None or hub_entry_id == entry_id
        ]
        if not targets:
            raise HomeAssistantError(f"No NeoHub found for entry {entry_id or '<any>'}")

        for hub_coordinator in targets:
            await hub_coordinator.async_send_command(command)
        _LOGGER.info("Sent command %s to %d NeoHub(s)", command, len(targets))

    # Register services only once
    if not hass.services.has_service(DOMAIN, SERVICE_SEND_COMMAND):
        hass.services.async_register(
            DOMAIN,
            SERVICE_SEND_COMMAND,
            handle_send_command,
            schema=SERVICE_SEND_COMMAND_SCHEMA,
        )

    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    coordinator: NeoHubCoordinator = hass.data[DOMAIN][entry.entry_id]

    # Unload platforms
    if unload_ok := await hass.config_entries.async_unload_platforms(entry, PLATFORMS):
        await coordinator.async_cleanup()
        hass.data[DOMAIN].pop(entry.entry_id)

    # Remove services if no more entries
    if not hass.data[DOMAIN]:
        hass.services.async_remove(DOMAIN, SERVICE_SEND_COMMAND)

    return unload_ok
