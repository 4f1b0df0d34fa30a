"""Config flow for the Heatmiser NeoHub integration."""
from __future__ import annotations

import logging
from typing import Any

import voluptuous as vol
from homeassistant import config_entries
from homeassistant.const import CONF_HOST, CONF_PORT
from homeassistant.data_entry_flow import FlowResult

from .const import (
    CONF_POLLING_INTERVAL,
    DEFAULT_HUB_PORT,
    DEFAULT_NAME,
    DEFAULT_POLLING_INTERVAL,
    DOMAIN,
    MAX_POLLING_INTERVAL,
    MIN_POLLING_INTERVAL,
)
from .neohub_tcp import NeoHubError, NeoHubSocket
from .neohub_tcp.const import CMD_CODE_INFO
from .neohub_tcp.parser import create_info_response

_LOGGER = logging.getLogger(__name__)

DATA_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_HOST): vol.All(str, vol.Length(min=1)),
        vol.Required(CONF_PORT, default=DEFAULT_HUB_PORT): vol.All(
            vol.Coerce(int), vol.Range(min=1, max=65535)
        ),
        vol.Required(CONF_POLLING_INTERVAL, default=DEFAULT_POLLING_INTERVAL): vol.All(
            vol.Coerce(int), vol.Range(min=MIN_POLLING_INTERVAL, max=MAX_POLLING_INTERVAL)
        ),
    }
)


class CannotConnect(Exception):
    """The hub could not be reached."""


class NoDevices(Exception):
    """The hub answered but reports no devices."""


def validate_connection(host: str, port: int) -> list[str]:
    """
    Ask the hub for its device list.

    Returns:
        Names of the devices attached to the hub

    Raises:
        CannotConnect: If the hub does not answer or answers garbage
        NoDevices: If the hub has no devices attached
    """
    try:
        response = NeoHubSocket(host, port, logger=_LOGGER).send_message(CMD_CODE_INFO)
    except (OSError, NeoHubError) as err:
        raise CannotConnect(str(err)) from err

    info_response = create_info_response(response)
    if info_response is None:
        raise CannotConnect("failed to create INFO Response")
    if not info_response.devices:
        raise NoDevices
    return info_response.device_names


class NeoHubConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for a NeoHub."""

    VERSION = 1

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Handle the user step: host, port and polling interval."""
        errors: dict[str, str] = {}

        if user_input is not None:
            host = user_input[CONF_HOST].strip()
            await self.async_set_unique_id(host.lower())
            self._abort_if_unique_id_configured()

            try:
                device_names = await self.hass.async_add_executor_job(
                    validate_connection, host, user_input[CONF_PORT]
                )
            except CannotConnect as err:
                _LOGGER.warning("Cannot connect to NeoHub at %s: %s", host, err)
                errors["base"] = "cannot_connect"
            except NoDevices:
                errors["base"] = "no_devices_found"
            except Exception:
                _LOGGER.exception("Unexpected exception during connection test")
                errors["base"] = "unknown"
            else:
                _LOGGER.debug("NeoHub at %s reports devices: %s", host, device_names)
                return self.async_create_entry(
                    title=f"{DEFAULT_NAME} ({host})",
                    data={**user_input, CONF_HOST: host},
                )

        return self.async_show_form(
            step_id="user", data_schema=DATA_SCHEMA, errors=errors
        )
