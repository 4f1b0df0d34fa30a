"""Constants for the Heatmiser NeoHub integration."""
from __future__ import annotations

from typing import Final

from .neohub_tcp.const import DEFAULT_PORT, FAST_POLL_INTERVAL, LAZY_POLL_INTERVAL

# Integration domain
DOMAIN: Final = "neohub"

# Config entry keys
CONF_POLLING_INTERVAL: Final = "polling_interval"

# Defaults for the config flow
DEFAULT_NAME: Final = "NeoHub"
DEFAULT_HUB_PORT: Final = DEFAULT_PORT
DEFAULT_POLLING_INTERVAL: Final = LAZY_POLL_INTERVAL
MIN_POLLING_INTERVAL: Final = FAST_POLL_INTERVAL
MAX_POLLING_INTERVAL: Final = LAZY_POLL_INTERVAL

# Polled values are ignored for this long after a local command (seconds)
DEBOUNCE_DELAY: Final = 15

# Device manufacturer
MANUFACTURER: Final = "Heatmiser"

# Dispatcher signal for devices that appear on the hub after setup
SIGNAL_NEW_DEVICES: Final = "neohub_new_devices_{}"

# Services
SERVICE_SEND_COMMAND: Final = "send_command"
ATTR_COMMAND: Final = "command"

# Entity suffixes
FLOOR_TEMPERATURE_SUFFIX: Final = "Floor Temperature"
TEMPERATURE_SUFFIX: Final = "Temperature"
BATTERY_LOW_SUFFIX: Final = "Battery Low"
CONTACT_SUFFIX: Final = "Contact"
OUTPUT_SUFFIX: Final = "Output"

# Attributes
ATTR_DEVICE_TYPE: Final = "device_type"
ATTR_AWAY: Final = "away"
ATTR_STANDBY: Final = "standby"
