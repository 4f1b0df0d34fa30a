"""Constants for the NeoHub TCP module."""

from __future__ import annotations

from typing import Final

# Polling cadence (seconds)
# A burst comprises FAST_POLL_CYCLES polls spaced FAST_POLL_INTERVAL apart,
# e.g. 5 polls at 4 second intervals (5 x 4 => 20 seconds)
FAST_POLL_INTERVAL: Final = 4
FAST_POLL_CYCLES: Final = 5
LAZY_POLL_INTERVAL: Final = 60

# Socket settings
DEFAULT_PORT: Final = 4242
TCP_SOCKET_TIMEOUT: Final = 5.0
RESPONSE_BUFFER_SIZE: Final = 1024
MESSAGE_TERMINATOR: Final = b"\x00"
MESSAGE_ENCODING: Final = "utf-8"

# Hub JSON commands
CMD_CODE_INFO: Final = '{"INFO":0}'
CMD_CODE_READ_DCB: Final = '{"READ_DCB":100}'
CMD_CODE_TEMP: Final = '{{"SET_TEMP":[{}, "{}"]}}'
CMD_CODE_AWAY: Final = '{{"FROST_{}":"{}"}}'
CMD_CODE_TIMER: Final = '{{"TIMER_{}":"{}"}}'

# Set point limits accepted by the thermostats
MIN_SET_TEMPERATURE: Final = 5.0
MAX_SET_TEMPERATURE: Final = 35.0

# DEVICE_TYPE codes reported in the INFO response
DEVICE_TYPE_CONTACT: Final = 5
DEVICE_TYPE_PLUG: Final = 6
DEVICE_TYPE_TEMPERATURE_SENSOR: Final = 14

# Log messages
MSG_HUB_CONFIG: Final = "hub needs to be initialized!"
MSG_FMT_INFO_POLL_ERR: Final = "INFO polling error: %s"
MSG_FMT_DCB_POLL_ERR: Final = "READ_DCB polling error: %s"
MSG_FMT_SET_VALUE_ERR: Final = "%s set value error: %s"
