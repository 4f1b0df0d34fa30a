"""Data models for the NeoHub TCP module."""

from __future__ import annotations

import dataclasses
from enum import Enum
from typing import Optional, Protocol

from .const import (
    DEFAULT_PORT,
    DEVICE_TYPE_CONTACT,
    DEVICE_TYPE_PLUG,
    DEVICE_TYPE_TEMPERATURE_SENSOR,
    LAZY_POLL_INTERVAL,
)


class NeoHubError(Exception):
    """Raised when the hub answers with something unusable."""


class HubHealth(Enum):
    """Connection health as seen by the host framework."""

    UNKNOWN = "unknown"
    ONLINE = "online"
    OFFLINE_CONFIGURATION_ERROR = "offline_configuration_error"
    OFFLINE_COMMUNICATION_ERROR = "offline_communication_error"


class NeoHubReturnResult(Enum):
    """Outcome of sending a command to the hub."""

    SUCCEEDED = "succeeded"
    ERR_INITIALIZATION = "err_initialization"
    ERR_COMMUNICATION = "err_communication"


class TemperatureUnit(Enum):
    """Temperature unit configured on the hub."""

    CELSIUS = "C"
    FAHRENHEIT = "F"


class DeviceKind(Enum):
    """Kind of device attached to the hub."""

    THERMOSTAT = "thermostat"
    PLUG = "plug"
    CONTACT = "contact"
    TEMPERATURE_SENSOR = "temperature_sensor"


@dataclasses.dataclass(frozen=True)
class NeoHubConfiguration:
    """Connection parameters for one hub."""

    host_name: str = ""
    port_number: int = DEFAULT_PORT
    polling_interval: int = LAZY_POLL_INTERVAL


@dataclasses.dataclass
class NeoHubDeviceInfo:
    """Raw status record of a single device in the INFO response."""

    device_name: str = ""
    device_type: Optional[int] = None
    current_temperature: Optional[float] = None
    current_set_temperature: Optional[float] = None
    current_floor_temperature: Optional[float] = None
    heating: bool = False
    standby: bool = False
    away: bool = False
    timer_on: bool = False
    low_battery: bool = False
    offline: bool = False
    manual_off: bool = False

    @property
    def kind(self) -> DeviceKind:
        """Map the hub's device type code to a device kind."""
        if self.device_type == DEVICE_TYPE_PLUG:
            return DeviceKind.PLUG
        if self.device_type == DEVICE_TYPE_CONTACT:
            return DeviceKind.CONTACT
        if self.device_type == DEVICE_TYPE_TEMPERATURE_SENSOR:
            return DeviceKind.TEMPERATURE_SENSOR
        return DeviceKind.THERMOSTAT

    @property
    def is_battery_powered(self) -> bool:
        """Wireless devices run on batteries; plugs and wired stats do not."""
        return self.kind in (DeviceKind.CONTACT, DeviceKind.TEMPERATURE_SENSOR)


@dataclasses.dataclass
class NeoHubInfoResponse:
    """Full status of all devices, as returned by an INFO request."""

    devices: Optional[list[NeoHubDeviceInfo]] = None

    def get_device_info(self, device_name: str) -> Optional[NeoHubDeviceInfo]:
        """Return the record for ``device_name`` or None if it is not present."""
        for device in self.devices or []:
            if device.device_name == device_name:
                return device
        return None

    @property
    def device_names(self) -> list[str]:
        return [device.device_name for device in self.devices or []]


@dataclasses.dataclass
class NeoHubReadDcbResponse:
    """Calibration data, as returned by a READ_DCB request."""

    degrees_c_or_f: str = TemperatureUnit.CELSIUS.value

    @property
    def temperature_unit(self) -> TemperatureUnit:
        if self.degrees_c_or_f.upper() == TemperatureUnit.FAHRENHEIT.value:
            return TemperatureUnit.FAHRENHEIT
        return TemperatureUnit.CELSIUS


class NeoHubPollSink(Protocol):
    """Consumer of the decoded status snapshot, one per managed device."""

    def handle_poll_response(
        self, info_response: NeoHubInfoResponse, temperature_unit: TemperatureUnit
    ) -> None:
        ...
