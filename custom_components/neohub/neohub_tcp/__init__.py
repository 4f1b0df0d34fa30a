"""NeoHub TCP module - transport, parsing and polling supervisor."""

from __future__ import annotations

from .client import NeoHubSocket
from .hub import FastPollingCounter, NeoHub
from .models import (
    DeviceKind,
    HubHealth,
    NeoHubConfiguration,
    NeoHubDeviceInfo,
    NeoHubError,
    NeoHubInfoResponse,
    NeoHubPollSink,
    NeoHubReadDcbResponse,
    NeoHubReturnResult,
    TemperatureUnit,
)
from .parser import NeoHubResponseParser
from .scheduler import RecurringTask, Scheduler

from .commands import (
    create_frost_command,
    create_set_temperature_command,
    create_timer_command,
)

__version__ = "0.1.0"

__all__ = [
    "NeoHub",
    "NeoHubSocket",
    "NeoHubResponseParser",
    "FastPollingCounter",
    "Scheduler",
    "RecurringTask",

    "DeviceKind",
    "HubHealth",
    "NeoHubConfiguration",
    "NeoHubDeviceInfo",
    "NeoHubError",
    "NeoHubInfoResponse",
    "NeoHubPollSink",
    "NeoHubReadDcbResponse",
    "NeoHubReturnResult",
    "TemperatureUnit",

    "create_frost_command",
    "create_set_temperature_command",
    "create_timer_command",
]
