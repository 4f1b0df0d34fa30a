"""Shared fixtures for the NeoHub tests."""

from __future__ import annotations

import json
from collections import defaultdict, deque
from typing import Callable

import pytest

from custom_components.neohub.neohub_tcp import NeoHub, NeoHubConfiguration
from custom_components.neohub.neohub_tcp.const import CMD_CODE_INFO, CMD_CODE_READ_DCB

INFO_TWO_DEVICES = json.dumps({
    "devices": [
        {
            "device": "Kitchen",
            "DEVICE_TYPE": 1,
            "CURRENT_TEMPERATURE": "20.5",
            "CURRENT_SET_TEMPERATURE": "21.0",
            "CURRENT_FLOOR_TEMPERATURE": "255.255",
            "HEATING": True,
            "STANDBY": False,
            "AWAY": False,
            "LOW_BATTERY": False,
            "OFFLINE": False,
        },
        {
            "device": "Hall Plug",
            "DEVICE_TYPE": 6,
            "TIMER": True,
            "OFFLINE": False,
        },
    ]
})

INFO_NO_DEVICES = json.dumps({"devices": []})

DCB_CELSIUS = json.dumps({"CORF": "C"})
DCB_FAHRENHEIT = json.dumps({"CORF": "F"})


class FakeTask:
    """Recurring task whose runs are triggered by hand."""

    def __init__(self, callback, initial_delay, delay, name):
        self.callback = callback
        self.initial_delay = initial_delay
        self.delay = delay
        self.name = name
        self.cancelled = False

    def cancel(self):
        self.cancelled = True

    def tick(self):
        if not self.cancelled:
            self.callback()


class FakeScheduler:
    """Scheduler that records tasks instead of running them."""

    def __init__(self):
        self.tasks: list[FakeTask] = []

    def schedule_with_fixed_delay(self, callback, initial_delay, delay, name="unnamed"):
        task = FakeTask(callback, initial_delay, delay, name)
        self.tasks.append(task)
        return task

    def task(self, name: str) -> FakeTask:
        live = [task for task in self.tasks if task.name == name]
        return live[-1]


class FakeConnection:
    """
    Stand-in for NeoHubSocket.

    Answers are queued per request; an Exception instance is raised instead
    of returned. A request with no queued answer uses the default answer.
    """

    def __init__(self, host_name: str, port_number: int):
        self.host_name = host_name
        self.port_number = port_number
        self.requests: list[str] = []
        self.answers: dict[str, deque] = defaultdict(deque)
        self.defaults: dict[str, object] = {}

    def queue(self, request: str, *answers) -> None:
        self.answers[request].extend(answers)

    def send_message(self, request: str) -> str:
        self.requests.append(request)
        if self.answers[request]:
            answer = self.answers[request].popleft()
        else:
            answer = self.defaults.get(request, "{}")
        if isinstance(answer, Exception):
            raise answer
        return answer

    def count(self, request: str) -> int:
        return sum(1 for sent in self.requests if sent == request)


class RecordingSink:
    """Poll sink that remembers what it was handed."""

    def __init__(self, name: str = "sink"):
        self.name = name
        self.calls = []

    def handle_poll_response(self, info_response, temperature_unit):
        self.calls.append((info_response, temperature_unit))


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def connections() -> list[FakeConnection]:
    return []


@pytest.fixture
def connection_factory(connections) -> Callable[[str, int], FakeConnection]:
    def factory(host_name, port_number):
        connection = FakeConnection(host_name, port_number)
        connection.defaults[CMD_CODE_INFO] = INFO_TWO_DEVICES
        connection.defaults[CMD_CODE_READ_DCB] = DCB_CELSIUS
        connections.append(connection)
        return connection

    return factory


@pytest.fixture
def sinks() -> list[RecordingSink]:
    return [RecordingSink("kitchen"), RecordingSink("plug")]


@pytest.fixture
def status_changes() -> list:
    return []


@pytest.fixture
def make_hub(scheduler, connection_factory, sinks, status_changes):
    def _make_hub(host_name="10.0.0.5", port_number=4242, polling_interval=30) -> NeoHub:
        return NeoHub(
            NeoHubConfiguration(host_name, port_number, polling_interval),
            sink_provider=lambda: sinks,
            status_listener=lambda health, reason: status_changes.append((health, reason)),
            scheduler=scheduler,
            connection_factory=connection_factory,
        )

    return _make_hub
