"""Unit tests for the dual-rate polling supervisor."""

import threading
import time
import typing

import pytest

from custom_components.neohub.neohub_tcp import (
    FastPollingCounter,
    HubHealth,
    NeoHub,
    NeoHubConfiguration,
    NeoHubReturnResult,
    Scheduler,
    TemperatureUnit,
)
from custom_components.neohub.neohub_tcp.const import (
    CMD_CODE_INFO,
    CMD_CODE_READ_DCB,
    FAST_POLL_CYCLES,
    FAST_POLL_INTERVAL,
    LAZY_POLL_INTERVAL,
)

from .conftest import DCB_FAHRENHEIT, INFO_NO_DEVICES, RecordingSink

# ============================================================================
# Lifecycle
# ============================================================================


class TestInitialize:
    """Tests for NeoHub.initialize."""

    def test_valid_configuration_arms_both_timers(self, make_hub, scheduler):
        hub = make_hub(polling_interval=30)
        hub.initialize()

        assert hub.health == HubHealth.UNKNOWN
        assert hub.health_reason is None
        assert hub.fast_polling_calls_to_go == FAST_POLL_CYCLES

        lazy = scheduler.task("lazy-polling")
        fast = scheduler.task("fast-polling")
        assert (lazy.initial_delay, lazy.delay) == (30, 30)
        assert (fast.initial_delay, fast.delay) == (FAST_POLL_INTERVAL, FAST_POLL_INTERVAL)
        assert hub.polling_schedulers == (lazy, fast)

    def test_initialize_does_not_poll_immediately(self, make_hub, connections):
        hub = make_hub()
        hub.initialize()

        assert len(connections) == 1
        assert connections[0].requests == []

    @pytest.mark.parametrize("interval", [FAST_POLL_INTERVAL, LAZY_POLL_INTERVAL])
    def test_interval_bounds_are_inclusive(self, make_hub, scheduler, interval):
        hub = make_hub(polling_interval=interval)
        hub.initialize()

        assert hub.health == HubHealth.UNKNOWN
        assert len(scheduler.tasks) == 2

    @pytest.mark.parametrize(
        ("host_name", "port_number", "polling_interval", "reason"),
        [
            ("", 4242, 30, "parameter hostName must be set!"),
            ("10.0.0.5", 0, 30, "portNumber is invalid!"),
            ("10.0.0.5", 65536, 30, "portNumber is invalid!"),
            ("10.0.0.5", 4242, FAST_POLL_INTERVAL - 1, "pollingInterval must be in range"),
            ("10.0.0.5", 4242, LAZY_POLL_INTERVAL + 1, "pollingInterval must be in range"),
        ],
    )
    def test_invalid_configuration_is_fatal(
        self, make_hub, scheduler, connections, status_changes,
        host_name, port_number, polling_interval, reason,
    ):
        hub = make_hub(host_name, port_number, polling_interval)
        hub.initialize()

        assert hub.health == HubHealth.OFFLINE_CONFIGURATION_ERROR
        assert hub.health_reason.startswith(reason)
        assert scheduler.tasks == []
        assert connections == []
        assert status_changes == [(HubHealth.OFFLINE_CONFIGURATION_ERROR, hub.health_reason)]
        assert hub.polling_schedulers == (None, None)

    def test_missing_configuration_is_fatal(self, scheduler):
        hub = NeoHub(None, scheduler=scheduler)
        hub.initialize()

        assert hub.health == HubHealth.OFFLINE_CONFIGURATION_ERROR
        assert scheduler.tasks == []

    def test_live_timers_are_not_duplicated(self, make_hub, scheduler):
        hub = make_hub()
        hub.initialize()
        hub.initialize()

        assert len(scheduler.tasks) == 2

    def test_timers_are_recreated_after_dispose(self, make_hub, scheduler):
        hub = make_hub()
        hub.initialize()
        hub.dispose()
        hub.initialize()

        assert len(scheduler.tasks) == 4
        assert all(task.cancelled for task in scheduler.tasks[:2])
        assert not any(task.cancelled for task in scheduler.tasks[2:])


class TestDispose:
    """Tests for NeoHub.dispose."""

    def test_cancels_both_timers(self, make_hub, scheduler):
        hub = make_hub()
        hub.initialize()
        hub.dispose()

        assert all(task.cancelled for task in scheduler.tasks)
        assert hub.polling_schedulers == (None, None)

    def test_is_idempotent(self, make_hub, scheduler):
        hub = make_hub()
        hub.initialize()
        hub.dispose()
        hub.dispose()

        assert hub.polling_schedulers == (None, None)

    def test_never_started(self, make_hub):
        hub = make_hub()
        hub.dispose()

        assert hub.polling_schedulers == (None, None)

    def test_from_another_thread(self, make_hub, scheduler):
        hub = make_hub()
        hub.initialize()

        worker = threading.Thread(target=hub.dispose)
        worker.start()
        worker.join(timeout=5)

        assert all(task.cancelled for task in scheduler.tasks)


# ============================================================================
# Polling
# ============================================================================


class TestPollCycle:
    """Tests for the lazy and fast polling callbacks."""

    def test_successful_poll_dispatches_to_every_sink_once(self, make_hub, scheduler, sinks):
        hub = make_hub()
        hub.initialize()

        scheduler.task("lazy-polling").tick()

        assert hub.health == HubHealth.ONLINE
        for sink in sinks:
            assert len(sink.calls) == 1
            info_response, unit = sink.calls[0]
            assert info_response.device_names == ["Kitchen", "Hall Plug"]
            assert unit == TemperatureUnit.CELSIUS

    def test_sinks_share_one_snapshot(self, make_hub, scheduler, sinks):
        hub = make_hub()
        hub.initialize()

        scheduler.task("lazy-polling").tick()

        assert sinks[0].calls[0][0] is sinks[1].calls[0][0]

    def test_each_cycle_builds_a_fresh_snapshot(self, make_hub, scheduler, sinks):
        hub = make_hub()
        hub.initialize()

        scheduler.task("lazy-polling").tick()
        scheduler.task("lazy-polling").tick()

        assert sinks[0].calls[0][0] is not sinks[0].calls[1][0]

    def test_out_of_range_field_keeps_hub_online(self, make_hub, scheduler, connections, sinks):
        hub = make_hub()
        hub.initialize()
        connections[0].queue(
            CMD_CODE_INFO, '{"devices": [{"device": "Kitchen", "DEVICE_TYPE": 1e400}]}'
        )

        scheduler.task("lazy-polling").tick()

        assert hub.health == HubHealth.ONLINE
        assert sinks[0].calls[0][0].get_device_info("Kitchen").device_type is None

    def test_transport_failure_goes_offline_without_dispatch(self, make_hub, scheduler, connections, sinks):
        hub = make_hub()
        hub.initialize()
        connections[0].queue(CMD_CODE_INFO, OSError("connection reset"))

        scheduler.task("lazy-polling").tick()

        assert hub.health == HubHealth.OFFLINE_COMMUNICATION_ERROR
        assert all(sink.calls == [] for sink in sinks)
        assert connections[0].count(CMD_CODE_READ_DCB) == 0

    @pytest.mark.parametrize("answer", ["not json", "[1, 2]", "{}", INFO_NO_DEVICES])
    def test_unusable_answer_goes_offline_without_dispatch(
        self, make_hub, scheduler, connections, sinks, answer
    ):
        hub = make_hub()
        hub.initialize()
        connections[0].queue(CMD_CODE_INFO, answer)

        scheduler.task("lazy-polling").tick()

        assert hub.health == HubHealth.OFFLINE_COMMUNICATION_ERROR
        assert all(sink.calls == [] for sink in sinks)

    def test_dcb_failure_falls_back_to_celsius(self, make_hub, scheduler, connections, sinks):
        hub = make_hub()
        hub.initialize()
        connections[0].queue(CMD_CODE_READ_DCB, OSError("timed out"))

        scheduler.task("lazy-polling").tick()

        assert hub.health == HubHealth.ONLINE
        assert sinks[0].calls[0][1] == TemperatureUnit.CELSIUS

    def test_undecodable_dcb_falls_back_to_celsius(self, make_hub, scheduler, connections, sinks):
        hub = make_hub()
        hub.initialize()
        connections[0].queue(CMD_CODE_READ_DCB, "garbage")

        scheduler.task("lazy-polling").tick()

        assert sinks[0].calls[0][1] == TemperatureUnit.CELSIUS

    def test_fahrenheit_hub(self, make_hub, scheduler, connections, sinks):
        hub = make_hub()
        hub.initialize()
        connections[0].queue(CMD_CODE_READ_DCB, DCB_FAHRENHEIT)

        scheduler.task("lazy-polling").tick()

        assert sinks[0].calls[0][1] == TemperatureUnit.FAHRENHEIT

    def test_failing_sink_does_not_starve_the_others(self, scheduler, connection_factory):
        class BrokenSink:
            def handle_poll_response(self, info_response, temperature_unit):
                raise RuntimeError("boom")

        healthy = RecordingSink()
        hub = NeoHub(
            NeoHubConfiguration("10.0.0.5", 4242, 30),
            sink_provider=lambda: [BrokenSink(), healthy],
            scheduler=scheduler,
            connection_factory=connection_factory,
        )
        hub.initialize()

        scheduler.task("lazy-polling").tick()

        assert len(healthy.calls) == 1

    def test_sinks_are_enumerated_every_cycle(self, scheduler, connection_factory):
        registry = []
        hub = NeoHub(
            NeoHubConfiguration("10.0.0.5", 4242, 30),
            sink_provider=lambda: registry,
            scheduler=scheduler,
            connection_factory=connection_factory,
        )
        hub.initialize()

        first = RecordingSink("first")
        registry.append(first)
        scheduler.task("lazy-polling").tick()

        second = RecordingSink("second")
        registry.append(second)
        scheduler.task("lazy-polling").tick()

        assert len(first.calls) == 2
        assert len(second.calls) == 1

    def test_recovers_online_after_failure(self, make_hub, scheduler, connections, status_changes):
        hub = make_hub()
        hub.initialize()
        connections[0].queue(CMD_CODE_INFO, OSError("down"))

        scheduler.task("lazy-polling").tick()
        scheduler.task("lazy-polling").tick()

        assert hub.health == HubHealth.ONLINE
        assert status_changes == [
            (HubHealth.OFFLINE_COMMUNICATION_ERROR, None),
            (HubHealth.ONLINE, None),
        ]

    def test_empty_device_list_does_not_bring_hub_online(self, make_hub, scheduler, connections):
        hub = make_hub()
        hub.initialize()
        connections[0].queue(CMD_CODE_INFO, OSError("down"), INFO_NO_DEVICES)

        scheduler.task("lazy-polling").tick()
        scheduler.task("lazy-polling").tick()

        assert hub.health == HubHealth.OFFLINE_COMMUNICATION_ERROR

    def test_poll_before_initialize_is_harmless(self, make_hub, sinks, status_changes):
        hub = make_hub()

        hub._lazy_polling_execute()

        assert hub.health == HubHealth.UNKNOWN
        assert status_changes == []
        assert all(sink.calls == [] for sink in sinks)

    def test_poll_info_response_takes_the_lock(self, make_hub, connections):
        hub = make_hub()
        hub.initialize()

        info_response = hub.poll_info_response()

        assert info_response.device_names == ["Kitchen", "Hall Plug"]
        assert hub.health == HubHealth.ONLINE
        assert hub.poll_dcb_response().temperature_unit == TemperatureUnit.CELSIUS


class TestFastPollingBurst:
    """Tests for the fast polling burst."""

    def test_burst_polls_fast_poll_cycles_times(self, make_hub, scheduler, connections):
        hub = make_hub()
        hub.initialize()
        fast = scheduler.task("fast-polling")

        for expected in range(1, FAST_POLL_CYCLES + 1):
            fast.tick()
            assert connections[0].count(CMD_CODE_INFO) == expected

        assert hub.fast_polling_calls_to_go == 0
        fast.tick()
        assert connections[0].count(CMD_CODE_INFO) == FAST_POLL_CYCLES

    def test_failed_cycles_count_down_too(self, make_hub, scheduler, connections):
        hub = make_hub()
        hub.initialize()
        connections[0].defaults[CMD_CODE_INFO] = OSError("unreachable")

        scheduler.task("lazy-polling").tick()

        assert hub.fast_polling_calls_to_go == FAST_POLL_CYCLES - 1

    def test_lazy_cycles_count_down_the_burst(self, make_hub, scheduler):
        hub = make_hub()
        hub.initialize()

        for _ in range(FAST_POLL_CYCLES + 2):
            scheduler.task("lazy-polling").tick()

        assert hub.fast_polling_calls_to_go == 0

    def test_repeated_triggers_never_exceed_maximum(self, make_hub):
        hub = make_hub()
        hub.initialize()

        for _ in range(10):
            hub.start_fast_polling_burst()

        assert hub.fast_polling_calls_to_go == FAST_POLL_CYCLES

    def test_scenario_first_poll_fails_second_succeeds(
        self, make_hub, scheduler, connections, sinks
    ):
        hub = make_hub("10.0.0.5", 4242, 30)
        hub.initialize()
        assert hub.health == HubHealth.UNKNOWN
        assert hub.fast_polling_calls_to_go == FAST_POLL_CYCLES

        connections[0].queue(CMD_CODE_INFO, OSError("simulated transport error"))
        fast = scheduler.task("fast-polling")

        fast.tick()
        assert hub.health == HubHealth.OFFLINE_COMMUNICATION_ERROR
        assert hub.fast_polling_calls_to_go == FAST_POLL_CYCLES - 1
        assert all(sink.calls == [] for sink in sinks)

        fast.tick()
        assert hub.health == HubHealth.ONLINE
        for sink in sinks:
            assert len(sink.calls) == 1
            assert len(sink.calls[0][0].devices) == 2


# ============================================================================
# Commands
# ============================================================================


class TestSendChannelValue:
    """Tests for NeoHub.send_channel_value."""

    def test_success_restarts_the_burst(self, make_hub, scheduler, connections):
        hub = make_hub()
        hub.initialize()
        for _ in range(FAST_POLL_CYCLES):
            scheduler.task("lazy-polling").tick()
        assert hub.fast_polling_calls_to_go == 0

        result = hub.send_channel_value("set:20.5")

        assert result == NeoHubReturnResult.SUCCEEDED
        assert connections[0].requests[-1] == "set:20.5"
        assert hub.fast_polling_calls_to_go == FAST_POLL_CYCLES

    def test_not_initialized(self, make_hub, connections):
        hub = make_hub()

        result = hub.send_channel_value("set:20.5")

        assert result == NeoHubReturnResult.ERR_INITIALIZATION
        assert connections == []

    def test_not_initialized_after_configuration_error(self, make_hub, connections):
        hub = make_hub(host_name="")
        hub.initialize()

        assert hub.send_channel_value("set:20.5") == NeoHubReturnResult.ERR_INITIALIZATION
        assert connections == []

    def test_communication_error(self, make_hub, scheduler, connections):
        hub = make_hub()
        hub.initialize()
        scheduler.task("lazy-polling").tick()
        counter_before = hub.fast_polling_calls_to_go
        connections[0].queue("set:20.5", OSError("connection refused"))

        result = hub.send_channel_value("set:20.5")

        assert result == NeoHubReturnResult.ERR_COMMUNICATION
        assert hub.health == HubHealth.OFFLINE_COMMUNICATION_ERROR
        assert hub.fast_polling_calls_to_go == counter_before

    def test_many_commands_leave_counter_at_maximum(self, make_hub):
        hub = make_hub()
        hub.initialize()

        results = {hub.send_channel_value(f"cmd-{i}") for i in range(20)}

        assert results == {NeoHubReturnResult.SUCCEEDED}
        assert hub.fast_polling_calls_to_go == FAST_POLL_CYCLES


# ============================================================================
# Concurrency
# ============================================================================


class SlowConnection:
    """Connection that records how many exchanges overlap."""

    def __init__(self, host_name, port_number):
        self._lock = threading.Lock()
        self.active = 0
        self.max_active = 0

    def send_message(self, request):
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        time.sleep(0.005)
        with self._lock:
            self.active -= 1
        if request == CMD_CODE_INFO:
            return '{"devices": [{"device": "Kitchen"}]}'
        return '{"CORF": "C"}'


class TestConcurrency:
    """Polls and commands never overlap on the connection."""

    def test_one_exchange_at_a_time(self, scheduler):
        connection = SlowConnection("10.0.0.5", 4242)
        hub = NeoHub(
            NeoHubConfiguration("10.0.0.5", 4242, 30),
            scheduler=scheduler,
            connection_factory=lambda host, port: connection,
        )
        hub.initialize()

        def poll():
            for _ in range(5):
                scheduler.task("lazy-polling").tick()

        def command():
            for _ in range(5):
                hub.send_channel_value("set:20.5")

        workers = [threading.Thread(target=poll), threading.Thread(target=poll)]
        workers += [threading.Thread(target=command) for _ in range(3)]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join(timeout=10)

        assert connection.max_active == 1
        assert hub.fast_polling_calls_to_go >= 0


class TestFastPollingCounter:
    """Tests for FastPollingCounter."""

    def test_never_negative(self):
        counter = FastPollingCounter(1)

        assert counter.decrement_if_positive() == 0
        assert counter.decrement_if_positive() == 0
        assert counter.get() == 0

    def test_concurrent_decrements(self):
        counter = FastPollingCounter(1000)

        def drain():
            for _ in range(300):
                counter.decrement_if_positive()

        workers = [threading.Thread(target=drain) for _ in range(5)]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join(timeout=10)

        assert counter.get() == 0


class TestConstruction:
    """Collaborators are optional; a bare hub polls on its own threads."""

    def test_collaborators_are_optional(self):
        hints = typing.get_type_hints(NeoHub.__init__)

        for name in ("sink_provider", "status_listener", "scheduler", "connection_factory", "logger"):
            assert type(None) in typing.get_args(hints[name]), name

    def test_standalone_hub_uses_thread_scheduler(self):
        hub = NeoHub(NeoHubConfiguration("10.0.0.5", 4242, 30))

        assert isinstance(hub._scheduler, Scheduler)
        assert hub.health == HubHealth.UNKNOWN
