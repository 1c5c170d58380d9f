"""Shared fixtures: a virtual SnapCap wired to the real driver and controller."""

import pytest

from snapcap_panel.config.models import PanelConfig, SerialConfig, SimulatorConfig
from snapcap_panel.cover.controller import CoverController
from snapcap_panel.protocol.snapcap_serial import SnapCapSerial
from snapcap_panel.simulator.mock_serial import MockSnapCapTransport, SIMULATOR_PORT


class FakeClock:
    """Manually advanced monotonic clock for simulated cover motion."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakePollTimer:
    """Records scheduled polls instead of running them on a thread."""

    def __init__(self):
        self.callback = None
        self.schedule_count = 0
        self.cancel_count = 0

    @property
    def pending(self):
        return self.callback is not None

    def schedule(self, callback):
        self.schedule_count += 1
        self.callback = callback

    def cancel(self):
        self.cancel_count += 1
        self.callback = None

    def fire(self):
        callback, self.callback = self.callback, None
        callback()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def simulator(clock):
    return MockSnapCapTransport(SimulatorConfig(enabled=True, motion_seconds=3.0), clock=clock)


@pytest.fixture
def driver(simulator):
    return SnapCapSerial(simulator, SerialConfig(port=SIMULATOR_PORT, read_timeout_seconds=0.05))


@pytest.fixture
def poll_timer():
    return FakePollTimer()


@pytest.fixture
def controller(driver, poll_timer):
    return CoverController(driver, PanelConfig(), poll_timer=poll_timer)
