"""Tests for the protocol driver exchange, handshake and failure handling."""

from unittest.mock import MagicMock, call

import pytest

from snapcap_panel.config.models import SerialConfig
from snapcap_panel.cover.state import CoverStatus, LightStatus
from snapcap_panel.protocol.commands import Command
from snapcap_panel.protocol.interface import TransportInterface
from snapcap_panel.protocol.snapcap_serial import SnapCapSerial
from snapcap_panel.utils.exceptions import (
    DeviceUnresponsiveError,
    HandshakeFailedError,
    InvalidValueError,
    NotConnectedError,
    SerialTimeoutError,
    TransportFaultError,
    UnexpectedReplyError,
)


def make_driver(**config):
    transport = MagicMock(spec=TransportInterface)
    transport.is_open = True
    driver = SnapCapSerial(transport, SerialConfig(port="COM3", **config))
    return driver, transport


def connect(driver, transport):
    """Handshake, then the initial status and brightness reads."""
    transport.read_exactly.side_effect = [b"*V0100\n", b"*S002\r\n", b"*J128\r\n"]
    driver.connect("COM3")
    transport.reset_mock()


def test_handshake_accepts_snapcap():
    driver, transport = make_driver()
    connect(driver, transport)

    assert driver.is_connected()
    assert driver.device_tag == "0100"
    assert driver.connection_state.port_name == "COM3"
    assert driver.device_state.cover_status == CoverStatus.CLOSED
    assert driver.device_state.brightness == 128


def test_handshake_rejects_wrong_echo_and_closes_port():
    driver, transport = make_driver()
    transport.read_exactly.side_effect = [b"*X0100\n"]

    with pytest.raises(HandshakeFailedError):
        driver.connect("COM3")

    transport.close.assert_called_once()
    assert not driver.connection_state.connected


def test_handshake_rejects_silent_port():
    driver, transport = make_driver(max_read_attempts=2)
    transport.read_exactly.side_effect = SerialTimeoutError("timeout")

    with pytest.raises(HandshakeFailedError):
        driver.connect("COM3")

    assert transport.read_exactly.call_count == 2
    transport.close.assert_called_once()


def test_connect_keeps_connection_when_initial_status_is_garbage():
    driver, transport = make_driver()
    transport.read_exactly.side_effect = [b"*V0100\n", b"*S9x9\r\n"]

    driver.connect("COM3")

    assert driver.is_connected()
    assert driver.device_state.cover_status == CoverStatus.UNKNOWN


def test_send_command_requires_connection():
    driver, _ = make_driver()
    with pytest.raises(NotConnectedError):
        driver.send_command(Command.OPEN)


def test_stale_input_is_discarded_before_write():
    driver, transport = make_driver()
    connect(driver, transport)
    transport.read_exactly.side_effect = [b"*O000\r\n"]

    driver.send_command(Command.OPEN)

    names = [c[0] for c in transport.method_calls if c[0] in ("discard_input", "write")]
    assert names == ["discard_input", "write"]
    transport.write.assert_called_once_with(b">O000\r\n")


def test_fragmented_reply_accumulates_across_attempts():
    driver, transport = make_driver()
    connect(driver, transport)
    transport.read_exactly.side_effect = [
        SerialTimeoutError("timeout", b"*S0"),
        SerialTimeoutError("timeout", b"11"),
        b"\r\n",
    ]

    state = driver.query_status()

    assert state.cover_status == CoverStatus.OPEN
    assert state.light_status == LightStatus.ON
    assert transport.read_exactly.call_args_list == [call(7, 1.0), call(4, 1.0), call(2, 1.0)]


def test_silence_raises_after_exactly_max_attempts():
    driver, transport = make_driver(max_read_attempts=5)
    connect(driver, transport)
    transport.read_exactly.side_effect = SerialTimeoutError("timeout")

    with pytest.raises(DeviceUnresponsiveError):
        driver.send_command(Command.LIGHT_ON)

    assert transport.read_exactly.call_count == 5
    assert driver.is_connected()


def test_wrong_echo_leaves_state_untouched():
    driver, transport = make_driver()
    connect(driver, transport)
    before = driver.device_state
    transport.read_exactly.side_effect = [b"*J011\r\n"]

    with pytest.raises(UnexpectedReplyError):
        driver.query_status()

    assert driver.device_state == before


def test_transport_fault_drops_connection():
    driver, transport = make_driver()
    connect(driver, transport)
    transport.write.side_effect = TransportFaultError("Device disconnected")

    with pytest.raises(TransportFaultError):
        driver.send_command(Command.ABORT)

    transport.close.assert_called()
    assert not driver.connection_state.connected


def test_set_brightness_sends_raw_value():
    driver, transport = make_driver()
    connect(driver, transport)
    transport.read_exactly.side_effect = [b"*B200\r\n"]

    driver.set_brightness(200)

    transport.write.assert_called_once_with(b">B200\r\n")
    assert driver.device_state.brightness == 128


def test_set_brightness_rejects_out_of_range():
    driver, transport = make_driver()
    connect(driver, transport)

    with pytest.raises(InvalidValueError):
        driver.set_brightness(256)

    transport.write.assert_not_called()


def test_simulator_round_trip(driver, simulator):
    """The real driver talks to the virtual device byte for byte."""
    driver.connect()

    assert driver.device_tag == "0100"
    assert driver.device_state.cover_status == CoverStatus.CLOSED
    assert driver.device_state.brightness == 255


def test_simulator_fragmented_replies(driver, simulator):
    driver.connect()
    simulator.config.fragment_replies = True

    assert driver.query_brightness() == 255


def test_simulator_stale_bytes_are_discarded(driver, simulator):
    driver.connect()
    simulator.inject_stale_bytes(b"*J000\r\n*")

    assert driver.query_status().cover_status == CoverStatus.CLOSED
