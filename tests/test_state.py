"""Tests for status decoding, brightness mapping and control enablement."""

import pytest

from snapcap_panel.cover.state import (
    ConnectionState,
    CoverStatus,
    DeviceState,
    Enablement,
    LightStatus,
    MotorStatus,
    derive_ui_enablement,
    describe_cover,
    percent_from_raw,
    raw_from_percent,
)
from snapcap_panel.protocol.commands import Command
from snapcap_panel.protocol.decoder import decode_brightness, decode_status
from snapcap_panel.protocol.encoder import validate_reply
from snapcap_panel.utils.exceptions import InvalidValueError, UnexpectedReplyError


CONNECTED = ConnectionState(connected=True, port_name="COM3", device_tag="0100")


def status(raw):
    return decode_status(validate_reply(raw, Command.QUERY_STATUS))


def test_decode_status_digits():
    """Offsets 2, 3, 4 are motor, light, cover."""
    state = status(b"*S112\r\n")
    assert state.motor_status == MotorStatus.MOVING
    assert state.light_status == LightStatus.ON
    assert state.cover_status == CoverStatus.CLOSED


def test_decode_status_rejects_light_out_of_range():
    with pytest.raises(UnexpectedReplyError):
        status(b"*S120\r\n")


def test_decode_status_rejects_motor_out_of_range():
    with pytest.raises(UnexpectedReplyError):
        status(b"*S301\r\n")


def test_decode_status_rejects_non_digit():
    with pytest.raises(UnexpectedReplyError):
        status(b"*S0x1\r\n")


@pytest.mark.parametrize("cover_digit", [b"7", b"9"])
def test_decode_status_unknown_cover(cover_digit):
    assert status(b"*S00" + cover_digit + b"\r\n").cover_status == CoverStatus.UNKNOWN


def test_decode_brightness():
    assert decode_brightness(validate_reply(b"*J128\r\n", Command.QUERY_BRIGHTNESS)) == 128


@pytest.mark.parametrize("raw", [b"*J256\r\n", b"*J1a0\r\n", b"*J   \r\n"])
def test_decode_brightness_rejects_bad_payload(raw):
    with pytest.raises(UnexpectedReplyError):
        decode_brightness(validate_reply(raw, Command.QUERY_BRIGHTNESS))


def test_percent_endpoints():
    assert percent_from_raw(0) == 0
    assert percent_from_raw(255) == 100
    assert raw_from_percent(0) == 0
    assert raw_from_percent(100) == 255


def test_brightness_round_trip_within_one_step():
    for raw in range(256):
        assert abs(raw_from_percent(percent_from_raw(raw)) - raw) <= 1


@pytest.mark.parametrize("percent", [-1, 101])
def test_raw_from_percent_rejects_out_of_range(percent):
    with pytest.raises(InvalidValueError):
        raw_from_percent(percent)


def test_describe_cover_moving_overrides_status():
    assert describe_cover(DeviceState(cover_status=CoverStatus.OPEN, motor_status=MotorStatus.MOVING)) == "Moving"
    assert describe_cover(DeviceState(cover_status=CoverStatus.OPEN_CIRCUIT)) == "Open circuit"
    assert describe_cover(DeviceState()) == "Unknown"


def test_enablement_disconnected_disables_everything():
    state = DeviceState(cover_status=CoverStatus.CLOSED)
    assert derive_ui_enablement(state, ConnectionState()) == Enablement()


@pytest.mark.parametrize("cover, can_open, can_close", [
    (CoverStatus.OPEN, False, True),
    (CoverStatus.CLOSED, True, False),
    (CoverStatus.TIMEOUT, True, True),
    (CoverStatus.OPEN_CIRCUIT, True, True),
    (CoverStatus.USER_ABORT, True, True),
    (CoverStatus.OVERCURRENT, False, False),
    (CoverStatus.UNKNOWN, False, False),
])
def test_enablement_by_cover_status(cover, can_open, can_close):
    enablement = derive_ui_enablement(DeviceState(cover_status=cover), CONNECTED)
    assert enablement.open is can_open
    assert enablement.close is can_close
    assert enablement.force_open and enablement.force_close
    assert enablement.abort and enablement.brightness


def test_enablement_moving_disables_open_and_close():
    state = DeviceState(cover_status=CoverStatus.TIMEOUT, motor_status=MotorStatus.MOVING)
    enablement = derive_ui_enablement(state, CONNECTED)
    assert not enablement.open
    assert not enablement.close
    assert enablement.abort


def test_enablement_light_toggle():
    on = derive_ui_enablement(DeviceState(light_status=LightStatus.ON), CONNECTED)
    off = derive_ui_enablement(DeviceState(light_status=LightStatus.OFF), CONNECTED)
    assert (on.light_on, on.light_off) == (False, True)
    assert (off.light_on, off.light_off) == (True, False)
