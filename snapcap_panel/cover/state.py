"""
Cover device state, brightness mapping and control enablement.

The device is the authority: state here is only ever replaced from a decoded
QueryStatus / QueryBrightness reply, never advanced locally.
"""

from dataclasses import dataclass, replace
from enum import IntEnum

from snapcap_panel.utils.exceptions import InvalidValueError


BRIGHTNESS_MIN = 0
BRIGHTNESS_MAX = 255


class CoverStatus(IntEnum):
    UNKNOWN = 0
    OPEN = 1
    CLOSED = 2
    TIMEOUT = 3
    OPEN_CIRCUIT = 4
    OVERCURRENT = 5
    USER_ABORT = 6


class MotorStatus(IntEnum):
    IDLE = 0
    MOVING = 1


class LightStatus(IntEnum):
    OFF = 0
    ON = 1


COVER_LABELS = {
    CoverStatus.UNKNOWN: "Unknown",
    CoverStatus.OPEN: "Open",
    CoverStatus.CLOSED: "Closed",
    CoverStatus.TIMEOUT: "Timeout",
    CoverStatus.OPEN_CIRCUIT: "Open circuit",
    CoverStatus.OVERCURRENT: "Overcurrent",
    CoverStatus.USER_ABORT: "User abort",
}


@dataclass(frozen=True)
class DeviceState:
    """Last-known state reported by the device."""

    cover_status: CoverStatus = CoverStatus.UNKNOWN
    motor_status: MotorStatus = MotorStatus.IDLE
    light_status: LightStatus = LightStatus.OFF
    brightness: int = BRIGHTNESS_MAX

    @property
    def is_moving(self) -> bool:
        return self.motor_status == MotorStatus.MOVING

    @property
    def brightness_percent(self) -> int:
        return percent_from_raw(self.brightness)

    def with_status(self, status: "DeviceState") -> "DeviceState":
        """Copy with cover/motor/light taken from a decoded status, brightness kept."""
        return replace(
            self,
            cover_status=status.cover_status,
            motor_status=status.motor_status,
            light_status=status.light_status,
        )


@dataclass(frozen=True)
class ConnectionState:
    connected: bool = False
    port_name: str = ""
    device_tag: str = ""


@dataclass(frozen=True)
class Enablement:
    """Which operator controls are usable right now."""

    open: bool = False
    close: bool = False
    force_open: bool = False
    force_close: bool = False
    light_on: bool = False
    light_off: bool = False
    abort: bool = False
    brightness: bool = False


def percent_from_raw(raw: int) -> int:
    """Raw brightness 0-255 to display percent, rounding half up."""
    return (raw * 100 + 127) // 255


def raw_from_percent(percent: int) -> int:
    """
    Display percent 0-100 to raw brightness, rounding half up.

    Not the exact inverse of percent_from_raw(): 101 percent steps cover 256
    raw values, so a round trip lands within one step of the original raw
    value, not always on it.

    Raises:
        InvalidValueError: If percent is outside 0-100.
    """
    if percent < 0 or percent > 100:
        raise InvalidValueError(f"Brightness must be 0-100%, got {percent}")
    raw = (percent * 255 + 50) // 100
    return max(BRIGHTNESS_MIN, min(raw, BRIGHTNESS_MAX))


def describe_cover(state: DeviceState) -> str:
    """Label shown for the cover; motion overrides the cover status."""
    if state.is_moving:
        return "Moving"
    return COVER_LABELS.get(state.cover_status, COVER_LABELS[CoverStatus.UNKNOWN])


def describe_light(state: DeviceState) -> str:
    return "On" if state.light_status == LightStatus.ON else "Off"


def derive_ui_enablement(state: DeviceState, connection: ConnectionState) -> Enablement:
    """Compute control enablement from scratch for the given state."""
    if not connection.connected:
        return Enablement()

    if state.is_moving:
        can_open = can_close = False
    elif state.cover_status == CoverStatus.OPEN:
        can_open, can_close = False, True
    elif state.cover_status == CoverStatus.CLOSED:
        can_open, can_close = True, False
    elif state.cover_status in (CoverStatus.TIMEOUT, CoverStatus.OPEN_CIRCUIT, CoverStatus.USER_ABORT):
        can_open = can_close = True
    else:
        # Overcurrent and Unknown
        can_open = can_close = False

    light_on = state.light_status == LightStatus.ON

    return Enablement(
        open=can_open,
        close=can_close,
        force_open=True,
        force_close=True,
        light_on=not light_on,
        light_off=light_on,
        abort=True,
        brightness=True,
    )
