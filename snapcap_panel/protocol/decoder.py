"""
Payload decoding for QueryStatus and QueryBrightness replies.
"""

from snapcap_panel.cover.state import (
    BRIGHTNESS_MAX,
    CoverStatus,
    DeviceState,
    LightStatus,
    MotorStatus,
)
from snapcap_panel.protocol.encoder import Reply
from snapcap_panel.utils.exceptions import UnexpectedReplyError


def _digit(reply: Reply, offset: int, name: str) -> int:
    char = chr(reply.raw[offset])
    if not char.isdigit():
        raise UnexpectedReplyError(
            f"{name} at offset {offset} is not a decimal digit: {reply.hex()}", reply.raw
        )
    return int(char)


def decode_status(reply: Reply) -> DeviceState:
    """
    Decode a QueryStatus reply.

    Offsets 2, 3 and 4 carry motor, light and cover status digits in that
    order. Motor and light digits outside their enums are rejected; cover
    digits outside 0-6 are reported as UNKNOWN. Brightness is left at its
    default, combine with DeviceState.with_status().

    Raises:
        UnexpectedReplyError: If a digit is missing or motor/light is out of range.
    """
    motor = _digit(reply, 2, "motor status")
    light = _digit(reply, 3, "light status")
    cover = _digit(reply, 4, "cover status")

    try:
        motor_status = MotorStatus(motor)
    except ValueError:
        raise UnexpectedReplyError(f"Motor status {motor} out of range: {reply.hex()}", reply.raw)

    try:
        light_status = LightStatus(light)
    except ValueError:
        raise UnexpectedReplyError(f"Light status {light} out of range: {reply.hex()}", reply.raw)

    try:
        cover_status = CoverStatus(cover)
    except ValueError:
        cover_status = CoverStatus.UNKNOWN

    return DeviceState(
        cover_status=cover_status,
        motor_status=motor_status,
        light_status=light_status,
    )


def decode_brightness(reply: Reply) -> int:
    """
    Decode a QueryBrightness reply (3 decimal digits at offsets 2-4).

    Raises:
        UnexpectedReplyError: If the payload is not a number in 0-255.
    """
    text = reply.payload.decode("ascii", errors="replace")
    if not text.isdigit():
        raise UnexpectedReplyError(f"Brightness is not a 3-digit number: {reply.hex()}", reply.raw)

    brightness = int(text)
    if brightness > BRIGHTNESS_MAX:
        raise UnexpectedReplyError(f"Brightness {brightness} out of range: {reply.hex()}", reply.raw)

    return brightness
