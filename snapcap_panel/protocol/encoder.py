"""
Frame encoding and reply validation for the SnapCap protocol.
"""

from dataclasses import dataclass
from typing import Union

from snapcap_panel.protocol.commands import (
    Command,
    FRAME_TERMINATOR,
    MAX_VALUE,
    MIN_VALUE,
    REPLY_LENGTH,
    REPLY_MARKER,
    REQUEST_MARKER,
)
from snapcap_panel.utils.exceptions import InvalidValueError, UnexpectedReplyError


@dataclass(frozen=True)
class Reply:
    """A raw 7-byte reply from the device."""

    raw: bytes

    @property
    def marker(self) -> str:
        return chr(self.raw[0])

    @property
    def command_char(self) -> str:
        return chr(self.raw[1])

    @property
    def payload(self) -> bytes:
        """The 3 command-specific bytes after the echo."""
        return self.raw[2:5]

    @property
    def text(self) -> str:
        """Printable rendering, non-ASCII bytes replaced."""
        return self.raw.decode("ascii", errors="replace")

    def hex(self) -> str:
        return " ".join(f"{b:02X}" for b in self.raw)


def encode_command(cmd: Union[Command, str], value: int = 0) -> bytes:
    """
    Encode command as 7-byte request frame.

    Args:
        cmd: Command (or its single wire character).
        value: Decimal parameter 0-255 (zero-padded to 3 digits).

    Returns:
        7 bytes: '>' + cmd + value + CR LF.

    Raises:
        InvalidValueError: If value is outside 0-255.
        ValueError: If cmd is not part of the command alphabet.

    Example:
        >>> encode_command(Command.SET_BRIGHTNESS, 7)
        b'>B007\\r\\n'
    """
    command = Command(cmd)

    if value < MIN_VALUE or value > MAX_VALUE:
        raise InvalidValueError(f"Value must be {MIN_VALUE}-{MAX_VALUE}, got: {value}")

    return f"{REQUEST_MARKER}{command.char}{value:03d}{FRAME_TERMINATOR}".encode("ascii")


def validate_reply(raw: bytes, cmd: Union[Command, str]) -> Reply:
    """
    Check that a reply belongs to the command that was sent.

    Args:
        raw: Bytes read from the device.
        cmd: Command that was sent.

    Returns:
        The validated Reply.

    Raises:
        UnexpectedReplyError: If the length, start marker or echoed command is wrong.
    """
    command = Command(cmd)

    if len(raw) != REPLY_LENGTH:
        raise UnexpectedReplyError(
            f"Expected {REPLY_LENGTH} bytes in reply to {command.char}, got {len(raw)}", bytes(raw)
        )

    reply = Reply(bytes(raw))

    if reply.marker != REPLY_MARKER:
        raise UnexpectedReplyError(
            f"Reply to {command.char} does not start with '{REPLY_MARKER}': {reply.hex()}", reply.raw
        )

    if reply.command_char != command.char:
        raise UnexpectedReplyError(
            f"Reply echoes '{reply.command_char}' instead of '{command.char}': {reply.hex()}", reply.raw
        )

    return reply


def parse_device_tag(reply: Reply) -> str:
    """
    Extract the device tag from a Version reply.

    The 4 characters after '*V', as sent.
    """
    return reply.raw[2:6].decode("ascii", errors="replace")
