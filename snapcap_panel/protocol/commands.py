"""
SnapCap command alphabet and frame constants.
"""

from enum import Enum


REQUEST_MARKER = ">"
REPLY_MARKER = "*"
FRAME_TERMINATOR = "\r\n"

REQUEST_LENGTH = 7
REPLY_LENGTH = 7

MIN_VALUE = 0
MAX_VALUE = 255


class Command(str, Enum):
    """Single-character SnapCap commands."""

    VERSION = "V"
    OPEN = "O"
    CLOSE = "C"
    FORCE_OPEN = "o"
    FORCE_CLOSE = "c"
    LIGHT_ON = "L"
    LIGHT_OFF = "D"
    ABORT = "A"
    SET_BRIGHTNESS = "B"
    QUERY_STATUS = "S"
    QUERY_BRIGHTNESS = "J"

    @property
    def char(self) -> str:
        return self.value

    @property
    def description(self) -> str:
        return COMMAND_DESCRIPTIONS[self]

    @classmethod
    def from_char(cls, char: str) -> "Command":
        """
        Look up a command by its wire character.

        Raises:
            ValueError: If the character is not part of the alphabet.
        """
        return cls(char)


COMMAND_DESCRIPTIONS = {
    Command.VERSION: "Get Version",
    Command.OPEN: "Open Cover",
    Command.CLOSE: "Close Cover",
    Command.FORCE_OPEN: "Force Open Cover",
    Command.FORCE_CLOSE: "Force Close Cover",
    Command.LIGHT_ON: "Light On",
    Command.LIGHT_OFF: "Light Off",
    Command.ABORT: "Abort Motion",
    Command.SET_BRIGHTNESS: "Set Brightness",
    Command.QUERY_STATUS: "Query Status",
    Command.QUERY_BRIGHTNESS: "Query Brightness",
}

# Commands that start cover motion; a deferred status poll follows each one
MOTION_COMMANDS = frozenset({
    Command.OPEN,
    Command.CLOSE,
    Command.FORCE_OPEN,
    Command.FORCE_CLOSE,
})
