"""
Custom exception classes for the SnapCap control panel.
"""


class SnapCapException(Exception):
    """Base exception for all SnapCap panel errors."""
    pass


class NotConnectedError(SnapCapException):
    """Raised when an operation requires a connection but the panel is disconnected."""
    pass


class InvalidValueError(SnapCapException):
    """Invalid parameter value (out of range brightness, bad command value)."""
    pass


class TransportError(SnapCapException):
    """Serial transport error."""
    pass


class PortOpenFailedError(TransportError):
    """The named serial port could not be opened."""
    pass


class PortNotFoundError(PortOpenFailedError):
    """Serial port does not exist."""
    pass


class PortInUseError(PortOpenFailedError):
    """Serial port is already open by another application or access was denied."""
    pass


class TransportFaultError(TransportError):
    """Line error during I/O (e.g. device unplugged). Forces a disconnect."""
    pass


class SerialTimeoutError(SnapCapException):
    """A single bounded read timed out before all bytes arrived."""

    def __init__(self, message: str, partial: bytes = b""):
        super().__init__(message)
        self.partial = partial


class HandshakeFailedError(SnapCapException):
    """The device did not answer the Version command like a SnapCap."""
    pass


class ProtocolError(SnapCapException):
    """Serial protocol error (malformed reply, wrong echo, no reply)."""
    pass


class UnexpectedReplyError(ProtocolError):
    """Reply did not start with the marker or did not echo the sent command."""

    def __init__(self, message: str, reply: bytes = b""):
        super().__init__(message)
        self.reply = reply


class DeviceUnresponsiveError(ProtocolError):
    """No complete reply after the maximum number of read attempts."""
    pass
