"""
Map SnapCap exceptions to HTTP status codes and error kinds.
"""

from typing import Tuple
from snapcap_panel.utils.exceptions import (
    NotConnectedError,
    InvalidValueError,
    PortOpenFailedError,
    TransportFaultError,
    HandshakeFailedError,
    UnexpectedReplyError,
    DeviceUnresponsiveError,
    ProtocolError,
    SerialTimeoutError,
)


HTTP_CONFLICT = 409
HTTP_UNPROCESSABLE = 422
HTTP_BAD_GATEWAY = 502
HTTP_SERVICE_UNAVAILABLE = 503
HTTP_INTERNAL_ERROR = 500


def map_exception_to_http(exception: Exception) -> Tuple[int, str]:
    """
    Map exception to HTTP status code and error kind.

    Args:
        exception: Python exception.

    Returns:
        Tuple of (status_code, error_kind).
    """
    if isinstance(exception, NotConnectedError):
        return (HTTP_CONFLICT, "NotConnected")

    if isinstance(exception, InvalidValueError):
        return (HTTP_UNPROCESSABLE, "InvalidValue")

    if isinstance(exception, PortOpenFailedError):
        return (HTTP_SERVICE_UNAVAILABLE, "PortOpenFailed")

    if isinstance(exception, TransportFaultError):
        return (HTTP_SERVICE_UNAVAILABLE, "TransportFault")

    if isinstance(exception, HandshakeFailedError):
        return (HTTP_BAD_GATEWAY, "HandshakeFailed")

    if isinstance(exception, UnexpectedReplyError):
        return (HTTP_BAD_GATEWAY, "UnexpectedReply")

    if isinstance(exception, (DeviceUnresponsiveError, SerialTimeoutError)):
        return (HTTP_BAD_GATEWAY, "DeviceUnresponsive")

    if isinstance(exception, ProtocolError):
        return (HTTP_BAD_GATEWAY, "ProtocolError")

    return (HTTP_INTERNAL_ERROR, "InternalError")
