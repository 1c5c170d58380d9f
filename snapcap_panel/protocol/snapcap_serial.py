"""
Serial protocol driver for SnapCap hardware.

One exchange at a time: discard stale input, write a 7-byte request, collect
a 7-byte reply within a bounded number of read attempts, then validate the
start marker and the echoed command before anything is decoded.
"""

import logging
import threading
from dataclasses import replace
from typing import Optional, Union

from snapcap_panel.config.models import SerialConfig
from snapcap_panel.cover.state import ConnectionState, DeviceState
from snapcap_panel.protocol.commands import Command, REPLY_LENGTH
from snapcap_panel.protocol.decoder import decode_brightness, decode_status
from snapcap_panel.protocol.encoder import Reply, encode_command, parse_device_tag, validate_reply
from snapcap_panel.protocol.interface import TransportInterface
from snapcap_panel.protocol.logger import get_protocol_logger
from snapcap_panel.utils.exceptions import (
    DeviceUnresponsiveError,
    HandshakeFailedError,
    InvalidValueError,
    NotConnectedError,
    ProtocolError,
    SerialTimeoutError,
    TransportFaultError,
)


logger = logging.getLogger(__name__)


class SnapCapSerial:
    """
    SnapCap protocol driver.

    Owns the connection state and the last-known device state. Device state
    is only replaced after a successful QueryStatus or QueryBrightness.
    """

    def __init__(self, transport: TransportInterface, config: SerialConfig):
        """
        Initialize protocol driver.

        Args:
            transport: Byte-stream transport (real serial port or simulator).
            config: Serial port configuration.
        """
        self._transport = transport
        self._config = config
        self._serial_lock = threading.RLock()

        self._connection = ConnectionState()
        self._device_state = DeviceState()

    @property
    def transport(self) -> TransportInterface:
        return self._transport

    @property
    def connection_state(self) -> ConnectionState:
        return self._connection

    @property
    def device_state(self) -> DeviceState:
        return self._device_state

    @property
    def device_tag(self) -> str:
        return self._connection.device_tag

    @property
    def port_name(self) -> str:
        return self._connection.port_name or self._config.port

    def is_connected(self) -> bool:
        return self._connection.connected and self._transport.is_open

    def connect(self, port_name: Optional[str] = None) -> ConnectionState:
        """
        Open the port and validate the device with the Version handshake.

        Reads status and brightness once the handshake succeeds.

        Args:
            port_name: Port to open. Defaults to the configured port.

        Returns:
            The new connection state.

        Raises:
            PortNotFoundError: If the port does not exist.
            PortInUseError: If the port is busy.
            HandshakeFailedError: If the device does not answer like a SnapCap.
        """
        port_name = port_name or self._config.port
        if not port_name:
            raise NotConnectedError("No serial port selected")

        with self._serial_lock:
            if self.is_connected():
                if port_name == self._connection.port_name:
                    logger.warning("Already connected")
                    return self._connection
                self.disconnect()

            self._transport.open(port_name, self._config.baud)

            try:
                reply = self._exchange(Command.VERSION, 0)
            except (ProtocolError, TransportFaultError) as e:
                self._transport.close()
                raise HandshakeFailedError(
                    f"Invalid response from device on {port_name}, is the port correct? ({e})"
                ) from e

            device_tag = parse_device_tag(reply)
            self._connection = ConnectionState(connected=True, port_name=port_name, device_tag=device_tag)
            self._device_state = DeviceState()

            logger.info(f"Connected to SnapCap {device_tag} on {port_name}")

            try:
                self.query_status()
                self.query_brightness()
            except ProtocolError as e:
                # State stays UNKNOWN until the next successful poll
                logger.warning(f"Initial state read failed: {e}")

        return self._connection

    def disconnect(self) -> None:
        """Close the serial port."""
        with self._serial_lock:
            self._transport.close()
            if self._connection.connected:
                logger.info(f"Disconnected from {self._connection.port_name}")
            self._connection = ConnectionState()

    def send_command(self, cmd: Union[Command, str], value: int = 0) -> Reply:
        """
        Send a command and wait for its reply.

        Args:
            cmd: Command to send.
            value: Command parameter 0-255 (SetBrightness only).

        Returns:
            The validated 7-byte reply.

        Raises:
            NotConnectedError: If not connected.
            InvalidValueError: If value is out of range.
            UnexpectedReplyError: If the reply has a wrong marker or echo.
            DeviceUnresponsiveError: If no complete reply arrives.
            TransportFaultError: On a line error (the connection is dropped).
        """
        with self._serial_lock:
            if not self.is_connected():
                raise NotConnectedError("SnapCap not connected")

            try:
                return self._exchange(Command(cmd), value)
            except TransportFaultError:
                logger.error("Transport fault, dropping connection")
                self.disconnect()
                raise

    def _exchange(self, cmd: Command, value: int) -> Reply:
        """Single request/reply exchange (caller holds the serial lock)."""
        protocol_logger = get_protocol_logger()

        frame = encode_command(cmd, value)

        self._transport.discard_input()

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"TX: {' '.join(f'{b:02X}' for b in frame)}")
        protocol_logger.log_tx(frame, cmd, value)

        self._transport.write(frame)

        raw = self._read_reply(cmd, protocol_logger)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"RX: {' '.join(f'{b:02X}' for b in raw)}")
        protocol_logger.log_rx(raw)

        try:
            return validate_reply(raw, cmd)
        except ProtocolError as e:
            protocol_logger.log_error(str(e), raw)
            logger.warning(f"Invalid response to command {cmd.char}: {e}")
            raise

    def _read_reply(self, cmd: Command, protocol_logger) -> bytes:
        """Collect exactly REPLY_LENGTH bytes within max_read_attempts reads."""
        buffer = b""
        attempts = self._config.max_read_attempts

        for attempt in range(1, attempts + 1):
            try:
                buffer += self._transport.read_exactly(
                    REPLY_LENGTH - len(buffer), self._config.read_timeout_seconds
                )
                return buffer
            except SerialTimeoutError as e:
                buffer += e.partial
                logger.debug(
                    f"Waiting for reply to {cmd.char}: {len(buffer)}/{REPLY_LENGTH} bytes "
                    f"after attempt {attempt}/{attempts}"
                )

        protocol_logger.log_error(f"No complete reply to {cmd.char} after {attempts} attempts", buffer)
        raise DeviceUnresponsiveError(
            f"No complete reply to {cmd.char} after {attempts} attempts "
            f"({len(buffer)}/{REPLY_LENGTH} bytes received)"
        )

    def query_status(self) -> DeviceState:
        """
        Refresh cover, motor and light status.

        Returns:
            The updated device state.
        """
        with self._serial_lock:
            reply = self.send_command(Command.QUERY_STATUS)
            status = decode_status(reply)
            self._device_state = self._device_state.with_status(status)
            logger.debug(f"Status: {self._device_state}")
            return self._device_state

    def query_brightness(self) -> int:
        """
        Refresh light panel brightness.

        Returns:
            Brightness 0-255.
        """
        with self._serial_lock:
            reply = self.send_command(Command.QUERY_BRIGHTNESS)
            brightness = decode_brightness(reply)
            self._device_state = replace(self._device_state, brightness=brightness)
            logger.debug(f"Brightness: {brightness}")
            return brightness

    def set_brightness(self, raw: int) -> Reply:
        """
        Set light panel brightness.

        Device state is not touched; call query_brightness() to confirm.

        Args:
            raw: Brightness 0-255.
        """
        if raw < 0 or raw > 255:
            raise InvalidValueError(f"Brightness must be 0-255, got {raw}")
        logger.info(f"Setting brightness to {raw}")
        return self.send_command(Command.SET_BRIGHTNESS, raw)
