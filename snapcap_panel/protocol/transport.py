"""
pyserial-backed transport for the SnapCap serial line.
"""

import logging
from typing import Optional

import serial
from serial import SerialException

from snapcap_panel.protocol.interface import TransportInterface
from snapcap_panel.utils.exceptions import (
    PortInUseError,
    PortNotFoundError,
    SerialTimeoutError,
    TransportFaultError,
)


logger = logging.getLogger(__name__)


class SerialTransport(TransportInterface):
    """
    Real serial port transport.

    8N1 with no flow control; only the baud rate is configurable.
    """

    DATA_BITS = serial.EIGHTBITS
    PARITY = serial.PARITY_NONE
    STOP_BITS = serial.STOPBITS_ONE
    WRITE_TIMEOUT_SECONDS = 1.0

    def __init__(self):
        self._port: Optional[serial.Serial] = None

    def open(self, port_name: str, baud_rate: int) -> None:
        if self.is_open:
            self.close()

        logger.info(f"Opening serial port {port_name} at {baud_rate} baud")

        try:
            self._port = serial.Serial(
                port=port_name,
                baudrate=baud_rate,
                bytesize=self.DATA_BITS,
                parity=self.PARITY,
                stopbits=self.STOP_BITS,
                timeout=0,
                write_timeout=self.WRITE_TIMEOUT_SECONDS,
            )
        except (SerialException, ValueError) as e:
            self._port = None
            error_msg = str(e).lower()
            if "filenotfounderror" in error_msg or "no such file" in error_msg:
                raise PortNotFoundError(f"Failed to open {port_name}: Port not found") from e
            elif "access" in error_msg or "permission" in error_msg or "in use" in error_msg or "busy" in error_msg:
                raise PortInUseError(f"{port_name} is already in use or access was denied") from e
            else:
                raise PortNotFoundError(f"Failed to open {port_name}: {e}") from e

    def close(self) -> None:
        if self._port is not None:
            try:
                if self._port.is_open:
                    self._port.close()
                    logger.info("Serial port closed")
            except SerialException as e:
                logger.warning(f"Error while closing serial port: {e}")
        self._port = None

    @property
    def is_open(self) -> bool:
        return self._port is not None and self._port.is_open

    @property
    def port_name(self) -> Optional[str]:
        return self._port.port if self._port is not None else None

    def write(self, data: bytes) -> None:
        port = self._require_port()
        try:
            port.write(data)
            port.flush()
        except SerialException as e:
            raise TransportFaultError(f"Write failed: {e}") from e

    def discard_input(self) -> None:
        port = self._require_port()
        try:
            port.reset_input_buffer()
        except SerialException as e:
            raise TransportFaultError(f"Failed to clear receive buffer: {e}") from e

    def read_exactly(self, n: int, timeout_seconds: float) -> bytes:
        port = self._require_port()
        try:
            # pyserial keeps reading until n bytes or the timeout elapses
            port.timeout = timeout_seconds
            data = port.read(n)
        except SerialException as e:
            raise TransportFaultError(f"Read failed: {e}") from e

        if len(data) < n:
            raise SerialTimeoutError(
                f"Timeout after {timeout_seconds}s: received {len(data)}/{n} bytes", bytes(data)
            )

        return bytes(data)

    def _require_port(self) -> serial.Serial:
        if not self.is_open:
            raise TransportFaultError("Serial port not open")
        return self._port
