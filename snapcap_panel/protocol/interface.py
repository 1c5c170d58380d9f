"""
Abstract interface for the byte-stream transport.

This interface allows transparent substitution between a real serial port
and the simulator.
"""

from abc import ABC, abstractmethod


class TransportInterface(ABC):
    """Abstract base class for byte-stream transports."""

    @abstractmethod
    def open(self, port_name: str, baud_rate: int) -> None:
        """
        Open the named port.

        Raises:
            PortNotFoundError: If the port does not exist.
            PortInUseError: If the port is busy or access is denied.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the port. Safe to call when already closed."""
        pass

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """True while the port is open."""
        pass

    @abstractmethod
    def write(self, data: bytes) -> None:
        """
        Write and flush bytes.

        Raises:
            TransportFaultError: On a line error.
        """
        pass

    @abstractmethod
    def discard_input(self) -> None:
        """
        Drop any bytes waiting in the receive buffer.

        Raises:
            TransportFaultError: On a line error.
        """
        pass

    @abstractmethod
    def read_exactly(self, n: int, timeout_seconds: float) -> bytes:
        """
        Block until n bytes arrive or the timeout elapses.

        Args:
            n: Number of bytes wanted.
            timeout_seconds: Upper bound for this read.

        Returns:
            Exactly n bytes.

        Raises:
            SerialTimeoutError: If fewer than n bytes arrived (partial bytes attached).
            TransportFaultError: On a line error.
        """
        pass
