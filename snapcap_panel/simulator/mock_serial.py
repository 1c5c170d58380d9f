"""
Mock serial transport for hardware simulator.

Simulates a SnapCap at the byte level so the real protocol driver can run
without a physical device.
"""

import threading
import time
import logging
from typing import Callable, Optional

from snapcap_panel.config.models import SimulatorConfig
from snapcap_panel.cover.state import BRIGHTNESS_MAX, CoverStatus, LightStatus, MotorStatus
from snapcap_panel.protocol.commands import (
    Command,
    FRAME_TERMINATOR,
    REPLY_MARKER,
    REQUEST_LENGTH,
    REQUEST_MARKER,
)
from snapcap_panel.protocol.interface import TransportInterface
from snapcap_panel.utils.exceptions import (
    PortNotFoundError,
    SerialTimeoutError,
    TransportFaultError,
)


logger = logging.getLogger(__name__)

SIMULATOR_PORT = "SIMULATOR"
SIMULATOR_BAUD_RATE = 38400


class MockSnapCapTransport(TransportInterface):
    """
    Transport backed by a virtual SnapCap.

    Replies are queued on write() and handed out by read_exactly(); a missing
    reply times out immediately instead of blocking.
    """

    def __init__(self, config: SimulatorConfig, clock: Callable[[], float] = time.monotonic):
        """
        Initialize simulator.

        Args:
            config: Simulator configuration.
            clock: Monotonic time source (seconds), replaceable in tests.
        """
        self.config = config
        self._clock = clock
        self._lock = threading.Lock()

        self._open = False
        self._unplugged = False
        self._rx_buffer = bytearray()
        self._fragment_next = False

        # Virtual hardware state
        self._cover_status = CoverStatus(config.initial_cover_status)
        self._light_status = LightStatus.OFF
        self._brightness = config.initial_brightness
        self._motion_target: Optional[CoverStatus] = None
        self._motion_deadline = 0.0
        self._commands_received = 0

        logger.info("MockSnapCapTransport initialized")

    # ------------------------------------------------------------------
    # TransportInterface
    # ------------------------------------------------------------------

    def open(self, port_name: str, baud_rate: int) -> None:
        with self._lock:
            if self._unplugged:
                raise PortNotFoundError(f"Failed to open {port_name}: Port not found")

            if baud_rate != SIMULATOR_BAUD_RATE:
                logger.warning(f"[SIMULATOR] Opened at {baud_rate} baud, the device expects {SIMULATOR_BAUD_RATE}")

            self._open = True
            self._rx_buffer.clear()
            logger.info(f"[SIMULATOR] Port {port_name} opened")

    def close(self) -> None:
        with self._lock:
            if self._open:
                logger.info("[SIMULATOR] Port closed")
            self._open = False
            self._rx_buffer.clear()

    @property
    def is_open(self) -> bool:
        return self._open

    def write(self, data: bytes) -> None:
        with self._lock:
            self._check_line()
            self._commands_received += 1

            reply = self._handle_frame(bytes(data))
            if reply is None or self.config.inject_silence:
                return

            if self.config.inject_wrong_echo:
                reply = reply[:1] + b"?" + reply[2:]

            self._rx_buffer.extend(reply)
            self._fragment_next = self.config.fragment_replies

    def discard_input(self) -> None:
        with self._lock:
            self._check_line()
            self._rx_buffer.clear()

    def read_exactly(self, n: int, timeout_seconds: float) -> bytes:
        with self._lock:
            self._check_line()

            if self._fragment_next and len(self._rx_buffer) > 1:
                # Deliver the first part now, the rest on the next read
                self._fragment_next = False
                split = min(n - 1, len(self._rx_buffer) // 2)
                partial = bytes(self._rx_buffer[:split])
                del self._rx_buffer[:split]
                raise SerialTimeoutError(f"Timeout: received {len(partial)}/{n} bytes", partial)

            if len(self._rx_buffer) >= n:
                data = bytes(self._rx_buffer[:n])
                del self._rx_buffer[:n]
                return data

            partial = bytes(self._rx_buffer)
            self._rx_buffer.clear()
            raise SerialTimeoutError(f"Timeout: received {len(partial)}/{n} bytes", partial)

    def _check_line(self) -> None:
        if self._unplugged:
            raise TransportFaultError("Device disconnected")
        if not self._open:
            raise TransportFaultError("Serial port not open")

    # ------------------------------------------------------------------
    # Virtual device
    # ------------------------------------------------------------------

    def _handle_frame(self, frame: bytes) -> Optional[bytes]:
        """Parse a request frame and produce the device reply (None = no reply)."""
        if (
            len(frame) != REQUEST_LENGTH
            or frame[:1] != REQUEST_MARKER.encode("ascii")
            or frame[-2:] != FRAME_TERMINATOR.encode("ascii")
        ):
            logger.warning(f"[SIMULATOR] Ignoring malformed frame: {frame!r}")
            return None

        try:
            cmd = Command.from_char(chr(frame[1]))
            value = int(frame[2:5].decode("ascii"))
        except ValueError:
            logger.warning(f"[SIMULATOR] Ignoring unknown frame: {frame!r}")
            return None

        self._update_motion()

        if cmd == Command.VERSION:
            return self._reply(cmd, self.config.device_tag, terminator="\n")

        if cmd == Command.QUERY_STATUS:
            return self._reply(cmd, f"{int(self._motor_status)}{int(self._light_status)}{int(self._cover_status)}")

        if cmd == Command.QUERY_BRIGHTNESS:
            return self._reply(cmd, f"{self._brightness:03d}")

        if cmd == Command.SET_BRIGHTNESS:
            self._brightness = min(value, BRIGHTNESS_MAX)
            logger.info(f"[SIMULATOR] Brightness set to {self._brightness}")
            return self._reply(cmd, f"{self._brightness:03d}")

        if cmd == Command.LIGHT_ON:
            self._light_status = LightStatus.ON
        elif cmd == Command.LIGHT_OFF:
            self._light_status = LightStatus.OFF
        elif cmd == Command.OPEN:
            self._start_motion(CoverStatus.OPEN, force=False)
        elif cmd == Command.CLOSE:
            self._start_motion(CoverStatus.CLOSED, force=False)
        elif cmd == Command.FORCE_OPEN:
            self._start_motion(CoverStatus.OPEN, force=True)
        elif cmd == Command.FORCE_CLOSE:
            self._start_motion(CoverStatus.CLOSED, force=True)
        elif cmd == Command.ABORT:
            if self._motion_target is not None:
                self._motion_target = None
                self._cover_status = CoverStatus.USER_ABORT
                logger.info("[SIMULATOR] Motion aborted")

        return self._reply(cmd, "000")

    @staticmethod
    def _reply(cmd: Command, payload: str, terminator: str = FRAME_TERMINATOR) -> bytes:
        return f"{REPLY_MARKER}{cmd.char}{payload}{terminator}".encode("ascii")

    @property
    def _motor_status(self) -> MotorStatus:
        return MotorStatus.MOVING if self._motion_target is not None else MotorStatus.IDLE

    def _start_motion(self, target: CoverStatus, force: bool) -> None:
        if self._motion_target is not None:
            logger.info("[SIMULATOR] Already moving, command ignored")
            return

        if not force:
            # Interlocks: no normal motion into the current position or after overcurrent
            if self._cover_status == target:
                logger.info(f"[SIMULATOR] Cover already {target.name.lower()}")
                return
            if self._cover_status == CoverStatus.OVERCURRENT:
                logger.info("[SIMULATOR] Overcurrent interlock, use force")
                return

        self._motion_target = target
        self._motion_deadline = self._clock() + self.config.motion_seconds
        logger.info(f"[SIMULATOR] Moving to {target.name.lower()} ({self.config.motion_seconds}s)")

    def _update_motion(self) -> None:
        if self._motion_target is not None and self._clock() >= self._motion_deadline:
            self._cover_status = self._motion_target
            self._motion_target = None
            logger.info(f"[SIMULATOR] Motion finished, cover {self._cover_status.name.lower()}")

    # ------------------------------------------------------------------
    # Fault injection
    # ------------------------------------------------------------------

    def inject_fault(self, status: CoverStatus) -> None:
        """Stop any motion and report the given cover status (e.g. OVERCURRENT)."""
        with self._lock:
            self._motion_target = None
            self._cover_status = CoverStatus(status)
            logger.warning(f"[SIMULATOR] Injected cover status {self._cover_status.name}")

    def inject_stale_bytes(self, data: bytes) -> None:
        """Leave bytes in the receive buffer as if a previous exchange was cut short."""
        with self._lock:
            self._rx_buffer.extend(data)

    def unplug(self) -> None:
        with self._lock:
            self._unplugged = True
            logger.warning("[SIMULATOR] Device unplugged")

    def plug_in(self) -> None:
        with self._lock:
            self._unplugged = False
            logger.info("[SIMULATOR] Device plugged in")

    def snapshot(self) -> dict:
        """Current virtual hardware state."""
        with self._lock:
            self._update_motion()
            return {
                "port_open": self._open,
                "unplugged": self._unplugged,
                "cover_status": self._cover_status.name,
                "motor_status": self._motor_status.name,
                "light_status": self._light_status.name,
                "brightness": self._brightness,
                "moving_to": self._motion_target.name if self._motion_target is not None else None,
                "commands_received": self._commands_received,
                "device_tag": self.config.device_tag,
            }

    def reset(self) -> None:
        """Reset simulator to power-on state (for testing)."""
        with self._lock:
            self._unplugged = False
            self._rx_buffer.clear()
            self._cover_status = CoverStatus(self.config.initial_cover_status)
            self._light_status = LightStatus.OFF
            self._brightness = self.config.initial_brightness
            self._motion_target = None
            self._commands_received = 0

        logger.info("Simulator reset to initial state")
