"""
Cover controller.

Forwards operator intents to the protocol driver, keeps the status poll
running while the cover moves and publishes connection, state and error
events to the presentation layer.
"""

import logging
import threading
from collections import deque
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional

from snapcap_panel.config.models import PanelConfig
from snapcap_panel.cover.poll_timer import PollTimer
from snapcap_panel.cover.state import (
    ConnectionState,
    DeviceState,
    Enablement,
    derive_ui_enablement,
    raw_from_percent,
)
from snapcap_panel.protocol.commands import Command
from snapcap_panel.protocol.snapcap_serial import SnapCapSerial
from snapcap_panel.utils.exceptions import (
    NotConnectedError,
    ProtocolError,
    SnapCapException,
    TransportFaultError,
)


logger = logging.getLogger(__name__)


class PanelEvent(Enum):
    CONNECTION_CHANGED = "connection_changed"
    DEVICE_STATE_CHANGED = "device_state_changed"
    ERROR_REPORTED = "error_reported"


class CoverController:
    """
    Control panel core for one SnapCap.
    """

    def __init__(
        self,
        driver: SnapCapSerial,
        config: Optional[PanelConfig] = None,
        poll_timer: Optional[PollTimer] = None,
    ):
        """
        Initialize cover controller.

        Args:
            driver: Protocol driver.
            config: Panel configuration. Defaults are used if omitted.
            poll_timer: Timer for deferred status polls. Created from config if omitted.
        """
        self.driver = driver
        self.config = config or PanelConfig()
        self.poll_timer = poll_timer or PollTimer(self.config.poll_interval_ms)

        self._listeners: Dict[PanelEvent, List[Callable]] = {event: [] for event in PanelEvent}
        self._listeners_lock = threading.Lock()
        self._errors: deque = deque(maxlen=self.config.recent_errors)

        logger.info("CoverController initialized")

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def add_listener(self, event: PanelEvent, callback: Callable) -> None:
        with self._listeners_lock:
            self._listeners[event].append(callback)

    def remove_listener(self, event: PanelEvent, callback: Callable) -> None:
        with self._listeners_lock:
            if callback in self._listeners[event]:
                self._listeners[event].remove(callback)

    def _emit(self, event: PanelEvent, payload) -> None:
        with self._listeners_lock:
            callbacks = list(self._listeners[event])

        for callback in callbacks:
            try:
                callback(payload)
            except Exception as e:
                logger.error(f"Listener for {event.value} failed: {e}", exc_info=True)

    def _report_error(self, message: str) -> None:
        logger.error(message)
        self._errors.append({
            "timestamp": datetime.now().isoformat(timespec="seconds"),
            "message": message,
        })
        self._emit(PanelEvent.ERROR_REPORTED, message)

    @property
    def recent_errors(self) -> List[dict]:
        return list(self._errors)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def connected(self) -> bool:
        return self.driver.is_connected()

    @property
    def connection_state(self) -> ConnectionState:
        return self.driver.connection_state

    @property
    def device_state(self) -> DeviceState:
        return self.driver.device_state

    @property
    def enablement(self) -> Enablement:
        return derive_ui_enablement(self.device_state, self.connection_state)

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    def connect(self, port_name: str) -> ConnectionState:
        """
        Connect to a SnapCap on the given port.

        Raises:
            PortOpenFailedError: If the port cannot be opened.
            HandshakeFailedError: If the device is not a SnapCap.
        """
        self.poll_timer.cancel()
        if self.connected and port_name != self.connection_state.port_name:
            self.disconnect()

        try:
            connection = self.driver.connect(port_name)
        except SnapCapException as e:
            self._report_error(f"Failed to connect to {port_name}: {e}")
            self._emit(PanelEvent.CONNECTION_CHANGED, self.connection_state)
            raise

        self._emit(PanelEvent.CONNECTION_CHANGED, connection)
        self._emit(PanelEvent.DEVICE_STATE_CHANGED, self.device_state)

        if self.device_state.is_moving:
            self.poll_timer.schedule(self._handle_poll_timeout)

        return connection

    def disconnect(self) -> None:
        """Disconnect from the device and stop polling."""
        self.poll_timer.cancel()
        was_connected = self.connection_state.connected
        self.driver.disconnect()
        if was_connected:
            self._emit(PanelEvent.CONNECTION_CHANGED, self.connection_state)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def open_cover(self) -> None:
        self._motion_command(Command.OPEN)

    def close_cover(self) -> None:
        self._motion_command(Command.CLOSE)

    def force_open(self) -> None:
        self._motion_command(Command.FORCE_OPEN)

    def force_close(self) -> None:
        self._motion_command(Command.FORCE_CLOSE)

    def light_on(self) -> DeviceState:
        return self._command_then_refresh(Command.LIGHT_ON)

    def light_off(self) -> DeviceState:
        return self._command_then_refresh(Command.LIGHT_OFF)

    def abort(self) -> DeviceState:
        return self._command_then_refresh(Command.ABORT)

    def set_brightness(self, percent: int) -> int:
        """
        Set light panel brightness from a 0-100 percentage.

        Returns:
            Raw brightness reported back by the device.
        """
        def exchange():
            raw = raw_from_percent(percent)
            self.driver.set_brightness(raw)
            return self.driver.query_brightness()

        brightness = self._guarded(exchange)
        logger.info(f"Brightness set to {percent}% (raw {brightness})")
        self._emit(PanelEvent.DEVICE_STATE_CHANGED, self.device_state)
        return brightness

    def refresh_status(self) -> DeviceState:
        """
        Query status now. Re-arms the poll timer while the cover is moving.
        """
        state = self._guarded(self.driver.query_status)
        self._emit(PanelEvent.DEVICE_STATE_CHANGED, state)

        if state.is_moving:
            self.poll_timer.schedule(self._handle_poll_timeout)

        return state

    def _motion_command(self, cmd: Command) -> None:
        """Send a motion command and arm one deferred status poll."""
        logger.info(f"[PANEL] {cmd.description}")

        try:
            self._guarded(lambda: self.driver.send_command(cmd))
        except ProtocolError:
            # The cover may still have started; the poll tells us
            self.poll_timer.schedule(self._handle_poll_timeout)
            raise

        self.poll_timer.schedule(self._handle_poll_timeout)

    def _command_then_refresh(self, cmd: Command) -> DeviceState:
        logger.info(f"[PANEL] {cmd.description}")
        self._guarded(lambda: self.driver.send_command(cmd))
        return self.refresh_status()

    def _guarded(self, exchange: Callable):
        """
        Run an exchange, reporting failures to listeners before re-raising.

        A transport fault has already closed the port; listeners are told
        about the lost connection and polling stops.
        """
        if not self.connected:
            error = NotConnectedError("SnapCap not connected")
            self._report_error(str(error))
            raise error

        try:
            return exchange()
        except TransportFaultError as e:
            self.poll_timer.cancel()
            self.driver.disconnect()
            self._report_error(f"Connection lost: {e}")
            self._emit(PanelEvent.CONNECTION_CHANGED, self.connection_state)
            raise
        except SnapCapException as e:
            self._report_error(str(e))
            raise

    def _handle_poll_timeout(self) -> None:
        if not self.connected:
            return
        try:
            self.refresh_status()
        except SnapCapException as e:
            # Already reported to listeners
            logger.debug(f"Status poll failed: {e}")
