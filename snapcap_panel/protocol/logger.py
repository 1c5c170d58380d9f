"""
In-memory trace of SnapCap frames for the control API.

Every request, reply and exchange failure is kept in a bounded ring buffer
so the operator can see what went over the wire without raising the log
level.
"""

import threading
from collections import Counter, deque
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

from snapcap_panel.protocol.commands import Command, REPLY_LENGTH, REPLY_MARKER, REQUEST_LENGTH


TX = "TX"
RX = "RX"
ERR = "ERR"


@dataclass
class ProtocolMessage:
    timestamp: str
    direction: str
    raw_hex: str
    text: str
    decoded: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


def _printable(data: bytes) -> str:
    """ASCII as-is, everything else as [XX]."""
    return "".join(chr(b) if 32 <= b < 127 else f"[{b:02X}]" for b in data)


def describe_request(frame: bytes, cmd: Optional[Command] = None, value: int = 0) -> Dict[str, Any]:
    """Command, value and a readable description of a request frame."""
    if len(frame) != REQUEST_LENGTH:
        return {"error": f"Frame length is {len(frame)}, not {REQUEST_LENGTH}"}

    if cmd is None:
        try:
            cmd = Command.from_char(chr(frame[1]))
            value = int(frame[2:5].decode("ascii"))
        except ValueError as e:
            return {"error": str(e)}

    description = cmd.description
    if cmd == Command.SET_BRIGHTNESS:
        description = f"{description} to {value}"

    return {"cmd": cmd.char, "value": value, "description": description}


def describe_reply(data: bytes) -> Dict[str, Any]:
    """Echo and payload of a well-formed reply, or the reason it is not one."""
    if not data:
        return {"error": "Empty response (timeout?)"}
    if len(data) != REPLY_LENGTH or chr(data[0]) != REPLY_MARKER:
        return {"error": f"Malformed reply ({len(data)} bytes)"}
    return {"cmd": chr(data[1]), "payload": _printable(data[2:5])}


class ProtocolLogger:
    """
    Thread-safe ring buffer of protocol messages.

    Counters keep running after old messages fall out of the buffer;
    clear() resets both.
    """

    DEFAULT_MAX_MESSAGES = 500

    def __init__(self, max_messages: int = DEFAULT_MAX_MESSAGES):
        self._messages: deque = deque(maxlen=max_messages)
        self._counts: Counter = Counter()
        self._lock = threading.Lock()
        self.enabled = True

    def _record(self, direction: str, data: bytes, decoded=None, error=None) -> None:
        if not self.enabled:
            return

        message = ProtocolMessage(
            timestamp=datetime.now().isoformat(timespec="milliseconds"),
            direction=direction,
            raw_hex=data.hex().upper(),
            text=_printable(data),
            decoded=decoded,
            error=error,
        )

        with self._lock:
            self._messages.append(message)
            self._counts[direction] += 1
            if error is not None and direction != ERR:
                self._counts[ERR] += 1

    def log_tx(self, data: bytes, cmd: Optional[Command] = None, value: int = 0) -> None:
        """Record a request frame (cmd/value skip re-parsing when known)."""
        self._record(TX, data, decoded=describe_request(data, cmd, value))

    def log_rx(self, data: bytes) -> None:
        """Record reply bytes, possibly partial or empty."""
        described = describe_reply(data)
        error = described.pop("error", None)
        self._record(RX, data, decoded=described or None, error=error)

    def log_error(self, error_msg: str, data: bytes = b"") -> None:
        self._record(ERR, data, error=error_msg)

    def get_messages(self, limit: int = 100) -> List[dict]:
        """Newest `limit` messages, oldest first."""
        with self._lock:
            messages = list(self._messages)[-limit:]
        return [asdict(m) for m in messages]

    def get_stats(self) -> dict:
        with self._lock:
            return {
                "total_messages": len(self._messages),
                "tx_count": self._counts[TX],
                "rx_count": self._counts[RX],
                "error_count": self._counts[ERR],
                "max_messages": self._messages.maxlen,
                "enabled": self.enabled,
            }

    def clear(self) -> None:
        with self._lock:
            self._messages.clear()
            self._counts.clear()


_logger: Optional[ProtocolLogger] = None
_logger_lock = threading.Lock()


def get_protocol_logger() -> ProtocolLogger:
    """Get or create the process-wide protocol logger."""
    global _logger
    with _logger_lock:
        if _logger is None:
            _logger = ProtocolLogger()
        return _logger
