"""
Serial port enumeration and SnapCap probing.

Lists the ports the operator can pick from and checks which of them
answer the Version handshake like a SnapCap.
"""

import logging
import time
from dataclasses import dataclass
from typing import Iterable, List, Optional

import serial.tools.list_ports

from snapcap_panel.protocol.commands import Command, REPLY_LENGTH
from snapcap_panel.protocol.encoder import encode_command, parse_device_tag, validate_reply
from snapcap_panel.protocol.transport import SerialTransport
from snapcap_panel.utils.exceptions import (
    PortInUseError,
    PortOpenFailedError,
    SerialTimeoutError,
    TransportFaultError,
    UnexpectedReplyError,
)


logger = logging.getLogger(__name__)

SNAPCAP_BAUD_RATE = 38400

BLUETOOTH_MARKERS = ("bluetooth", "bth")


@dataclass
class PortInfo:
    """A serial port as reported by the operating system."""

    name: str
    description: str
    hardware_id: str
    is_bluetooth: bool = False


@dataclass
class DiscoveredDevice:
    """A port that answered the SnapCap handshake."""

    port: str
    device_tag: str
    description: str


def _is_bluetooth(description: str) -> bool:
    lowered = description.lower()
    return any(marker in lowered for marker in BLUETOOTH_MARKERS)


def list_available_ports(include_bluetooth: bool = True) -> List[PortInfo]:
    """
    List serial ports, sorted by name.

    Args:
        include_bluetooth: If False, leave out Bluetooth virtual ports.
    """
    ports = [
        PortInfo(
            name=port.device,
            description=port.description or "Unknown",
            hardware_id=port.hwid or "",
            is_bluetooth=_is_bluetooth(port.description or ""),
        )
        for port in serial.tools.list_ports.comports()
    ]

    if not include_bluetooth:
        ports = [p for p in ports if not p.is_bluetooth]

    ports.sort(key=lambda p: p.name)
    logger.debug(f"Found {len(ports)} serial ports")
    return ports


def scan_for_snapcap(
    timeout_seconds: float = 1.0,
    skip_ports: Optional[Iterable[str]] = None,
    include_bluetooth: bool = False,
) -> List[DiscoveredDevice]:
    """
    Probe every available port with the Version command.

    Bluetooth ports are skipped by default: opening one can stall for
    several seconds while the OS tries to pair.

    Args:
        timeout_seconds: Reply timeout per port.
        skip_ports: Port names to leave alone (e.g., the one already connected).
        include_bluetooth: If True, also probe Bluetooth ports.

    Returns:
        Ports that answered like a SnapCap.
    """
    skip = set(skip_ports or ())
    candidates = [
        p for p in list_available_ports(include_bluetooth=include_bluetooth)
        if p.name not in skip
    ]
    logger.info(f"Scanning {len(candidates)} ports for SnapCap devices...")

    started = time.monotonic()
    discovered = [
        device for device in (_probe_port(p, timeout_seconds) for p in candidates)
        if device is not None
    ]
    elapsed_ms = int((time.monotonic() - started) * 1000)

    logger.info(f"Scan complete: found {len(discovered)} SnapCap device(s) in {elapsed_ms}ms")
    return discovered


def _probe_port(port_info: PortInfo, timeout: float) -> Optional[DiscoveredDevice]:
    """Send Version on one port; None unless a valid '*V' reply comes back."""
    logger.debug(f"Probing {port_info.name} ({port_info.description})...")

    transport = SerialTransport()
    try:
        transport.open(port_info.name, SNAPCAP_BAUD_RATE)
        transport.discard_input()
        transport.write(encode_command(Command.VERSION))
        reply = validate_reply(transport.read_exactly(REPLY_LENGTH, timeout), Command.VERSION)
    except PortInUseError:
        logger.debug(f"Skipping {port_info.name}: port in use")
        return None
    except (PortOpenFailedError, TransportFaultError, SerialTimeoutError, UnexpectedReplyError) as e:
        logger.debug(f"{port_info.name}: not a SnapCap ({e})")
        return None
    finally:
        transport.close()

    device_tag = parse_device_tag(reply)
    logger.info(f"Found SnapCap {device_tag} on {port_info.name}")
    return DiscoveredDevice(port=port_info.name, device_tag=device_tag, description=port_info.description)
