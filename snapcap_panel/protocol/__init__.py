"""
Protocol package for SnapCap serial communication.
"""

from snapcap_panel.protocol.commands import Command, MOTION_COMMANDS
from snapcap_panel.protocol.encoder import Reply, encode_command, validate_reply
from snapcap_panel.protocol.interface import TransportInterface
from snapcap_panel.protocol.transport import SerialTransport
from snapcap_panel.protocol.snapcap_serial import SnapCapSerial
from snapcap_panel.protocol.port_scanner import (
    PortInfo,
    DiscoveredDevice,
    list_available_ports,
    scan_for_snapcap,
)

__all__ = [
    "Command",
    "MOTION_COMMANDS",
    "Reply",
    "encode_command",
    "validate_reply",
    "TransportInterface",
    "SerialTransport",
    "SnapCapSerial",
    "PortInfo",
    "DiscoveredDevice",
    "list_available_ports",
    "scan_for_snapcap",
]
