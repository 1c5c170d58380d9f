"""Tests for port enumeration and SnapCap probing (pyserial mocked)."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from serial import SerialException

from snapcap_panel.protocol.port_scanner import list_available_ports, scan_for_snapcap


PORTS = [
    SimpleNamespace(device="COM4", description="USB Serial Device", hwid="USB VID:PID=2341:0043"),
    SimpleNamespace(device="COM3", description="Standard Serial over Bluetooth link", hwid="BTHENUM"),
    SimpleNamespace(device="COM1", description="Communications Port", hwid="ACPI"),
]


def fake_serial(replies):
    """Build a serial.Serial replacement answering per port name."""
    def factory(port, **kwargs):
        reply = replies[port]
        if isinstance(reply, Exception):
            raise reply
        instance = MagicMock()
        instance.is_open = True
        instance.read.return_value = reply
        return instance
    return factory


@patch("serial.tools.list_ports.comports", return_value=PORTS)
def test_list_ports_sorted(_):
    assert [p.name for p in list_available_ports()] == ["COM1", "COM3", "COM4"]


@patch("serial.tools.list_ports.comports", return_value=PORTS)
def test_list_ports_without_bluetooth(_):
    ports = list_available_ports(include_bluetooth=False)
    assert [p.name for p in ports] == ["COM1", "COM4"]


@patch("serial.tools.list_ports.comports", return_value=PORTS)
def test_scan_finds_snapcap(_):
    replies = {
        "COM1": b"",
        "COM4": b"*V0100\n",
    }
    with patch("snapcap_panel.protocol.transport.serial.Serial", side_effect=fake_serial(replies)):
        devices = scan_for_snapcap(timeout_seconds=0.2)

    assert [(d.port, d.device_tag) for d in devices] == [("COM4", "0100")]


@patch("serial.tools.list_ports.comports", return_value=PORTS)
def test_scan_skips_busy_and_foreign_ports(_):
    replies = {
        "COM1": SerialException("could not open port 'COM1': PermissionError(13, 'Access is denied.')"),
        "COM4": b"#R12345",
    }
    with patch("snapcap_panel.protocol.transport.serial.Serial", side_effect=fake_serial(replies)):
        assert scan_for_snapcap(timeout_seconds=0.2) == []


@patch("serial.tools.list_ports.comports", return_value=PORTS)
def test_scan_leaves_skipped_port_alone(_):
    serial_class = MagicMock(side_effect=fake_serial({"COM1": b""}))
    with patch("snapcap_panel.protocol.transport.serial.Serial", serial_class):
        scan_for_snapcap(timeout_seconds=0.2, skip_ports=["COM4"])

    assert [c.kwargs["port"] for c in serial_class.call_args_list] == ["COM1"]
