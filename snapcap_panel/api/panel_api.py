"""
Web API endpoints for the control panel.

Works with both simulator and real hardware modes. Device errors raised by
the controller are turned into JSON responses by the app's exception handler.
"""

import logging
from typing import List
from fastapi import APIRouter, HTTPException, Query, Request

from snapcap_panel.api.models import (
    BrightnessRequest,
    ConnectRequest,
    DiscoveredDeviceResponse,
    PanelStatus,
    PortInfoResponse,
    build_status,
)
from snapcap_panel.cover.controller import CoverController
from snapcap_panel.protocol.logger import get_protocol_logger
from snapcap_panel.protocol.port_scanner import list_available_ports, scan_for_snapcap

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/panel", tags=["panel"])


# ============================================================================
# Helper Functions
# ============================================================================

def get_controller(request: Request) -> CoverController:
    """Get cover controller from app.state."""
    controller = getattr(request.app.state, 'controller', None)
    if controller is None:
        raise HTTPException(status_code=503, detail="Controller not available")
    return controller


def get_mode(request: Request) -> str:
    return "simulator" if getattr(request.app.state, 'simulator', None) is not None else "hardware"


def status_response(request: Request) -> PanelStatus:
    return build_status(get_controller(request), get_mode(request))


# ============================================================================
# Status Endpoint
# ============================================================================

@router.get("/status", response_model=PanelStatus)
def get_status(request: Request, refresh: bool = Query(False, description="Query the device first")):
    """Get current panel state, optionally polling the device first."""
    controller = get_controller(request)
    if refresh and controller.connected:
        controller.refresh_status()
    return status_response(request)


# ============================================================================
# Port Management Endpoints
# ============================================================================

@router.get("/ports", response_model=List[PortInfoResponse])
def get_ports():
    """List available serial ports."""
    return [
        PortInfoResponse(name=p.name, description=p.description, hardware_id=p.hardware_id)
        for p in list_available_ports()
    ]


@router.post("/scan", response_model=List[DiscoveredDeviceResponse])
def scan_ports(request: Request):
    """Probe serial ports for SnapCap devices (skips the connected port)."""
    controller = get_controller(request)
    config = getattr(request.app.state, 'config', None)
    timeout = config.serial.scan_timeout_seconds if config else 1.0

    skip_ports = [controller.connection_state.port_name] if controller.connected else []
    devices = scan_for_snapcap(timeout_seconds=timeout, skip_ports=skip_ports)
    return [
        DiscoveredDeviceResponse(port=d.port, device_tag=d.device_tag, description=d.description)
        for d in devices
    ]


@router.post("/connect", response_model=PanelStatus)
def connect_port(request: Request, connect_data: ConnectRequest):
    """Connect to a serial port and validate the device."""
    controller = get_controller(request)
    port = connect_data.port or controller.driver.port_name
    if not port:
        raise HTTPException(status_code=400, detail="No serial port given or configured")

    controller.connect(port)
    logger.info(f"[PANEL] Connected to SnapCap {controller.connection_state.device_tag} on {port}")
    return status_response(request)


@router.post("/disconnect", response_model=PanelStatus)
def disconnect_port(request: Request):
    """Disconnect from the current port."""
    get_controller(request).disconnect()
    logger.info("[PANEL] Disconnected")
    return status_response(request)


# ============================================================================
# Cover Endpoints
# ============================================================================

@router.post("/open", response_model=PanelStatus)
def open_cover(request: Request):
    get_controller(request).open_cover()
    return status_response(request)


@router.post("/close", response_model=PanelStatus)
def close_cover(request: Request):
    get_controller(request).close_cover()
    return status_response(request)


@router.post("/force-open", response_model=PanelStatus)
def force_open(request: Request):
    """Open past the interlocks."""
    get_controller(request).force_open()
    return status_response(request)


@router.post("/force-close", response_model=PanelStatus)
def force_close(request: Request):
    """Close past the interlocks."""
    get_controller(request).force_close()
    return status_response(request)


@router.post("/abort", response_model=PanelStatus)
def abort(request: Request):
    """Stop cover motion immediately."""
    get_controller(request).abort()
    return status_response(request)


# ============================================================================
# Light Endpoints
# ============================================================================

@router.post("/light-on", response_model=PanelStatus)
def light_on(request: Request):
    get_controller(request).light_on()
    return status_response(request)


@router.post("/light-off", response_model=PanelStatus)
def light_off(request: Request):
    get_controller(request).light_off()
    return status_response(request)


@router.put("/brightness", response_model=PanelStatus)
def set_brightness(request: Request, data: BrightnessRequest):
    """Set light panel brightness in percent."""
    get_controller(request).set_brightness(data.percent)
    return status_response(request)


# ============================================================================
# Protocol Log Endpoints
# ============================================================================

@router.get("/protocol-log")
def get_protocol_log(limit: int = Query(100, ge=1, le=500)):
    """Recent TX/RX frames."""
    protocol_logger = get_protocol_logger()
    return {
        "messages": protocol_logger.get_messages(limit=limit),
        "stats": protocol_logger.get_stats(),
    }


@router.delete("/protocol-log")
def clear_protocol_log():
    get_protocol_logger().clear()
    return {"status": "ok", "message": "Protocol log cleared"}
