"""
Pydantic models for the control panel API.
"""

from typing import List, Optional
from pydantic import BaseModel, Field

from snapcap_panel.cover.controller import CoverController
from snapcap_panel.cover.state import describe_cover, describe_light


class EnablementResponse(BaseModel):
    """Which controls the panel should enable."""
    open: bool
    close: bool
    force_open: bool
    force_close: bool
    light_on: bool
    light_off: bool
    abort: bool
    brightness: bool


class ReportedError(BaseModel):
    timestamp: str
    message: str


class PanelStatus(BaseModel):
    """Everything the panel renders."""
    mode: str  # "simulator" or "hardware"
    connected: bool
    port: Optional[str] = None
    device_tag: Optional[str] = None
    cover_status: str
    cover_label: str
    motor_status: str
    light_status: str
    light_label: str
    brightness: int
    brightness_percent: int
    poll_pending: bool
    enablement: EnablementResponse
    recent_errors: List[ReportedError] = Field(default_factory=list)


class ConnectRequest(BaseModel):
    """Request to connect to a port."""
    port: Optional[str] = Field(None, description="Serial port name (e.g., 'COM3'). Defaults to the configured port.")


class BrightnessRequest(BaseModel):
    """Request to set light panel brightness."""
    percent: int = Field(..., ge=0, le=100, description="Brightness in percent (0-100)")


class PortInfoResponse(BaseModel):
    name: str
    description: str
    hardware_id: str


class DiscoveredDeviceResponse(BaseModel):
    port: str
    device_tag: str
    description: str


def build_status(controller: CoverController, mode: str) -> PanelStatus:
    """Render controller state into a PanelStatus."""
    state = controller.device_state
    connection = controller.connection_state
    enablement = controller.enablement

    return PanelStatus(
        mode=mode,
        connected=connection.connected,
        port=connection.port_name or None,
        device_tag=connection.device_tag or None,
        cover_status=state.cover_status.name,
        cover_label=describe_cover(state),
        motor_status=state.motor_status.name,
        light_status=state.light_status.name,
        light_label=describe_light(state),
        brightness=state.brightness,
        brightness_percent=state.brightness_percent,
        poll_pending=controller.poll_timer.pending,
        enablement=EnablementResponse(
            open=enablement.open,
            close=enablement.close,
            force_open=enablement.force_open,
            force_close=enablement.force_close,
            light_on=enablement.light_on,
            light_off=enablement.light_off,
            abort=enablement.abort,
            brightness=enablement.brightness,
        ),
        recent_errors=[ReportedError(**e) for e in controller.recent_errors],
    )
