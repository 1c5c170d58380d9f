"""
Web API endpoints for driving the virtual SnapCap.
"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from snapcap_panel.cover.state import CoverStatus
from snapcap_panel.simulator.mock_serial import MockSnapCapTransport


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/simulator", tags=["simulator"])


def get_simulator(request: Request) -> MockSnapCapTransport:
    """Get simulator from app.state."""
    simulator = getattr(request.app.state, 'simulator', None)
    if simulator is None:
        raise HTTPException(status_code=503, detail="Simulator not available")
    return simulator


class FaultRequest(BaseModel):
    """Cover status to force on the virtual device."""
    status: str = Field(..., description="Cover status name, e.g. 'OVERCURRENT' or 'TIMEOUT'")


class InjectionRequest(BaseModel):
    """Protocol-level fault injection switches (omitted fields unchanged)."""
    silence: Optional[bool] = None
    wrong_echo: Optional[bool] = None
    fragment_replies: Optional[bool] = None


@router.get("/status")
async def get_status(request: Request):
    """Get current virtual hardware state."""
    simulator = get_simulator(request)
    return {
        **simulator.snapshot(),
        "inject_silence": simulator.config.inject_silence,
        "inject_wrong_echo": simulator.config.inject_wrong_echo,
        "fragment_replies": simulator.config.fragment_replies,
    }


@router.post("/fault")
async def inject_fault(request: Request, data: FaultRequest):
    """Force a cover status (stops any motion)."""
    simulator = get_simulator(request)

    try:
        status = CoverStatus[data.status.upper()]
    except KeyError:
        valid = ", ".join(s.name for s in CoverStatus)
        raise HTTPException(status_code=400, detail=f"Unknown cover status '{data.status}'. Valid: {valid}")

    simulator.inject_fault(status)
    return {"status": "ok", "cover_status": status.name}


@router.put("/injection")
async def set_injection(request: Request, data: InjectionRequest):
    """Toggle silence / wrong echo / fragmented replies."""
    simulator = get_simulator(request)

    if data.silence is not None:
        simulator.config.inject_silence = data.silence
    if data.wrong_echo is not None:
        simulator.config.inject_wrong_echo = data.wrong_echo
    if data.fragment_replies is not None:
        simulator.config.fragment_replies = data.fragment_replies

    logger.info(
        f"[SIMULATOR] Injection: silence={simulator.config.inject_silence}, "
        f"wrong_echo={simulator.config.inject_wrong_echo}, "
        f"fragment_replies={simulator.config.fragment_replies}"
    )
    return {"status": "ok"}


@router.post("/unplug")
async def unplug(request: Request):
    """Simulate pulling the USB cable."""
    get_simulator(request).unplug()
    return {"status": "ok", "message": "Device unplugged"}


@router.post("/plug")
async def plug_in(request: Request):
    get_simulator(request).plug_in()
    return {"status": "ok", "message": "Device plugged in"}


@router.post("/reset")
async def reset(request: Request):
    """Reset the virtual device to its power-on state."""
    get_simulator(request).reset()
    return {"status": "ok", "message": "Simulator reset"}
