"""
FastAPI application factory.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from snapcap_panel import __version__
from snapcap_panel.config.models import AppConfig
from snapcap_panel.api.error_mapper import map_exception_to_http
from snapcap_panel.api.panel_api import router as panel_router
from snapcap_panel.cover.controller import CoverController
from snapcap_panel.cover.poll_timer import PollTimer
from snapcap_panel.protocol.snapcap_serial import SnapCapSerial
from snapcap_panel.protocol.transport import SerialTransport
from snapcap_panel.simulator.mock_serial import MockSnapCapTransport
from snapcap_panel.simulator.web_api import router as simulator_router
from snapcap_panel.utils.exceptions import SnapCapException


logger = logging.getLogger(__name__)


def create_app(config: AppConfig) -> FastAPI:
    """
    Create FastAPI application instance.

    Args:
        config: Application configuration.

    Returns:
        Configured FastAPI app.
    """
    app = FastAPI(
        title="SnapCap Control Panel",
        description="Control API for the SnapCap telescope cover and flat-field light",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(SnapCapException)
    async def snapcap_exception_handler(request: Request, exc: SnapCapException):
        """Turn device and protocol errors into JSON error responses."""
        status_code, kind = map_exception_to_http(exc)
        logger.warning(f"{request.method} {request.url.path} failed: {kind}: {exc}")
        return JSONResponse(
            status_code=status_code,
            content={"error": kind, "detail": str(exc)},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Catch all unhandled exceptions."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        status_code, kind = map_exception_to_http(exc)
        return JSONResponse(
            status_code=status_code,
            content={"error": kind, "detail": f"{type(exc).__name__}: {exc}"},
        )

    @app.get("/health")
    async def health_check():
        """Simple health check endpoint (no dependencies)."""
        return {"status": "ok", "version": __version__, "serial_port": config.serial.port or None}

    return app


def build_panel_app(
    config: AppConfig,
    use_simulator: bool = False,
    poll_timer: Optional[PollTimer] = None,
) -> FastAPI:
    """
    Wire transport, protocol driver and cover controller into an app.

    Args:
        config: Application configuration.
        use_simulator: Talk to the virtual SnapCap instead of a serial port.
        poll_timer: Status poll timer. Built from config.panel if omitted.

    Returns:
        App with the controller (and simulator, if any) in app.state.
    """
    if use_simulator:
        transport = MockSnapCapTransport(config.simulator)
    else:
        transport = SerialTransport()

    driver = SnapCapSerial(transport, config.serial)
    controller = CoverController(driver, config.panel, poll_timer=poll_timer)

    app = create_app(config)

    # Store dependencies in app.state for access by route handlers
    app.state.controller = controller
    app.state.simulator = transport if use_simulator else None
    app.state.config = config

    if use_simulator:
        app.include_router(simulator_router)
    app.include_router(panel_router)

    return app
