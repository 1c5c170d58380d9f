"""
Main entry point for the SnapCap control panel.

Usage:
    python -m snapcap_panel [--config CONFIG_PATH] [--simulator] [--port PORT]
"""

import argparse
import sys
import logging
import signal

import uvicorn

from snapcap_panel import __version__
from snapcap_panel.api.app import build_panel_app
from snapcap_panel.config.loader import load_config, ConfigurationError
from snapcap_panel.protocol.port_scanner import list_available_ports
from snapcap_panel.simulator.mock_serial import SIMULATOR_PORT
from snapcap_panel.utils.exceptions import SnapCapException
from snapcap_panel.utils.logging_setup import setup_logging


logger = logging.getLogger(__name__)

# Controller of the running app, disconnected on shutdown
cover_controller = None


def signal_handler(signum, frame):
    """Close the serial port on SIGINT/SIGTERM."""
    logger.info(f"Received signal {signum}, shutting down...")

    if cover_controller:
        cover_controller.disconnect()

    sys.exit(0)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="SnapCap Control Panel")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to configuration file (default: $SNAPCAP_PANEL_CONFIG or config.json)"
    )
    parser.add_argument(
        "--simulator",
        action="store_true",
        help="Use the virtual SnapCap instead of a serial port"
    )
    parser.add_argument(
        "--port",
        type=str,
        default=None,
        help="Serial port to connect to at startup (overrides serial.port)"
    )
    return parser.parse_args(argv)


def _log_serial_ports() -> None:
    ports = list_available_ports()
    if ports:
        logger.info(f"Serial ports: {', '.join(f'{p.name} ({p.description})' for p in ports)}")
    else:
        logger.warning("No serial ports found, plug in the SnapCap or use --simulator")


def main():
    """Load config, wire the panel and serve it until interrupted."""
    global cover_controller

    args = parse_args()

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.port:
        config.serial.port = args.port
        config.serial.auto_connect = True

    setup_logging(config.logging)

    use_simulator = args.simulator or config.simulator.enabled
    logger.info(f"SnapCap Control Panel v{__version__} ({'simulator' if use_simulator else 'hardware'} mode)")

    if not use_simulator:
        _log_serial_ports()

    app = build_panel_app(config, use_simulator=use_simulator)
    cover_controller = app.state.controller

    startup_port = SIMULATOR_PORT if use_simulator else config.serial.port
    if config.serial.auto_connect and startup_port:
        try:
            cover_controller.connect(startup_port)
        except SnapCapException as e:
            logger.warning(f"Auto-connect to {startup_port} failed, starting disconnected: {e}")

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    logger.info(f"Control API on http://{config.server.ip}:{config.server.port}/panel (docs at /docs)")

    try:
        uvicorn.run(
            app,
            host=config.server.ip,
            port=config.server.port,
            log_level=config.logging.level.lower(),
            access_log=False
        )
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    except Exception as e:
        logger.error(f"Server error: {e}", exc_info=True)
        sys.exit(1)
    finally:
        cover_controller.disconnect()
        logger.info("Shutdown complete")


if __name__ == "__main__":
    main()
