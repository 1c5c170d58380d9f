"""
Root logger configuration for the control panel.

Console output always, a rotating log file when configured. With
trace_frames the protocol driver logs every frame in hex even when the rest
of the application stays at INFO.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler

from snapcap_panel.config.models import LoggingConfig


LOG_FORMAT = "[%(asctime)s] %(levelname)s [%(name)s]: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

FRAME_LOGGER = "snapcap_panel.protocol.snapcap_serial"

# Third-party loggers that drown the frame trace at DEBUG
NOISY_LOGGERS = ("uvicorn.access", "asyncio", "multipart")


def _file_handler(config: LoggingConfig, formatter: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        config.file,
        maxBytes=config.max_file_mb * 1024 * 1024,
        backupCount=config.backup_count,
        encoding="utf-8"
    )
    handler.setFormatter(formatter)
    return handler


def setup_logging(config: LoggingConfig) -> None:
    """
    Configure logging for the application.

    Handlers carry no level of their own; the root logger level decides,
    except for the frame logger when trace_frames is set.

    Args:
        config: Logging configuration.
    """
    root = logging.getLogger()
    root.setLevel(config.level)
    root.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    root.addHandler(console)

    if config.file:
        try:
            root.addHandler(_file_handler(config, formatter))
        except OSError as e:
            root.error(f"Cannot write log file {config.file}, console only: {e}")
        else:
            root.info(f"Logging to {config.file} ({config.max_file_mb} MB x {config.backup_count})")

    logging.getLogger(FRAME_LOGGER).setLevel(logging.DEBUG if config.trace_frames else logging.NOTSET)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.INFO, root.level))

    root.info(f"Logging initialized at level {config.level}{', frame trace on' if config.trace_frames else ''}")
