"""
Load and validate config.json.

Keys starting with an underscore are operator notes and are dropped before
validation; any other unknown key is an error.
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .models import AppConfig


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.json"
CONFIG_PATH_ENV = "SNAPCAP_PANEL_CONFIG"


class ConfigurationError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""
    pass


def resolve_config_path(path: Optional[str] = None) -> Path:
    """Explicit path, else $SNAPCAP_PANEL_CONFIG, else ./config.json."""
    return Path(path or os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)


def _write_defaults(config_path: Path) -> AppConfig:
    config = AppConfig()
    try:
        config_path.write_text(json.dumps(config.model_dump(), indent=2), encoding="utf-8")
        logger.info(f"Wrote default configuration to {config_path}")
    except OSError as e:
        logger.warning(f"Running with defaults, could not write {config_path}: {e}")
    return config


def _strip_notes(section):
    if isinstance(section, dict):
        return {k: _strip_notes(v) for k, v in section.items() if not str(k).startswith("_")}
    return section


def _describe(error: ValidationError) -> str:
    lines = []
    for item in error.errors():
        where = ".".join(str(part) for part in item["loc"])
        lines.append(f"  - {where}: {item['msg']}")
    return "Configuration validation failed:\n" + "\n".join(lines)


def load_config(path: Optional[str] = None) -> AppConfig:
    """
    Load configuration from JSON file.

    A missing file is created with defaults so the operator has something
    to edit.

    Args:
        path: Path to the config file. See resolve_config_path().

    Returns:
        Validated AppConfig instance.

    Raises:
        ConfigurationError: If the file is unreadable, not a JSON object or invalid.
    """
    config_path = resolve_config_path(path)

    if not config_path.exists():
        logger.info(f"No config file at {config_path}")
        return _write_defaults(config_path)

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Failed to read {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"{config_path} must contain a JSON object")

    try:
        config = AppConfig.model_validate(_strip_notes(data))
    except ValidationError as e:
        raise ConfigurationError(_describe(e)) from e

    logger.info(f"Configuration loaded from {config_path}")
    return config
