"""
Configuration models using Pydantic for validation.

All configuration is loaded from config.json and validated at startup.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    ip: str = Field(default="127.0.0.1", description="IP address to bind to")
    port: int = Field(default=5005, ge=1, le=65535, description="HTTP port")


class SerialConfig(BaseModel):
    """Serial port configuration."""

    port: str = Field(default="", description="Serial port name (e.g., COM3, /dev/ttyUSB0)")
    baud: int = Field(default=38400, description="Baud rate (SnapCap uses 38400)")
    read_timeout_seconds: float = Field(
        default=1.0, ge=0.05, le=10.0, description="Timeout of a single reply read attempt"
    )
    max_read_attempts: int = Field(
        default=5, ge=1, le=60, description="Read attempts before the device is declared unresponsive"
    )
    auto_connect: bool = Field(
        default=False, description="Connect to the configured port at startup"
    )
    scan_timeout_seconds: float = Field(
        default=1.0, ge=0.2, le=10.0, description="Timeout per port during a scan"
    )


class PanelConfig(BaseModel):
    """Control panel behaviour."""

    poll_interval_ms: int = Field(
        default=1000, ge=100, le=10000, description="Delay of the status re-poll after motion commands (ms)"
    )
    recent_errors: int = Field(
        default=20, ge=1, le=500, description="Number of reported errors kept for display"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )
    file: Optional[str] = Field(
        default="snapcap_panel.log",
        description="Log file path (None for console only)"
    )
    max_file_mb: int = Field(default=10, ge=1, le=500, description="Size at which the log file rotates (MB)")
    backup_count: int = Field(default=5, ge=0, le=50, description="Rotated log files kept")
    trace_frames: bool = Field(
        default=False, description="Log every TX/RX frame as hex, whatever the level"
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v):
        """Validate logging level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


class SimulatorConfig(BaseModel):
    """Virtual SnapCap configuration."""

    enabled: bool = Field(default=False, description="Use simulator instead of real hardware")
    device_tag: str = Field(default="0100", description="Tag reported in the Version reply (4 chars)")
    motion_seconds: float = Field(
        default=3.0, ge=0.0, le=120.0, description="Simulated cover travel time"
    )
    initial_cover_status: int = Field(
        default=2, ge=0, le=6, description="Cover status at power on (2 = closed)"
    )
    initial_brightness: int = Field(default=255, ge=0, le=255, description="Light panel brightness at power on")
    inject_silence: bool = Field(default=False, description="Never answer commands")
    inject_wrong_echo: bool = Field(default=False, description="Echo a wrong command character")
    fragment_replies: bool = Field(
        default=False, description="Deliver each reply in two parts across read attempts"
    )

    @field_validator("device_tag")
    @classmethod
    def validate_device_tag(cls, v):
        """Validate device tag format."""
        if len(v) != 4 or not v.isascii() or not v.isprintable():
            raise ValueError("Device tag must be 4 printable ASCII characters (e.g., '0100')")
        return v


class AppConfig(BaseModel):
    """Root configuration model."""

    model_config = ConfigDict(extra="forbid")  # Raise error on unknown fields

    server: ServerConfig = Field(default_factory=ServerConfig)
    serial: SerialConfig = Field(default_factory=SerialConfig)
    panel: PanelConfig = Field(default_factory=PanelConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    simulator: SimulatorConfig = Field(default_factory=SimulatorConfig)
