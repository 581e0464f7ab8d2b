"""
Spectrum Viewer Configuration
=============================

This module handles configuration loading for the spectrum viewer.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    SPECTRUM_DEVICE_BACKEND -> device.backend
    SPECTRUM_DEVICE_PORT    -> device.port
    SPECTRUM_BAUDRATE       -> device.baudrate
    SPECTRUM_READ_TIMEOUT   -> device.read_timeout_seconds
    SPECTRUM_SAMPLE_RATE    -> spectrum.sample_rate_hz
    SPECTRUM_TONE_HZ        -> simulation.tone_hz
    SPECTRUM_SERVER_PORT    -> server.port
    SPECTRUM_LOG_LEVEL      -> logging.level
    PORT                    -> server.port

Example:
    from spectrum_viewer.config import settings

    print(settings.device.port)
    print(settings.spectrum.fft_size)
"""

import os
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class AppConfig(BaseModel):
    """Application identification configuration."""

    name: str = Field(default="serial-spectrum-viewer", description="Service name")
    version: str = Field(default="v0.1.0", description="Service version")


class DeviceConfig(BaseModel):
    """Serial device connection configuration."""

    backend: str = Field(
        default="serial",
        description="Transport backend: 'serial' or 'simulated'",
    )
    port: str = Field(
        default="/dev/cu.usbmodemSPECT1",
        description="Serial device path",
    )
    # USB CDC device, so the nominal baud rate is arbitrary
    baudrate: int = Field(
        default=115200 * 32,
        gt=0,
        description="Serial baud rate",
    )
    read_timeout_seconds: float = Field(
        default=8192.0,
        gt=0,
        description="Frame read timeout; the protocol has no keepalive",
    )
    trigger: str = Field(
        default="p",
        description="Single ASCII byte that requests one frame of samples",
    )
    delimiter: int = Field(
        default=0xFF,
        ge=0,
        le=0xFF,
        description="Byte that terminates each device frame",
    )

    @field_validator("trigger")
    @classmethod
    def _single_ascii_byte(cls, value: str) -> str:
        if len(value) != 1 or not value.isascii():
            raise ValueError("trigger must be a single ASCII character")
        return value


class SpectrumConfig(BaseModel):
    """Sampling and transform configuration."""

    sample_rate_hz: float = Field(
        default=96000.0,
        gt=0,
        description="Device ADC sample rate (Hz)",
    )
    fft_size: int = Field(
        default=8192,
        ge=2,
        description="Samples per frame and FFT length",
    )
    adc_bits: int = Field(
        default=12,
        ge=1,
        le=16,
        description="ADC resolution in bits",
    )

    @property
    def full_scale_amplitude(self) -> float:
        """Peak amplitude of a full-scale sine around mid-scale."""
        return float(2 ** (self.adc_bits - 1))


class DisplayConfig(BaseModel):
    """Consumer-side presentation configuration."""

    min_dbfs: float = Field(default=-60.0, description="Lower display clamp (dBFS)")
    max_dbfs: float = Field(default=0.0, description="Upper display clamp (dBFS)")
    push_interval_seconds: float = Field(
        default=0.1,
        gt=0,
        description="Interval between WebSocket spectrum pushes",
    )


class SimulationConfig(BaseModel):
    """Simulated device configuration (backend='simulated')."""

    tone_hz: float = Field(default=1500.0, ge=0, description="Test tone frequency")
    amplitude: float = Field(default=1024.0, ge=0, description="Tone amplitude (counts)")
    bias: float = Field(default=2048.0, ge=0, description="DC bias (counts)")
    noise: float = Field(default=2.0, ge=0, description="Gaussian noise std (counts)")
    realtime: bool = Field(
        default=True,
        description="Pace frames at the capture duration of a real device",
    )


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8001, ge=1, le=65535, description="Bind port")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for the spectrum viewer.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    app: AppConfig = Field(default_factory=AppConfig)
    device: DeviceConfig = Field(default_factory=DeviceConfig)
    spectrum: SpectrumConfig = Field(default_factory=SpectrumConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)
    simulation: SimulationConfig = Field(default_factory=SimulationConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.warning("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Device settings
    if env_backend := os.environ.get("SPECTRUM_DEVICE_BACKEND"):
        config_data.setdefault("device", {})["backend"] = env_backend
    if env_port := os.environ.get("SPECTRUM_DEVICE_PORT"):
        config_data.setdefault("device", {})["port"] = env_port
    if env_baud := os.environ.get("SPECTRUM_BAUDRATE"):
        config_data.setdefault("device", {})["baudrate"] = int(env_baud)
    if env_timeout := os.environ.get("SPECTRUM_READ_TIMEOUT"):
        config_data.setdefault("device", {})["read_timeout_seconds"] = float(env_timeout)

    # Spectrum settings
    if env_fs := os.environ.get("SPECTRUM_SAMPLE_RATE"):
        config_data.setdefault("spectrum", {})["sample_rate_hz"] = float(env_fs)

    # Simulation settings
    if env_tone := os.environ.get("SPECTRUM_TONE_HZ"):
        config_data.setdefault("simulation", {})["tone_hz"] = float(env_tone)

    # Server settings
    if env_server_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_server_port)
    elif env_server_port := os.environ.get("SPECTRUM_SERVER_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_server_port)

    # Logging settings
    if env_log := os.environ.get("SPECTRUM_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Global settings instance - loaded on import
settings = load_config()
setup_logging(settings)
