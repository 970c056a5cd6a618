"""
Wiegand Bridge Configuration
============================

This module handles configuration loading for the Wiegand bridge.

Configuration Sources (in order of precedence):
    1. Command-line flags (applied by main.py)
    2. Environment variables
    3. config.yaml file
    4. Default values (lowest priority)

Environment Variable Mapping:
    WIEGAND_DEVICE_ID       -> device.device_id
    WIEGAND_CHIP            -> gpio.chip
    WIEGAND_D0              -> gpio.d0
    WIEGAND_D1              -> gpio.d1
    WIEGAND_MIN_PULSE_US    -> capture.min_pulse_interval_us
    WIEGAND_IDLE_TIMEOUT_MS -> capture.frame_idle_timeout_ms
    WIEGAND_SWAP_LINES      -> capture.swap_lines
    WIEGAND_INVERT_BITS     -> decode.invert_bits
    WIEGAND_REVERSE_BITS    -> decode.reverse_bits
    WIEGAND_MQTT_HOST       -> mqtt.host
    WIEGAND_MQTT_PORT       -> mqtt.port
    WIEGAND_SKIP_META       -> mqtt.skip_meta
    WIEGAND_LOG_LEVEL       -> logging.level

Example:
    from wiegand_bridge.config import load_config

    settings = load_config("/etc/wiegand-bridge.yaml")
    print(settings.gpio.d0, settings.capture.frame_idle_timeout_ms)
"""

import os
import logging
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, model_validator


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class DeviceConfig(BaseModel):
    """Published device identity."""

    device_id: str = Field(
        default="wiegand",
        min_length=1,
        pattern=r"^[^/#+]+$",
        description="Device segment of every MQTT topic",
    )
    name: str = Field(default="Wiegand", description="Published meta/name")
    driver: str = Field(default="wb-mqtt-wiegand", description="Published meta/driver")


class GpioConfig(BaseModel):
    """GPIO line selection."""

    chip: int = Field(default=0, ge=0, description="gpiochip index")
    d0: int = Field(default=228, ge=0, description="Line offset of Wiegand D0")
    d1: int = Field(default=233, ge=0, description="Line offset of Wiegand D1")
    pull_up: bool = Field(default=True, description="Enable internal pull-ups")

    @model_validator(mode="after")
    def _distinct_lines(self) -> "GpioConfig":
        if self.d0 == self.d1:
            raise ValueError("gpio.d0 and gpio.d1 must differ")
        return self


class CaptureConfig(BaseModel):
    """Edge filtering and frame delimiting."""

    min_pulse_interval_us: float = Field(
        default=100.0,
        ge=0,
        description="Debounce threshold; readers vary, 100-400us is typical",
    )
    debounce_scope: Literal["shared", "per_line"] = Field(
        default="shared",
        description="Debounce baseline shared by both lines or kept per line",
    )
    frame_idle_timeout_ms: float = Field(
        default=50.0,
        gt=0,
        description="Silence that terminates a frame",
    )
    min_frame_bits: int = Field(
        default=8,
        ge=1,
        description="Frames shorter than this are discarded unreported",
    )
    max_frame_bits: int = Field(
        default=255,
        ge=1,
        le=255,
        description="Bits kept per frame, extras dropped",
    )
    poll_interval_sec: float = Field(
        default=0.1,
        gt=0,
        le=0.1,
        description="Bounded wait on the edge source per loop iteration",
    )
    swap_lines: bool = Field(
        default=False,
        description="Treat D0 pulses as ones and D1 pulses as zeros",
    )

    @model_validator(mode="after")
    def _frame_bounds(self) -> "CaptureConfig":
        if self.min_frame_bits >= self.max_frame_bits:
            raise ValueError("capture.min_frame_bits must be below capture.max_frame_bits")
        return self


class DecodeConfig(BaseModel):
    """Format decoding."""

    invert_bits: bool = Field(default=False, description="Static inversion before autodetection")
    reverse_bits: bool = Field(default=False, description="Static reversal before autodetection")
    salvage_enabled: bool = Field(default=True, description="Recover W26 from noisy captures")
    salvage_min_bits: int = Field(default=24, ge=1, description="Salvage band lower bound")
    salvage_max_bits: int = Field(default=32, ge=1, description="Salvage band upper bound")

    @model_validator(mode="after")
    def _salvage_band(self) -> "DecodeConfig":
        if self.salvage_min_bits > self.salvage_max_bits:
            raise ValueError("decode.salvage_min_bits must not exceed decode.salvage_max_bits")
        return self


class MqttConfig(BaseModel):
    """MQTT broker connection."""

    host: str = Field(default="localhost", description="Broker host")
    port: int = Field(default=1883, ge=1, le=65535, description="Broker port")
    keepalive: int = Field(default=30, ge=5, description="Keepalive in seconds")
    client_id: str = Field(default="", description="Client id, empty = broker-assigned")
    skip_meta: bool = Field(default=False, description="Do not publish device meta topics")


class ServerConfig(BaseModel):
    """Optional status HTTP server."""

    enabled: bool = Field(default=False, description="Serve /health and /metrics")
    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8002, ge=1, le=65535, description="Bind port")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for the Wiegand bridge.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    device: DeviceConfig = Field(default_factory=DeviceConfig)
    gpio: GpioConfig = Field(default_factory=GpioConfig)
    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    decode: DecodeConfig = Field(default_factory=DecodeConfig)
    mqtt: MqttConfig = Field(default_factory=MqttConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

DEFAULT_SEARCH_PATHS = (
    Path("config.yaml"),
    Path("config.yml"),
    Path("/etc/wiegand-bridge.yaml"),
)


def load_config(
    config_path: Optional[str] = None,
    overrides: Optional[dict] = None,
) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. `overrides` (command-line flags)
        2. Environment variables
        3. YAML config file
        4. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.
        overrides: Nested dict merged last, e.g. {"gpio": {"d0": 17}}

    Returns:
        Settings: Loaded configuration

    Raises:
        FileNotFoundError: An explicit config_path does not exist.
        yaml.YAMLError: The config file is not valid YAML.
        ValueError: The config file is not a mapping.
        pydantic.ValidationError: A value is malformed or out of range.
    """
    if config_path is None:
        for path in DEFAULT_SEARCH_PATHS:
            if path.exists():
                config_path = str(path)
                break
    elif not Path(config_path).exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    config_data: dict = {}
    if config_path:
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
        if not isinstance(config_data, dict):
            raise ValueError(f"Config file {config_path} must contain a mapping")
    else:
        logger.info("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)
    if overrides:
        _merge(config_data, overrides)

    return Settings.model_validate(config_data)


def _merge(target: dict, updates: dict) -> None:
    """Recursively merge `updates` into `target`."""
    for key, value in updates.items():
        if isinstance(value, dict):
            _merge(target.setdefault(key, {}), value)
        else:
            target[key] = value


def _env_flag(value: str) -> bool:
    return value.strip().lower() not in ("", "0", "false", "no", "off")


def _apply_env_overrides(config_data: dict) -> None:
    """
    Apply environment variable overrides to config data.

    Values are stored as read; Settings coerces and validates them, so a
    malformed variable surfaces as a ValidationError like a bad file value.
    """

    # Device
    if env_device := os.environ.get("WIEGAND_DEVICE_ID"):
        config_data.setdefault("device", {})["device_id"] = env_device

    # GPIO lines
    if env_chip := os.environ.get("WIEGAND_CHIP"):
        config_data.setdefault("gpio", {})["chip"] = env_chip
    if env_d0 := os.environ.get("WIEGAND_D0"):
        config_data.setdefault("gpio", {})["d0"] = env_d0
    if env_d1 := os.environ.get("WIEGAND_D1"):
        config_data.setdefault("gpio", {})["d1"] = env_d1

    # Capture timing
    if env_pulse := os.environ.get("WIEGAND_MIN_PULSE_US"):
        config_data.setdefault("capture", {})["min_pulse_interval_us"] = env_pulse
    if env_idle := os.environ.get("WIEGAND_IDLE_TIMEOUT_MS"):
        config_data.setdefault("capture", {})["frame_idle_timeout_ms"] = env_idle
    if env_swap := os.environ.get("WIEGAND_SWAP_LINES"):
        config_data.setdefault("capture", {})["swap_lines"] = _env_flag(env_swap)

    # Static transforms
    if env_invert := os.environ.get("WIEGAND_INVERT_BITS"):
        config_data.setdefault("decode", {})["invert_bits"] = _env_flag(env_invert)
    if env_reverse := os.environ.get("WIEGAND_REVERSE_BITS"):
        config_data.setdefault("decode", {})["reverse_bits"] = _env_flag(env_reverse)

    # MQTT
    if env_host := os.environ.get("WIEGAND_MQTT_HOST"):
        config_data.setdefault("mqtt", {})["host"] = env_host
    if env_port := os.environ.get("WIEGAND_MQTT_PORT"):
        config_data.setdefault("mqtt", {})["port"] = env_port
    if env_meta := os.environ.get("WIEGAND_SKIP_META"):
        config_data.setdefault("mqtt", {})["skip_meta"] = _env_flag(env_meta)

    # Logging
    if env_log := os.environ.get("WIEGAND_LOG_LEVEL"):
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
        force=True,
    )
