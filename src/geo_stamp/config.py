"""
GeoStamp Configuration
======================

This module handles configuration loading for the stamp compositor.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    GEOSTAMP_GOOGLE_MAPS_KEY  -> providers.google_api_key
    GEOSTAMP_MAP_ZOOM         -> map.zoom
    GEOSTAMP_LATITUDE         -> location.latitude
    GEOSTAMP_LONGITUDE        -> location.longitude
    GEOSTAMP_CAMERA_DEVICE    -> camera.device
    GEOSTAMP_OUTPUT_DIR       -> export.output_dir
    GEOSTAMP_LOG_LEVEL        -> logging.level

Example:
    from geo_stamp.config import settings

    print(settings.providers.google_api_key)
    print(settings.export.jpeg_quality)
"""

import os
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class ProvidersConfig(BaseModel):
    """Reverse-geocoding provider configuration."""

    google_api_key: str = Field(
        default="",
        description="Google Maps key; empty disables the credentialed providers",
    )
    nominatim_url: str = Field(
        default="https://nominatim.openstreetmap.org/reverse",
        description="Nominatim reverse endpoint",
    )
    user_agent: str = Field(
        default="geo-stamp/0.1 (location stamp camera)",
        description="User-Agent sent to the free providers",
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Per-request HTTP timeout",
    )


class MapConfig(BaseModel):
    """Static map thumbnail configuration."""

    zoom: int = Field(default=15, ge=1, le=20, description="Static map zoom level")
    size_px: int = Field(default=300, ge=32, le=640, description="Requested map side")
    wait_timeout_seconds: float = Field(
        default=5.0,
        ge=0,
        description="Longest a capture waits for an in-flight map fetch",
    )


class LocationConfig(BaseModel):
    """Position acquisition configuration."""

    timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Ceiling on position acquisition",
    )
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)


class CameraConfig(BaseModel):
    """Frame source configuration."""

    device: int = Field(default=0, ge=0, description="OpenCV capture device index")
    width: int = Field(default=1920, ge=1, description="Requested frame width")
    height: int = Field(default=1080, ge=1, description="Requested frame height")


class StampConfig(BaseModel):
    """Presentation constants for the stamp panel."""

    badge_label: str = Field(default="GPS Map Camera", description="Badge text")
    panel_height_cap: int = Field(default=220, ge=40, description="Max panel height (px)")
    panel_opacity: float = Field(default=0.6, gt=0, le=1.0, description="Panel alpha")


class ExportConfig(BaseModel):
    """Output artifact configuration."""

    output_dir: str = Field(default="./captures", description="Download directory")
    filename_prefix: str = Field(default="geo-stamped", description="Filename prefix")
    jpeg_quality: int = Field(default=92, ge=1, le=100, description="JPEG quality")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for GeoStamp.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    map: MapConfig = Field(default_factory=MapConfig)
    location: LocationConfig = Field(default_factory=LocationConfig)
    camera: CameraConfig = Field(default_factory=CameraConfig)
    stamp: StampConfig = Field(default_factory=StampConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
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
            Path.home() / ".config" / "geo-stamp" / "config.yaml",
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
        logger.debug("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    if env_key := os.environ.get("GEOSTAMP_GOOGLE_MAPS_KEY"):
        config_data.setdefault("providers", {})["google_api_key"] = env_key

    if env_zoom := os.environ.get("GEOSTAMP_MAP_ZOOM"):
        config_data.setdefault("map", {})["zoom"] = int(env_zoom)

    if env_lat := os.environ.get("GEOSTAMP_LATITUDE"):
        config_data.setdefault("location", {})["latitude"] = float(env_lat)
    if env_lon := os.environ.get("GEOSTAMP_LONGITUDE"):
        config_data.setdefault("location", {})["longitude"] = float(env_lon)

    if env_device := os.environ.get("GEOSTAMP_CAMERA_DEVICE"):
        config_data.setdefault("camera", {})["device"] = int(env_device)

    if env_out := os.environ.get("GEOSTAMP_OUTPUT_DIR"):
        config_data.setdefault("export", {})["output_dir"] = env_out

    if env_log := os.environ.get("GEOSTAMP_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


# HTTP and imaging libraries log per request/decode at DEBUG
_NOISY_LOGGERS = ("urllib3", "PIL")


def setup_logging(settings: Settings) -> None:
    """
    Configure root logging from settings.

    The `json` format emits one JSON object per line; `text` is the
    human-readable default used by the CLI.
    """
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = (
            '{"time": "%(asctime)s", "level": "%(levelname)s", '
            '"logger": "%(name)s", "message": "%(message)s"}'
        )
    else:
        log_format = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


# =============================================================================
# Global Settings Instance
# =============================================================================

# Loaded on import; logging is configured by the entry point
settings = load_config()
