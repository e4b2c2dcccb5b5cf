"""Configuration management for trailmark.

Handles loading configuration from TOML files, environment variables,
and command-line options with proper precedence.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from trailmark.lib.geolocation import DEFAULT_GEOLOCATION_URL, DEFAULT_TIMEOUT
from trailmark.lib.kvstore import validate_key
from trailmark.models.session import Location
from trailmark.models.store import DEFAULT_STORAGE_KEY
from trailmark.services.controller import DEFAULT_FORM_TRANSITION_DELAY, DEFAULT_ZOOM
from trailmark.views.map import DEFAULT_TILE_URL

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "trailmark" / "config.toml"
DEFAULT_DATA_DIR = Path("./data")


@dataclass
class DataConfig:
    """Data storage configuration."""

    directory: Path = field(default_factory=lambda: DEFAULT_DATA_DIR)


@dataclass
class StorageConfig:
    """Session store configuration."""

    key: str = DEFAULT_STORAGE_KEY


@dataclass
class MapConfig:
    """Map and current-position configuration."""

    zoom: int = DEFAULT_ZOOM
    tile_url: str = DEFAULT_TILE_URL
    latitude: float | None = None
    longitude: float | None = None
    geolocation: bool = True
    geolocation_url: str = DEFAULT_GEOLOCATION_URL
    timeout: float = DEFAULT_TIMEOUT

    @property
    def fixed_location(self) -> Location | None:
        """Configured position, if both coordinates are set."""
        if self.latitude is None or self.longitude is None:
            return None
        return Location(self.latitude, self.longitude)


@dataclass
class FormConfig:
    """Session form behavior configuration."""

    transition_delay: float = DEFAULT_FORM_TRANSITION_DELAY


@dataclass
class Config:
    """Main configuration container."""

    data: DataConfig = field(default_factory=DataConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    map: MapConfig = field(default_factory=MapConfig)
    form: FormConfig = field(default_factory=FormConfig)
    config_path: Path | None = None


def _get_env_value(key: str, default: str = "") -> str:
    """Get environment variable value."""
    return os.environ.get(key, default)


def _get_env_bool(key: str, default: bool = True) -> bool:
    """Get environment variable as boolean."""
    value = os.environ.get(key, "")
    if not value:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from file and environment variables.

    Configuration is loaded with the following precedence (highest to lowest):
    1. Environment variables
    2. Configuration file
    3. Default values

    Args:
        config_path: Path to configuration file. If None, uses default location.

    Returns:
        Populated Config object.

    Raises:
        ValueError: If an environment override is not a valid number.
    """
    config = Config()

    # Determine config path
    if config_path is None:
        env_config = _get_env_value("TRAILMARK_CONFIG")
        config_path = Path(env_config) if env_config else DEFAULT_CONFIG_PATH

    config.config_path = config_path

    if config_path.exists():
        config = _load_from_file(config_path, config)

    config = _apply_env_overrides(config)

    return config


def _load_from_file(path: Path, config: Config) -> Config:
    """Load configuration from TOML file.

    Args:
        path: Path to TOML file.
        config: Existing config to update.

    Returns:
        Updated Config object.

    Raises:
        ValueError: If a value has the wrong type or the storage key is invalid.
    """
    with open(path, "rb") as f:
        data = tomllib.load(f)

    if "data" in data:
        data_section = data["data"]
        if "directory" in data_section:
            config.data.directory = Path(data_section["directory"])

    if "storage" in data:
        config.storage.key = validate_key(data["storage"].get("key", config.storage.key))

    if "map" in data:
        map_section = data["map"]
        config.map.zoom = int(map_section.get("zoom", config.map.zoom))
        config.map.tile_url = map_section.get("tile_url", config.map.tile_url)
        if "latitude" in map_section:
            config.map.latitude = float(map_section["latitude"])
        if "longitude" in map_section:
            config.map.longitude = float(map_section["longitude"])
        config.map.geolocation = map_section.get("geolocation", config.map.geolocation)
        config.map.geolocation_url = map_section.get(
            "geolocation_url", config.map.geolocation_url
        )
        config.map.timeout = float(map_section.get("timeout", config.map.timeout))

    if "form" in data:
        config.form.transition_delay = float(
            data["form"].get("transition_delay", config.form.transition_delay)
        )

    return config


def _apply_env_overrides(config: Config) -> Config:
    """Apply environment variable overrides to configuration.

    Args:
        config: Config to update.

    Returns:
        Updated Config object.
    """
    if data_dir := _get_env_value("TRAILMARK_DATA_DIR"):
        config.data.directory = Path(data_dir)

    if latitude := _get_env_value("TRAILMARK_LATITUDE"):
        config.map.latitude = float(latitude)
    if longitude := _get_env_value("TRAILMARK_LONGITUDE"):
        config.map.longitude = float(longitude)

    config.map.geolocation = _get_env_bool("TRAILMARK_GEOLOCATION", config.map.geolocation)

    return config


def ensure_data_dir(config: Config) -> Path:
    """Ensure data directory exists and return its path.

    Args:
        config: Configuration with data directory setting.

    Returns:
        Path to data directory.
    """
    data_dir = config.data.directory.resolve()
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir
