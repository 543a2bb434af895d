"""Configuration loading utilities."""

import json
import os
import re
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import ValidationError

from blvdiff.config.schema import BlvdiffConfig
from blvdiff.errors import ConfigError


def get_config_dir() -> Path:
    """Get the config directory (``BLVDIFF_CONFIG_DIR`` or ~/.blvdiff)."""
    override = os.environ.get("BLVDIFF_CONFIG_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".blvdiff"


def get_config_path() -> Path:
    """Get the default configuration file path."""
    return get_config_dir() / "config.json"


def read_config(config_path: Path | None = None) -> BlvdiffConfig:
    """Read and validate a config file, raising ConfigError on any failure."""
    path = config_path or get_config_path()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config root in {path} must be an object")
    try:
        return BlvdiffConfig.model_validate(convert_keys(data))
    except ValidationError as e:
        raise ConfigError(f"Invalid config in {path}: {e}") from e


def load_config(config_path: Path | None = None) -> BlvdiffConfig:
    """
    Load configuration from file or create default.

    Args:
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        Loaded configuration object. Falls back to defaults when the file is
        missing or broken.
    """
    path = config_path or get_config_path()

    if path.exists():
        try:
            return read_config(path)
        except ConfigError as e:
            logger.warning(f"Failed to load config: {e}")
            logger.warning("Using default configuration.")

    return BlvdiffConfig()


def save_config(config: BlvdiffConfig, config_path: Path | None = None) -> Path:
    """Save configuration to file (camelCase keys)."""
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    data = convert_to_camel(config.model_dump())
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


def convert_keys(data: Any) -> Any:
    """Convert camelCase keys to snake_case for Pydantic."""
    if isinstance(data, dict):
        return {camel_to_snake(k): convert_keys(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_keys(item) for item in data]
    return data


def convert_to_camel(data: Any) -> Any:
    """Convert snake_case keys to camelCase."""
    if isinstance(data, dict):
        return {snake_to_camel(k): convert_to_camel(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_to_camel(item) for item in data]
    return data


def camel_to_snake(name: str) -> str:
    """Convert camelCase to snake_case."""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def snake_to_camel(name: str) -> str:
    """Convert snake_case to camelCase."""
    components = name.split("_")
    return components[0] + "".join(x.title() for x in components[1:])
