"""Configuration module for blvdiff."""

from blvdiff.config.loader import get_config_path, load_config, save_config
from blvdiff.config.schema import BlvdiffConfig

__all__ = ["BlvdiffConfig", "load_config", "save_config", "get_config_path"]
