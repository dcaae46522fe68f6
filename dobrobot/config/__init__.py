"""Configuration module for dobrobot."""

from dobrobot.config.loader import load_config, get_config_path
from dobrobot.config.schema import Config

__all__ = ["Config", "load_config", "get_config_path"]
