"""
Configuration module for HelloDevice.

Provides loading of the key file that names the handler command.
"""

from .config import (
    Config,
    ConfigManager,
    CONFIG_DIR,
    CONFIG_FILE,
    GENERAL_GROUP,
)
from ..core.errors import ConfigError, ConfigMissingError, ConfigMalformedError

__all__ = [
    "Config",
    "ConfigManager",
    "ConfigError",
    "ConfigMissingError",
    "ConfigMalformedError",
    "CONFIG_DIR",
    "CONFIG_FILE",
    "GENERAL_GROUP",
]
