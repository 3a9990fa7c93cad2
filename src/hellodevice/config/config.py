"""
Configuration management for HelloDevice.

Handles:
- Locating the key file under the XDG config directory
- Loading the [General] group
- The handler directory, which is also the config directory
"""

import configparser
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional
import logging

from ..core.classifier import DEFAULT_SETTLE_DELAY
from ..core.errors import ConfigMalformedError, ConfigMissingError

logger = logging.getLogger(__name__)


# Default configuration paths
XDG_CONFIG_HOME = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
CONFIG_DIR = Path(XDG_CONFIG_HOME) / "HelloDevice"
CONFIG_FILE = CONFIG_DIR / "HelloDevice.conf"
GENERAL_GROUP = "General"


@dataclass
class Config:
    """Complete HelloDevice configuration."""
    # Handler program, looked up on PATH with the config dir prepended
    command: str
    # Seconds to wait before reporting a hotplug transition
    settle_delay: float = DEFAULT_SETTLE_DELAY
    # Enable verbose logging
    verbose: bool = False
    # Log file path (empty = stderr only)
    log_file: str = ""


class ConfigManager:
    """
    Manages the HelloDevice key file.

    The file uses GKeyFile/INI syntax:

        [General]
        command=my-device-handler
    """

    def __init__(self, config_dir: Optional[Path] = None):
        """
        Initialize the config manager.

        Args:
            config_dir: Override default config directory
        """
        self.config_dir = Path(config_dir) if config_dir else CONFIG_DIR
        self.config_file = self.config_dir / "HelloDevice.conf"

        self._config: Optional[Config] = None

    def load_config(self) -> Config:
        """
        Load configuration from file.

        Returns:
            Loaded configuration

        Raises:
            ConfigMissingError: File or command entry absent
            ConfigMalformedError: File cannot be parsed
        """
        if self._config is not None:
            return self._config

        if not self.config_file.is_file():
            raise ConfigMissingError(f"Failed to load config file from: {self.config_file}")

        parser = configparser.ConfigParser(interpolation=None)
        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                parser.read_file(f)
        except (configparser.Error, UnicodeDecodeError) as e:
            raise ConfigMalformedError(f"Error parsing {self.config_file}: {e}") from e
        except OSError as e:
            raise ConfigMissingError(f"Failed to load config file from: {self.config_file}: {e}") from e

        self._config = self._parse_config(parser)
        logger.info(f"Loaded config from {self.config_file}")
        return self._config

    def _parse_config(self, parser: configparser.ConfigParser) -> Config:
        """Parse the [General] group into a Config object."""
        if not parser.has_section(GENERAL_GROUP):
            raise ConfigMissingError("Failed to load command string.")

        general = parser[GENERAL_GROUP]
        command = general.get("command", "").strip()
        if not command:
            raise ConfigMissingError("Failed to load command string.")

        try:
            settle_delay = general.getfloat("settle_delay", DEFAULT_SETTLE_DELAY)
            verbose = general.getboolean("verbose", False)
        except ValueError as e:
            raise ConfigMalformedError(f"Invalid value in {self.config_file}: {e}") from e

        if settle_delay < 0:
            raise ConfigMalformedError(f"settle_delay must not be negative, got {settle_delay}")

        return Config(
            command=command,
            settle_delay=settle_delay,
            verbose=verbose,
            log_file=general.get("log_file", "").strip(),
        )

    @property
    def handler_dir(self) -> Path:
        """Directory prepended to the handler's PATH."""
        return self.config_dir
