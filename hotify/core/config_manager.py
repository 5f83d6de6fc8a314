"""Configuration manager for loading and saving the CLI settings."""

import logging
import os
import shutil
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..utils.constants import (
    ADDRESS_ENV, CONFIG_FILE, DEFAULT_ADDRESS, DEFAULT_LOG_POLL_INTERVAL,
    DEFAULT_SECRET, DEFAULT_TIMEOUT, SECRET_ENV
)

logger = logging.getLogger(__name__)


class ConfigManager:
    """Manages the server connection settings of the CLI.

    The settings file holds the server ``address``, the API ``secret`` and a
    few client settings. Values missing from the file fall back to the
    ``HOTIFY_ADDRESS``/``HOTIFY_SECRET`` environment variables and then to
    the built-in defaults.
    """

    CONFIG_VERSION = "1.0"

    def __init__(self, config_file: Optional[Path] = None):
        """Initialize the config manager.

        Args:
            config_file: Path of the settings file, defaults to ~/.config/hotify/config.yaml
        """
        self.config_file = Path(config_file) if config_file else CONFIG_FILE
        self.server: Dict[str, str] = {}
        self.settings: Dict[str, Any] = {}
        self._load_defaults()

    @property
    def address(self) -> str:
        return self.server.get("address") or os.environ.get(ADDRESS_ENV, DEFAULT_ADDRESS)

    @property
    def secret(self) -> str:
        return self.server.get("secret") or os.environ.get(SECRET_ENV, DEFAULT_SECRET)

    def is_configured(self) -> bool:
        """Check whether an address and secret were saved or provided via the environment.

        Returns:
            True if both values are available without falling back to defaults
        """
        has_address = bool(self.server.get("address") or os.environ.get(ADDRESS_ENV))
        has_secret = bool(self.server.get("secret") or os.environ.get(SECRET_ENV))
        return has_address and has_secret

    def load_config(self) -> bool:
        """Load configuration from file.

        Returns:
            True if config loaded successfully, False otherwise
        """
        if not self.config_file.exists():
            logger.info("Config file not found, using defaults")
            self._load_defaults()
            return False

        try:
            with open(self.config_file, 'r') as f:
                data = yaml.safe_load(f)

            if not data:
                logger.warning("Empty config file, using defaults")
                self._load_defaults()
                return False

            if not self._validate_config(data):
                logger.error("Invalid config file, using defaults")
                self._load_defaults()
                return False

            self.server = {
                key: str(value)
                for key, value in (data.get("server") or {}).items()
                if key in ("address", "secret") and value
            }
            self.settings = data.get("settings") or {}
            self._ensure_default_settings()

            logger.info(f"Loaded settings for {self.server.get('address', 'default address')}")
            return True

        except yaml.YAMLError as e:
            logger.error(f"YAML parsing error: {e}")
            self._load_defaults()
            return False
        except OSError as e:
            logger.error(f"Failed to load config: {e}")
            self._load_defaults()
            return False

    def save_config(self) -> bool:
        """Save configuration to file.

        Returns:
            True if saved successfully, False otherwise
        """
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)

            # Create backup if config exists
            if self.config_file.exists():
                backup_file = self.config_file.with_suffix('.yaml.bak')
                shutil.copy2(self.config_file, backup_file)
                logger.debug(f"Created backup at {backup_file}")

            data = {
                "version": self.CONFIG_VERSION,
                "server": dict(self.server),
                "settings": self.settings
            }

            # Write to temp file first (atomic write)
            temp_file = self.config_file.with_suffix('.yaml.tmp')
            with open(temp_file, 'w') as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
            # The file holds the API secret
            temp_file.chmod(0o600)

            temp_file.replace(self.config_file)

            logger.info(f"Saved settings to {self.config_file}")
            return True

        except OSError as e:
            logger.error(f"Failed to save config: {e}")
            return False

    def set_server(self, address: str, secret: str) -> bool:
        """Set the server connection settings and save them.

        Args:
            address: Base URL of the hotify server
            secret: API secret

        Returns:
            True if the settings were written, False otherwise
        """
        self.server = {"address": address.rstrip("/"), "secret": secret}
        return self.save_config()

    def get_setting(self, key: str, default: Any = None) -> Any:
        """Get a setting value.

        Args:
            key: Setting key
            default: Default value if key not found

        Returns:
            Setting value or default
        """
        return self.settings.get(key, default)

    def set_setting(self, key: str, value: Any):
        """Set a setting value.

        Args:
            key: Setting key
            value: Setting value
        """
        self.settings[key] = value
        self._ensure_default_settings()
        self.save_config()

    def _validate_config(self, data: dict) -> bool:
        """Validate configuration data structure.

        Args:
            data: Configuration dictionary

        Returns:
            True if valid, False otherwise
        """
        if not isinstance(data, dict):
            logger.error("Config must be a dictionary")
            return False

        if "version" not in data:
            logger.warning("Config missing version, assuming valid")

        if data.get("server") is not None and not isinstance(data["server"], dict):
            logger.error("Server must be a dictionary")
            return False

        if data.get("settings") is not None and not isinstance(data["settings"], dict):
            logger.error("Settings must be a dictionary")
            return False

        return True

    def _load_defaults(self):
        """Load default configuration."""
        self.server = {}
        self.settings = {}
        self._ensure_default_settings()

    def _ensure_default_settings(self):
        """Ensure all default settings exist and hold positive numbers."""
        defaults = {
            "timeout": DEFAULT_TIMEOUT,
            "log_poll_interval": DEFAULT_LOG_POLL_INTERVAL,
        }

        for key, value in defaults.items():
            if key not in self.settings:
                self.settings[key] = value
            elif not _is_positive_number(self.settings[key]):
                logger.warning(f"Invalid {key} setting {self.settings[key]!r}, using {value}")
                self.settings[key] = value


def _is_positive_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0
