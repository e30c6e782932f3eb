# evm/config/settings.py
"""Manages application-wide configuration settings.

This module provides the `Settings` class, which is responsible for locating
the evm home directory, loading settings from a JSON file, providing default
values for missing keys and saving changes back to the file.

The configuration is stored in a nested JSON format. Settings are accessed
programmatically using dot-notation (e.g., `settings.get('download.mirrors')`).
"""

import os
import json
import logging
import collections.abc
from typing import Any, Dict, Optional

from evm.error import ConfigurationError
from evm.config.const import (
    package_name,
    env_name,
    CONFIG_FILENAME,
)

logger = logging.getLogger(__name__)

# The schema version for the configuration file.
CONFIG_SCHEMA_VERSION = 1

HOME_ENV_VAR = f"{env_name}_HOME"

DEFAULT_MIRRORS = [
    "https://artifacts.elastic.co/downloads/elasticsearch/{archive}",
    "https://download.elastic.co/elasticsearch/release/org/elasticsearch/distribution/tar/elasticsearch/{version}/{archive}",
    "https://download.elastic.co/elasticsearch/elasticsearch/{archive}",
]


def deep_merge(source: Dict, destination: Dict) -> Dict:
    """
    Recursively merges the `source` dictionary into the `destination` dictionary.

    Nested dictionaries are merged, while other values in `source` overwrite
    those in `destination`.

    Args:
        source: The dictionary with new or updated values.
        destination: The dictionary to be updated.

    Returns:
        The merged dictionary (`destination`).
    """
    for key, value in source.items():
        if isinstance(value, collections.abc.Mapping):
            node = destination.setdefault(key, {})
            deep_merge(value, node)
        else:
            destination[key] = value
    return destination


def determine_home_dir() -> str:
    """Determines the evm home directory.

    It prioritizes the `EVM_HOME` environment variable if set. Otherwise, it
    defaults to a `.evm` directory in the user's home folder.

    Returns:
        The absolute path to the evm home directory.
    """
    home_dir = os.environ.get(HOME_ENV_VAR)
    if not home_dir:
        home_dir = os.path.join(os.path.expanduser("~"), f".{package_name}")
    return os.path.abspath(os.path.expanduser(home_dir))


class Settings:
    """Manages loading, accessing, and saving application settings.

    This class acts as a single source of truth for configuration. It owns
    the home directory, provides defaults in a nested structure, ensures the
    directories evm writes to exist, and offers `get` and `set` methods using
    dot-notation, persisting any changes to a JSON file.
    """

    def __init__(self, home_dir: Optional[str] = None):
        """Initializes the Settings object.

        Args:
            home_dir: Overrides the home directory. When omitted it is taken
                from `EVM_HOME` or defaults to `~/.evm`.
        """
        logger.debug("Initializing Settings")
        self._home_dir_path = os.path.abspath(home_dir or determine_home_dir())
        self._config_dir_path = os.path.join(self._home_dir_path, ".config")
        self.config_path = os.path.join(self._config_dir_path, CONFIG_FILENAME)

        self._settings: Dict[str, Any] = {}
        self.load()

    @property
    def default_config(self) -> dict:
        """Provides the default configuration values for the application.

        Paths are constructed dynamically based on the home directory.

        Returns:
            A dictionary of default settings with a nested structure.
        """
        home = self._home_dir_path
        return {
            "config_version": CONFIG_SCHEMA_VERSION,
            "paths": {
                "downloads": os.path.join(home, ".downloads"),
                "logs": os.path.join(home, ".logs"),
            },
            "retention": {
                "logs": 3,
            },
            "logging": {
                "file_level": logging.INFO,
                "cli_level": logging.ERROR,
            },
            "download": {
                "mirrors": list(DEFAULT_MIRRORS),
                "checksums": ["sha512", "sha1"],
                "connect_timeout": 60,
                "total_timeout": 3600,
                "chunk_size": 65536,
            },
            "server": {
                "start_timeout": 60,
                "stop_timeout": 10,
            },
        }

    def load(self):
        """Loads settings from the JSON configuration file.

        If the file doesn't exist, it's created with defaults. User settings
        are merged over the defaults.
        """
        self._settings = self.default_config

        if not os.path.exists(self.config_path):
            logger.info(
                f"Configuration file not found at {self.config_path}. "
                "Creating with default settings."
            )
            self._write_config()
        else:
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    user_config = json.load(f)
                if not isinstance(user_config, dict):
                    raise ValueError(
                        f"expected a JSON object, got {type(user_config).__name__}"
                    )
                deep_merge(user_config, self._settings)
            except (ValueError, OSError) as e:
                logger.warning(
                    f"Could not load config file at {self.config_path}: {e}. "
                    "Using default settings. A new config will be saved on the next settings change."
                )

        self._ensure_dirs_exist()

    def _ensure_dirs_exist(self):
        """Ensures that the home directory and the configured paths exist.

        Raises:
            ConfigurationError: If a directory cannot be created.
        """
        dirs_to_check = [
            self._home_dir_path,
            self.get("paths.downloads"),
            self.get("paths.logs"),
        ]
        for dir_path in dirs_to_check:
            if dir_path and isinstance(dir_path, str):
                try:
                    os.makedirs(dir_path, exist_ok=True)
                except OSError as e:
                    raise ConfigurationError(
                        f"Could not create critical directory: {dir_path}"
                    ) from e

    def _write_config(self):
        """Writes the current settings dictionary to the JSON configuration file.

        Raises:
            ConfigurationError: If writing the configuration fails.
        """
        try:
            os.makedirs(self._config_dir_path, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                json.dump(self._settings, f, indent=4, sort_keys=True)
        except (OSError, TypeError) as e:
            raise ConfigurationError(f"Failed to write configuration: {e}") from e

    def get(self, key: str, default: Any = None) -> Any:
        """Retrieves a setting value using dot-notation for nested access.

        Example: `settings.get("download.connect_timeout")`

        Args:
            key: The dot-separated configuration key.
            default: The value to return if the key is not found.

        Returns:
            The value associated with the key, or the default value.
        """
        d = self._settings
        try:
            for k in key.split("."):
                d = d[k]
            return d
        except (KeyError, TypeError):
            return default

    def set(self, key: str, value: Any):
        """Sets a configuration value using dot-notation and saves the change.

        Intermediate dictionaries are created if they do not exist. The
        configuration is only written to disk if the new value is different
        from the old one.

        Args:
            key: The dot-separated configuration key to set.
            value: The value to associate with the key.
        """
        if self.get(key) == value:
            return

        keys = key.split(".")
        d = self._settings
        for k in keys[:-1]:
            d = d.setdefault(k, {})

        d[keys[-1]] = value
        logger.info(f"Setting '{key}' updated to '{value}'. Saving configuration.")
        self._write_config()

    @property
    def home_dir(self) -> str:
        """The absolute path to the evm home directory."""
        return self._home_dir_path

