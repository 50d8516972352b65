"""Configuration handling for mcupdater.

Values are resolved from environment variables first and the JSON config
file second. Command-line options override both and are applied by the CLI.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from .exceptions import UpdaterConfigError

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "mcupdater"
CONFIG_FILE_NAME = "config.json"

ENV_SERVER = "MCUPDATER_SERVER"
ENV_PROFILE = "MCUPDATER_PROFILE"
ENV_GAME_DIR = "MCUPDATER_GAME_DIR"
ENV_LOG_FILE = "MCUPDATER_LOG_FILE"

_KEYS = ("server", "profile", "game_dir", "log_file")


class Config:
    """Configuration manager backed by environment and a JSON file."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_dir: Directory holding config.json. Defaults to
                ~/.config/mcupdater/
        """
        self.config_dir = config_dir or CONFIG_DIR
        self._values: dict[str, Any] = {}
        self.load()

    def get_config_path(self) -> Path:
        """Return the path of the JSON config file."""
        return self.config_dir / CONFIG_FILE_NAME

    def load(self) -> None:
        """(Re)load values from the config file."""
        path = self.get_config_path()
        self._values = {}
        if not path.exists():
            return
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to read config file {path}: {e}")
            return
        if not isinstance(data, dict):
            logger.warning(f"Ignoring config file {path}: not a JSON object")
            return
        self._values = {k: v for k, v in data.items() if k in _KEYS}

    def save(self, **values: Optional[str]) -> Path:
        """Merge ``values`` into the config file and write it.

        Keys set to None are removed from the file.

        Returns:
            Path of the written config file
        """
        unknown = set(values) - set(_KEYS)
        if unknown:
            raise UpdaterConfigError(f"Unknown config key(s): {sorted(unknown)}")

        for key, value in values.items():
            if value is None:
                self._values.pop(key, None)
            else:
                self._values[key] = value

        self.config_dir.mkdir(parents=True, exist_ok=True)
        path = self.get_config_path()
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self._values, f, indent=2)
        logger.debug(f"Saved config to {path}")
        return path

    def _get(self, env_name: str, key: str) -> Optional[str]:
        value = os.environ.get(env_name)
        if value:
            return value
        return self._values.get(key) or None

    @property
    def server(self) -> Optional[str]:
        """Base URL of the content server."""
        return self._get(ENV_SERVER, "server")

    @property
    def profile(self) -> Optional[str]:
        """Name of the server profile to synchronize."""
        return self._get(ENV_PROFILE, "profile")

    @property
    def game_dir(self) -> Optional[str]:
        """Override for the default .minecraft directory."""
        return self._get(ENV_GAME_DIR, "game_dir")

    @property
    def log_file(self) -> Optional[str]:
        """Optional path of a debug log file."""
        return self._get(ENV_LOG_FILE, "log_file")

    def is_configured(self) -> bool:
        """Check whether both server and profile are known."""
        return bool(self.server and self.profile)


config = Config()
