"""
Manages loading, validation, and migration of the INI configuration file.
"""

import configparser
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from dalle_cli.exceptions import ConfigurationError
from dalle_cli.models.config import DEFAULT_BASE_URL, SessionConfig

log = logging.getLogger(__name__)

API_KEY_ENV = "OPENAI_API_KEY"


class ConfigManager:
    """Handles all operations related to the application's INI config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser(interpolation=None)

    @property
    def default_cache_dir(self) -> Path:
        return self.config_file_path.parent / "cache"

    def load_config(self, cli_options: dict[str, Any] | None = None) -> SessionConfig:
        """
        Loads configuration from the INI file, applies CLI overrides, and validates it.

        A missing file is not an error: every setting has a default, and the API
        key may come from the environment instead.

        Args:
            cli_options: A dictionary of options provided via the command line.

        Returns:
            A validated SessionConfig object.

        Raises:
            ConfigurationError: If the config file cannot be parsed or validation
            fails.
        """
        if self.config_file_path.is_file():
            try:
                self._parser.read(self.config_file_path)
            except configparser.Error as e:
                raise ConfigurationError(
                    f"Error parsing configuration file: {e}"
                ) from e

            if self._migrate_if_needed():
                log.info(
                    "[yellow]Configuration file was updated with new default values."
                    "[/yellow]"
                )
        else:
            log.debug(f"No config file at '{self.config_file_path}', using defaults.")

        config_from_file = self._get_config_as_dict()

        if cli_options:
            config_from_file.update(cli_options)

        if not config_from_file.get("api_key"):
            config_from_file["api_key"] = os.getenv(API_KEY_ENV, "")

        try:
            config_dir = self.config_file_path.parent
            return SessionConfig(**config_from_file, config_path=str(config_dir))
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_new_config(self, settings: dict[str, Any]) -> None:
        """
        Creates and saves a new configuration file.

        Args:
            settings: A dictionary of settings to save.
        """
        config = configparser.ConfigParser(interpolation=None)
        config["DEFAULT"] = {}

        defaults = self._defaults()
        for key in sorted(SessionConfig.get_ini_keys()):
            value = settings.get(key, getattr(defaults, key, None))
            if value is not None:
                config["DEFAULT"][key] = str(value)

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                config.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

    def _defaults(self) -> SessionConfig:
        return SessionConfig.model_construct(
            cache_dir=str(self.default_cache_dir),
            config_path=str(self.config_file_path.parent),
        )

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads the 'DEFAULT' section of the INI file into a dictionary."""
        section = self._parser["DEFAULT"]
        return {
            "api_key": section.get("api_key", ""),
            "user": section.get("user", ""),
            "base_url": section.get("base_url", DEFAULT_BASE_URL),
            "model": section.get("model", "dall-e-2"),
            "request_timeout": section.getint("request_timeout", 120),
            "n": section.getint("n", 1),
            "size": section.get("size", "1024x1024"),
            "spinner_type": section.get("spinner_type", "dots"),
            "display_width": section.getint("display_width", 60),
            "cache_dir": section.get("cache_dir", str(self.default_cache_dir)),
        }

    def _migrate_if_needed(self) -> bool:
        """Adds missing default values to an existing config file."""
        defaults = self._defaults()
        needs_saving = False

        config_section = self._parser["DEFAULT"]

        for key in sorted(SessionConfig.get_ini_keys()):
            if key not in config_section:
                config_section[key] = str(getattr(defaults, key))
                needs_saving = True
                log.debug(
                    f"Migrating config: added missing key '{key}' with "
                    f"value '{config_section[key]}'."
                )

        if needs_saving:
            try:
                with open(self.config_file_path, "w", encoding="utf-8") as f:
                    self._parser.write(f)
            except OSError as e:
                log.error(f"Could not save migrated configuration file: {e}")
                return False

        return needs_saving
