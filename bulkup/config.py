"""Configuration management for bulkup.

This module handles the global INI settings and the JSON skip list. The
settings file is optional and falls back to defaults; the skip list is
required, and a missing or malformed skip list is a fatal configuration
error.

Requirements:
    - orjson: High-performance JSON library (required for all JSON operations)
"""

import configparser
import os
import shlex
from pathlib import Path
from typing import TypedDict

import orjson

from .constants import (
    CONFIG_DIR_ENV,
    CONFIG_DIR_NAME,
    CONFIG_FILE_NAME,
    DEFAULT_BAR_WIDTH,
    DEFAULT_CONFIG_SUBDIR,
    DEFAULT_CONSOLE_LOG_LEVEL,
    DEFAULT_LIST_COMMAND,
    DEFAULT_LOG_LEVEL,
    DEFAULT_LOG_TO_FILE,
    DEFAULT_MAX_CONCURRENT,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_UPGRADE_COMMAND,
    KEY_BAR_WIDTH,
    KEY_CONSOLE_LOG_LEVEL,
    KEY_LIST_COMMAND,
    KEY_LOG_LEVEL,
    KEY_LOG_TO_FILE,
    KEY_MAX_CONCURRENT,
    KEY_POLL_INTERVAL,
    KEY_UPGRADE_COMMAND,
    LOG_DIR_NAME,
    LOG_FILE_NAME,
    SECTION_COMMANDS,
    SKIP_FILE_NAME,
    SKIP_KEY,
)
from .exceptions import ConfigurationError

PACKAGE_ID_PLACEHOLDER = "{id}"


class GlobalConfig(TypedDict):
    """Global application configuration."""

    log_level: str
    console_log_level: str
    log_to_file: bool
    poll_interval: float
    max_concurrent: int
    bar_width: int
    list_command: list[str]
    upgrade_command: list[str]


def default_config_dir() -> Path:
    """Resolve the configuration directory.

    Returns:
        Directory from the environment override, or ~/.config/bulkup

    """
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / CONFIG_DIR_NAME / DEFAULT_CONFIG_SUBDIR


class ConfigManager:
    """Loads settings and the skip list from the configuration directory."""

    def __init__(self, config_dir: Path | None = None) -> None:
        """Initialize configuration manager.

        Args:
            config_dir: Configuration directory (defaults to ~/.config/bulkup)

        """
        self.config_dir = config_dir or default_config_dir()

    @property
    def settings_file(self) -> Path:
        """Path of the INI settings file."""
        return self.config_dir / CONFIG_FILE_NAME

    @property
    def skip_file(self) -> Path:
        """Path of the JSON skip list."""
        return self.config_dir / SKIP_FILE_NAME

    @property
    def log_file(self) -> Path:
        """Path of the rotating log file."""
        return self.config_dir / LOG_DIR_NAME / LOG_FILE_NAME

    def _get_default_global_config(self) -> dict[str, str]:
        """Get default global configuration values.

        Returns:
            Flat mapping of INI keys to string values

        """
        return {
            KEY_LOG_LEVEL: DEFAULT_LOG_LEVEL,
            KEY_CONSOLE_LOG_LEVEL: DEFAULT_CONSOLE_LOG_LEVEL,
            KEY_LOG_TO_FILE: str(DEFAULT_LOG_TO_FILE).lower(),
            KEY_POLL_INTERVAL: str(DEFAULT_POLL_INTERVAL),
            KEY_MAX_CONCURRENT: str(DEFAULT_MAX_CONCURRENT),
            KEY_BAR_WIDTH: str(DEFAULT_BAR_WIDTH),
        }

    def _build_parser(self) -> configparser.ConfigParser:
        """Create a parser pre-populated with the default settings."""
        # Interpolation is disabled so command templates keep their braces
        parser = configparser.ConfigParser(interpolation=None)
        parser.read_dict({"DEFAULT": self._get_default_global_config()})
        parser[SECTION_COMMANDS] = {
            KEY_LIST_COMMAND: DEFAULT_LIST_COMMAND,
            KEY_UPGRADE_COMMAND: DEFAULT_UPGRADE_COMMAND,
        }
        return parser

    def load_global_config(self) -> GlobalConfig:
        """Load global configuration from the INI file.

        A missing settings file yields the defaults.

        Returns:
            Typed global configuration

        Raises:
            ConfigurationError: If the settings file is unreadable or invalid

        """
        parser = self._build_parser()
        if self.settings_file.exists():
            try:
                with self.settings_file.open(encoding="utf-8") as f:
                    parser.read_file(f)
            except (OSError, configparser.Error, UnicodeDecodeError) as e:
                raise ConfigurationError(
                    f"Cannot read settings: {e}", str(self.settings_file)
                ) from e

        return self._convert_to_global_config(parser)

    def _convert_to_global_config(
        self, parser: configparser.ConfigParser
    ) -> GlobalConfig:
        """Convert parsed INI values to typed GlobalConfig.

        Args:
            parser: Parser holding defaults overlaid with the user's file

        Returns:
            Typed global configuration

        Raises:
            ConfigurationError: If a value has the wrong type

        """
        defaults = parser[parser.default_section]
        commands = parser[SECTION_COMMANDS]
        try:
            config = GlobalConfig(
                log_level=defaults.get(KEY_LOG_LEVEL, DEFAULT_LOG_LEVEL).upper(),
                console_log_level=defaults.get(
                    KEY_CONSOLE_LOG_LEVEL, DEFAULT_CONSOLE_LOG_LEVEL
                ).upper(),
                log_to_file=defaults.getboolean(KEY_LOG_TO_FILE),
                poll_interval=defaults.getfloat(KEY_POLL_INTERVAL),
                max_concurrent=defaults.getint(KEY_MAX_CONCURRENT),
                bar_width=defaults.getint(KEY_BAR_WIDTH),
                list_command=shlex.split(commands[KEY_LIST_COMMAND]),
                upgrade_command=shlex.split(commands[KEY_UPGRADE_COMMAND]),
            )
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid settings value: {e}", str(self.settings_file)
            ) from e

        if config["poll_interval"] <= 0:
            raise ConfigurationError(
                "poll_interval must be positive", str(self.settings_file)
            )
        if config["max_concurrent"] < 0:
            raise ConfigurationError(
                "max_concurrent must not be negative", str(self.settings_file)
            )
        if not config["list_command"]:
            raise ConfigurationError(
                "list_command must not be empty", str(self.settings_file)
            )
        if not any(
            PACKAGE_ID_PLACEHOLDER in arg for arg in config["upgrade_command"]
        ):
            raise ConfigurationError(
                f"upgrade_command must contain {PACKAGE_ID_PLACEHOLDER}",
                str(self.settings_file),
            )
        return config

    def load_skip_set(self, skip_file: Path | None = None) -> frozenset[str]:
        """Load the set of package identifiers excluded from upgrades.

        The document holds a single ``skip`` field, either a mapping of
        package id to a boolean or a list of package ids.

        Args:
            skip_file: Skip list path (defaults to the config directory's)

        Returns:
            Package identifiers to exclude

        Raises:
            ConfigurationError: If the file is missing, unreadable or malformed

        """
        path = skip_file or self.skip_file
        try:
            with path.open("rb") as f:
                data = orjson.loads(f.read())
        except FileNotFoundError as e:
            raise ConfigurationError(
                "Skip list not found, run 'bulkup init' to create it",
                str(path),
            ) from e
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read skip list: {e}", str(path)
            ) from e
        except orjson.JSONDecodeError as e:
            raise ConfigurationError(
                f"Skip list is not valid JSON: {e}", str(path)
            ) from e

        if not isinstance(data, dict) or SKIP_KEY not in data:
            raise ConfigurationError(
                f"Skip list must be an object with a '{SKIP_KEY}' field",
                str(path),
            )

        entries = data[SKIP_KEY]
        if isinstance(entries, dict):
            if not all(isinstance(value, bool) for value in entries.values()):
                raise ConfigurationError(
                    "Skip list values must be true or false", str(path)
                )
            return frozenset(
                str(package_id) for package_id, skip in entries.items() if skip
            )
        if isinstance(entries, list) and all(
            isinstance(package_id, str) for package_id in entries
        ):
            return frozenset(entries)

        raise ConfigurationError(
            f"'{SKIP_KEY}' must be a mapping or a list of package ids",
            str(path),
        )

    def create_default_config(self) -> list[Path]:
        """Write default settings and an empty skip list.

        Existing files are left untouched.

        Returns:
            Paths of the files that were created

        Raises:
            ConfigurationError: If the files cannot be written

        """
        created: list[Path] = []
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)

            if not self.settings_file.exists():
                parser = self._build_parser()
                with self.settings_file.open("w", encoding="utf-8") as f:
                    parser.write(f)
                created.append(self.settings_file)

            if not self.skip_file.exists():
                with self.skip_file.open("wb") as f:
                    f.write(
                        orjson.dumps({SKIP_KEY: {}}, option=orjson.OPT_INDENT_2)
                    )
                created.append(self.skip_file)
        except OSError as e:
            raise ConfigurationError(
                f"Cannot write configuration: {e}", str(self.config_dir)
            ) from e

        return created


def build_upgrade_command(template: list[str], package_id: str) -> list[str]:
    """Substitute a package id into the upgrade command template.

    Args:
        template: Shell-split upgrade command containing ``{id}``
        package_id: Package identifier to upgrade

    Returns:
        Argument vector for the external tool

    """
    return [arg.replace(PACKAGE_ID_PLACEHOLDER, package_id) for arg in template]


# Global config manager instance
config_manager = ConfigManager()
