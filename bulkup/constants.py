"""Centralized constants module for bulkup.

This module serves as the single source of truth for shared constants
across the bulkup codebase. Constants are organized by logical categories
and use typing.Final annotations to ensure immutability.

Usage:
    from bulkup.constants import STATUS_PREFIX
"""

from typing import Final

# =============================================================================
# Configuration Constants
# =============================================================================

# Environment variable that overrides the configuration directory
CONFIG_DIR_ENV: Final[str] = "BULKUP_CONFIG_DIR"

# Default config directory name under the user's home directory
CONFIG_DIR_NAME: Final[str] = ".config"

# Application-specific subdirectory under the config directory
DEFAULT_CONFIG_SUBDIR: Final[str] = "bulkup"

# Configuration file names
CONFIG_FILE_NAME: Final[str] = "settings.conf"
SKIP_FILE_NAME: Final[str] = "skip.json"
LOG_DIR_NAME: Final[str] = "logs"
LOG_FILE_NAME: Final[str] = "bulkup.log"

# Configuration defaults
DEFAULT_LOG_LEVEL: Final[str] = "INFO"
DEFAULT_CONSOLE_LOG_LEVEL: Final[str] = "WARNING"
DEFAULT_POLL_INTERVAL: Final[float] = 0.1
DEFAULT_MAX_CONCURRENT: Final[int] = 0  # 0 means unbounded
DEFAULT_BAR_WIDTH: Final[int] = 30
DEFAULT_LOG_TO_FILE: Final[bool] = False

# Default external tool invocations
DEFAULT_LIST_COMMAND: Final[str] = (
    "winget upgrade --include-unknown --accept-source-agreements"
)
DEFAULT_UPGRADE_COMMAND: Final[str] = (
    "winget upgrade --id {id} --exact --silent "
    "--accept-package-agreements --accept-source-agreements "
    "--disable-interactivity"
)

# Config section and key names
SECTION_COMMANDS: Final[str] = "commands"

KEY_LOG_LEVEL: Final[str] = "log_level"
KEY_CONSOLE_LOG_LEVEL: Final[str] = "console_log_level"
KEY_POLL_INTERVAL: Final[str] = "poll_interval"
KEY_MAX_CONCURRENT: Final[str] = "max_concurrent"
KEY_BAR_WIDTH: Final[str] = "bar_width"
KEY_LOG_TO_FILE: Final[str] = "log_to_file"
KEY_LIST_COMMAND: Final[str] = "list_command"
KEY_UPGRADE_COMMAND: Final[str] = "upgrade_command"

# Top-level key of the skip list document
SKIP_KEY: Final[str] = "skip"

# =============================================================================
# Logging Constants
# =============================================================================

# Maximum size for rotated log files (bytes)
LOG_MAX_FILE_SIZE_BYTES: Final[int] = 1024 * 1024  # 1 MB

# Number of backup files to keep for rotated logs
LOG_BACKUP_COUNT: Final[int] = 3

# Console and file format strings used by the logger
LOG_CONSOLE_FORMAT: Final[str] = (
    "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
LOG_CONSOLE_DATE_FORMAT: Final[str] = "%H:%M:%S"
LOG_FILE_FORMAT: Final[str] = (
    "%(asctime)s - %(name)s - %(levelname)s - "
    "%(funcName)s:%(lineno)d - %(message)s"
)
LOG_FILE_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

# Color mapping for console output levels
LOG_COLORS: Final[dict[str, str]] = {
    "DEBUG": "\033[36m",  # Cyan
    "INFO": "\033[32m",  # Green
    "WARNING": "\033[33m",  # Yellow
    "ERROR": "\033[31m",  # Red
    "CRITICAL": "\033[35m",  # Magenta
    "RESET": "\033[0m",
}

# =============================================================================
# Report Parsing Constants
# =============================================================================

# Column labels of the tool's tabular report
COLUMN_NAME: Final[str] = "Name"
COLUMN_ID: Final[str] = "Id"
COLUMN_VERSION: Final[str] = "Version"
COLUMN_AVAILABLE: Final[str] = "Available"
COLUMN_SOURCE: Final[str] = "Source"

# The tool renders truncated cells with this marker
MALFORMED_MARKER: Final[str] = "<"

# Divider character of the line under the header
DIVIDER_CHAR: Final[str] = "-"

# Footer sentences, e.g. "3 upgrades available." or
# "2 package(s) have version numbers that cannot be determined."
FOOTER_PATTERN: Final[str] = (
    r"^\s*\d+\s+(?:upgrades?\s+available|packages?(?:\(s\))?\s)"
)

# Sentence introducing the explicit-targeting section
EXPLICIT_TARGETING_PATTERN: Final[str] = r"require\s+explicit\s+targeting"

# Two or more whitespace characters separate fields in delimiter layout
FIELD_DELIMITER_PATTERN: Final[str] = r"\s{2,}"

# =============================================================================
# Status Protocol Constants
# =============================================================================

STATUS_PREFIX: Final[str] = "STATUS"
ERROR_PREFIX: Final[str] = "ERROR"
ERROR_DETAIL_PREFIX: Final[str] = "ERRORDETAIL"
PROTOCOL_SEPARATOR: Final[str] = ":"

# Tool output fragments that reveal the current upgrade phase
DOWNLOAD_MARKERS: Final[tuple[str, ...]] = ("Downloading",)
INSTALL_MARKERS: Final[tuple[str, ...]] = (
    "Starting package install",
    "Installing",
)

# Number of trailing tool output lines kept as failure detail
ERROR_DETAIL_TAIL_LINES: Final[int] = 10

# =============================================================================
# Rendering Constants
# =============================================================================

SPINNER_FRAMES: Final[tuple[str, ...]] = (
    "⠋",
    "⠙",
    "⠹",
    "⠸",
    "⠼",
    "⠴",
    "⠦",
    "⠧",
    "⠇",
    "⠏",
)
ICON_QUEUED: Final[str] = "·"
ICON_COMPLETED: Final[str] = "✓"
ICON_FAILED: Final[str] = "✗"

SEPARATOR_CHAR: Final[str] = "─"
SEPARATOR_WIDTH: Final[int] = 60
MAX_NAME_WIDTH: Final[int] = 32
MAX_ID_WIDTH: Final[int] = 40
