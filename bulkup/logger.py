"""Logging utilities for bulkup.

This module provides structured logging functionality with configurable
levels and output formatting. Console output is deferred while the live
progress block owns the terminal.
"""

import logging
import logging.handlers
import sys
import threading
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from .config import config_manager
from .constants import (
    DEFAULT_CONSOLE_LOG_LEVEL,
    DEFAULT_LOG_LEVEL,
    LOG_BACKUP_COUNT,
    LOG_COLORS,
    LOG_CONSOLE_DATE_FORMAT,
    LOG_CONSOLE_FORMAT,
    LOG_FILE_DATE_FORMAT,
    LOG_FILE_FORMAT,
    LOG_MAX_FILE_SIZE_BYTES,
)
from .exceptions import ConfigurationError

ROOT_LOGGER_NAME = "bulkup"

# Global registry to prevent duplicate loggers across the application
_logger_instances: dict[str, "BulkupLogger"] = {}

# Lock for thread-safe logger operations
_logger_lock = threading.Lock()


class _DeferredOutput:
    """Messages held back while the progress block owns the terminal.

    Shared by every BulkupLogger so module loggers defer together.
    """

    def __init__(self) -> None:
        self.active = False
        self.messages: list[
            tuple[logging.Logger, int, str, tuple[Any, ...], dict[str, Any]]
        ] = []

    def flush(self) -> None:
        for target, level, message, args, kwargs in self.messages:
            target.log(level, message, *args, **kwargs)
        self.messages.clear()


_deferred = _DeferredOutput()


def _load_log_settings() -> tuple[str, str]:
    """Load console and file levels from configuration.

    Returns:
        Tuple of (console log level name, file log level name).

    """
    try:
        global_config = config_manager.load_global_config()
    except ConfigurationError:
        return DEFAULT_CONSOLE_LOG_LEVEL, DEFAULT_LOG_LEVEL

    return global_config["console_log_level"], global_config["log_level"]


class ColoredFormatter(logging.Formatter):
    """Custom formatter with color support for console output."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors.

        Args:
            record: The log record to format

        Returns:
            Formatted log message with color codes

        """
        if record.levelname in LOG_COLORS:
            color = LOG_COLORS[record.levelname]
            reset = LOG_COLORS["RESET"]
            colored_level = f"{color}{record.levelname}{reset}"

            original_levelname = record.levelname
            record.levelname = colored_level
            try:
                return super().format(record)
            finally:
                record.levelname = original_levelname

        return super().format(record)


class BulkupLogger:
    """Logger manager for bulkup."""

    def __init__(
        self, name: str = ROOT_LOGGER_NAME, console: bool = True
    ) -> None:
        """Initialize logger with given name.

        Args:
            name: Logger name
            console: Attach a console handler (module loggers rely on the
                root bulkup logger's handler instead)

        """
        self._name = name
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG)
        self._console_handler: logging.StreamHandler | None = None
        self._previous_console_level: int | None = None
        self._file_handler: logging.handlers.RotatingFileHandler | None = None

        # Prevent duplicate handlers
        if console and not self.logger.handlers:
            self._setup_console_handler()

    def _setup_console_handler(self) -> None:
        """Set up console handler with colors."""
        self._console_handler = logging.StreamHandler(sys.stdout)
        console_formatter = ColoredFormatter(
            LOG_CONSOLE_FORMAT,
            datefmt=LOG_CONSOLE_DATE_FORMAT,
        )
        self._console_handler.setFormatter(console_formatter)
        self._console_handler.setLevel(logging.WARNING)
        self.logger.addHandler(self._console_handler)

    def setup_file_logging(self, log_file: Path, level: str = "DEBUG") -> None:
        """Set up file logging with rotation.

        Args:
            log_file: Path to log file
            level: Logging level for file output

        Raises:
            ConfigurationError: If file logging setup fails

        """
        with _logger_lock:
            if self._file_handler:
                return

            try:
                log_file.parent.mkdir(parents=True, exist_ok=True)
                self._file_handler = logging.handlers.RotatingFileHandler(
                    log_file,
                    maxBytes=LOG_MAX_FILE_SIZE_BYTES,
                    backupCount=LOG_BACKUP_COUNT,
                    encoding="utf-8",
                )
            except OSError as e:
                raise ConfigurationError(
                    f"Failed to setup file logging: {e}", str(log_file)
                ) from e

            self._file_handler.setFormatter(
                logging.Formatter(LOG_FILE_FORMAT, datefmt=LOG_FILE_DATE_FORMAT)
            )
            self._file_handler.setLevel(
                getattr(logging, level.upper(), logging.INFO)
            )
            self.logger.addHandler(self._file_handler)

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log debug message.

        Debug output is never deferred; the console handler drops it unless
        verbose mode lowered the console level.

        """
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(message, *args, **kwargs)

    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log info message, deferred while progress is displayed."""
        self._log_deferrable(logging.INFO, message, args, kwargs)

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log warning message, deferred while progress is displayed."""
        self._log_deferrable(logging.WARNING, message, args, kwargs)

    def _log_deferrable(
        self,
        level: int,
        message: str,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return

        if _deferred.active:
            _deferred.messages.append((self.logger, level, message, args, kwargs))
        else:
            self.logger.log(level, message, *args, **kwargs)

    def error(
        self, message: str, *args: Any, exc_info: bool = False, **kwargs: Any
    ) -> None:
        """Log error message.

        Args:
            message: Log message
            *args: Message arguments
            exc_info: Include exception info
            **kwargs: Message keyword arguments

        """
        if self.logger.isEnabledFor(logging.ERROR):
            self.logger.error(message, *args, exc_info=exc_info, **kwargs)

    def exception(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log exception with traceback."""
        if self.logger.isEnabledFor(logging.ERROR):
            self.logger.exception(message, *args, **kwargs)

    @contextmanager
    def progress_context(self) -> Generator[None, None, None]:
        """Context manager to defer logging during progress operations.

        Yields:
            None

        """
        old_state = _deferred.active
        _deferred.active = True

        try:
            yield
        finally:
            _deferred.active = old_state
            if not old_state:
                _deferred.flush()

    def set_console_level(self, level: str) -> None:
        """Set console logging level.

        Args:
            level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

        """
        if self._console_handler:
            numeric_level = getattr(logging, level.upper(), logging.WARNING)
            self._console_handler.setLevel(numeric_level)

    def set_console_level_temporarily(self, level: str) -> None:
        """Temporarily adjust console logging level.

        Stores the current console level so it can be restored later.

        Args:
            level: Temporary logging level name.

        """
        if not self._console_handler:
            return

        if self._previous_console_level is None:
            self._previous_console_level = self._console_handler.level

        self.set_console_level(level)

    def restore_console_level(self) -> None:
        """Restore the console logging level after a temporary change."""
        if not self._console_handler:
            return

        if self._previous_console_level is not None:
            self._console_handler.setLevel(self._previous_console_level)

        self._previous_console_level = None


def clear_logger_state() -> None:
    """Clear global logger state for testing purposes."""
    with _logger_lock:
        _logger_instances.clear()
        _deferred.active = False
        _deferred.messages.clear()


def get_logger(name: str = ROOT_LOGGER_NAME) -> BulkupLogger:
    """Get logger instance with singleton pattern.

    Module loggers (``bulkup.*``) are children of the ``bulkup`` logger, so
    one console handler and one file handler serve the whole package.

    Args:
        name: Logger name

    Returns:
        Logger instance

    """
    with _logger_lock:
        if name in _logger_instances:
            return _logger_instances[name]

        is_child = name.startswith(f"{ROOT_LOGGER_NAME}.")
        logger_instance = BulkupLogger(name, console=not is_child)
        if not is_child:
            console_level, _ = _load_log_settings()
            logger_instance.set_console_level(console_level)

        _logger_instances[name] = logger_instance
        return logger_instance


# Global logger instance - file logging enabled later when config is available
logger = get_logger()
