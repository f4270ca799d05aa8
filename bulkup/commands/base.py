"""Base command handler for bulkup CLI commands.

This module provides the abstract base class that all command handlers
inherit from, ensuring consistent interface and shared functionality
across commands.
"""

from abc import ABC, abstractmethod
from argparse import Namespace
from pathlib import Path

from ..client import PackageManagerClient
from ..config import ConfigManager, GlobalConfig
from ..exceptions import CommandError
from ..logger import get_logger

logger = get_logger(__name__)


class BaseCommandHandler(ABC):
    """Abstract base class for all command handlers.

    This class provides common functionality and enforces a consistent
    interface for all command implementations.
    """

    def __init__(self, config_manager: ConfigManager) -> None:
        """Initialize the command handler with shared dependencies.

        Args:
            config_manager: Configuration management instance

        """
        self.config_manager = config_manager

    @abstractmethod
    async def execute(self, args: Namespace) -> None:
        """Execute the command with the given arguments.

        Args:
            args: Parsed command-line arguments

        This method must be implemented by all concrete command handlers.

        """

    def _load_global_config(self) -> GlobalConfig:
        """Load settings and enable file logging when configured."""
        global_config = self.config_manager.load_global_config()
        if global_config["log_to_file"]:
            get_logger().setup_file_logging(
                self.config_manager.log_file, global_config["log_level"]
            )
        return global_config

    @staticmethod
    def _create_client(global_config: GlobalConfig) -> PackageManagerClient:
        return PackageManagerClient(
            list_command=global_config["list_command"],
            upgrade_command=global_config["upgrade_command"],
        )

    async def _read_report(
        self, report_file: Path | None, client: PackageManagerClient
    ) -> str:
        """Get the upgrade report from a file or from the external tool.

        Args:
            report_file: Saved report, or None to ask the tool
            client: Client of the external tool

        Returns:
            Report text

        Raises:
            CommandError: If the report cannot be obtained

        """
        if report_file is None:
            return await client.fetch_report()

        logger.debug("Reading upgrade report from %s", report_file)
        try:
            return report_file.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise CommandError(
                f"Cannot read report: {e}", str(report_file)
            ) from e
