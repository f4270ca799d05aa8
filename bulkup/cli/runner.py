"""CLI runner for bulkup.

This module orchestrates the execution of CLI commands by routing
parsed arguments to the appropriate command handlers.
"""

import sys
from argparse import Namespace
from collections.abc import Sequence

from .. import __version__
from ..commands.base import BaseCommandHandler
from ..commands.init import InitHandler
from ..commands.list import ListHandler
from ..commands.upgrade import UpgradeHandler
from ..config import ConfigManager
from ..exceptions import BulkupError
from ..logger import get_logger
from .parser import CLIParser

logger = get_logger()


class CLIRunner:
    """CLI command runner and orchestrator."""

    def __init__(self, config_manager: ConfigManager | None = None) -> None:
        """Initialize CLI runner with shared dependencies.

        Args:
            config_manager: Configuration manager (defaults to the user's
                config directory)

        """
        self.config_manager = config_manager or ConfigManager()
        self.command_handlers: dict[str, BaseCommandHandler] = {
            "upgrade": UpgradeHandler(self.config_manager),
            "list": ListHandler(self.config_manager),
            "init": InitHandler(self.config_manager),
        }

    async def run(self, argv: Sequence[str] | None = None) -> None:
        """Run the CLI application.

        Args:
            argv: Arguments to parse (defaults to sys.argv)

        """
        args = CLIParser().parse_args(argv)

        if args.version:
            print(__version__)
            return

        try:
            await self._execute_command(args)
        except BulkupError as e:
            logger.error("%s", e)
            print(f"❌ {e}")
            sys.exit(1)

    async def _execute_command(self, args: Namespace) -> None:
        """Execute the specified command with appropriate handler."""
        command = args.command or "upgrade"
        handler = self.command_handlers.get(command)
        if handler is None:
            print(f"❌ Unknown command: {command}")
            sys.exit(1)

        if args.verbose:
            logger.set_console_level_temporarily("DEBUG")

        try:
            await handler.execute(args)
        finally:
            if args.verbose:
                logger.restore_console_level()
