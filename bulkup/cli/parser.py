"""CLI argument parser for bulkup.

This module handles the parsing of command-line arguments and provides
a clean interface for defining CLI commands and their options.
"""

import argparse
from argparse import Namespace
from collections.abc import Sequence
from pathlib import Path


class CLIParser:
    """Command-line argument parser for bulkup."""

    def parse_args(self, argv: Sequence[str] | None = None) -> Namespace:
        """Parse command-line arguments.

        Args:
            argv: Arguments to parse (defaults to sys.argv)

        Returns:
            Parsed arguments namespace; ``upgrade`` when no command is given

        """
        parser = self._create_main_parser()
        self._add_subcommands(parser)
        return parser.parse_args(argv)

    def _create_main_parser(self) -> argparse.ArgumentParser:
        """Create the main argument parser.

        Returns:
            The configured main ArgumentParser instance

        """
        parser = argparse.ArgumentParser(
            prog="bulkup",
            description="Upgrade every package the package manager reports",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Upgrade everything that is not on the skip list
  %(prog)s
  %(prog)s upgrade

  # Parse and filter a saved report without upgrading
  %(prog)s upgrade --report upgrades.txt --dry-run

  # Show upgradable packages
  %(prog)s list

  # Create default settings and an empty skip list
  %(prog)s init
            """,
        )
        parser.add_argument(
            "--version", action="store_true", help="Show version and exit"
        )
        parser.add_argument(
            "--verbose", action="store_true", help="Show debug logging"
        )
        parser.set_defaults(report=None, skip_config=None, dry_run=False)
        return parser

    def _add_subcommands(self, parser: argparse.ArgumentParser) -> None:
        """Add all subcommands to the parser.

        Args:
            parser: The main ArgumentParser instance to add subcommands to

        """
        subparsers = parser.add_subparsers(
            dest="command", help="Available commands"
        )

        self._add_upgrade_command(subparsers)
        self._add_list_command(subparsers)
        self._add_init_command(subparsers)

    def _add_upgrade_command(self, subparsers) -> None:
        """Add upgrade command parser."""
        upgrade_parser = subparsers.add_parser(
            "upgrade",
            help="Upgrade all packages except skipped ones",
        )
        self._add_report_argument(upgrade_parser)
        upgrade_parser.add_argument(
            "--skip-config",
            type=Path,
            help="Skip list file (defaults to the config directory's skip.json)",
        )
        upgrade_parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Only show what would be upgraded",
        )

    def _add_list_command(self, subparsers) -> None:
        """Add list command parser."""
        list_parser = subparsers.add_parser(
            "list", help="Show packages with an available upgrade"
        )
        self._add_report_argument(list_parser)
        list_parser.add_argument(
            "--skip-config",
            type=Path,
            help="Skip list file used to mark skipped packages",
        )

    def _add_init_command(self, subparsers) -> None:
        """Add init command parser."""
        subparsers.add_parser(
            "init", help="Create default settings and an empty skip list"
        )

    @staticmethod
    def _add_report_argument(subparser: argparse.ArgumentParser) -> None:
        subparser.add_argument(
            "--report",
            type=Path,
            help="Read the upgrade report from a file instead of the tool",
        )
