"""List command handler for bulkup CLI."""

from argparse import Namespace

from ..parser import OutputParser, format_report
from .base import BaseCommandHandler


class ListHandler(BaseCommandHandler):
    """Handler for the list command."""

    async def execute(self, args: Namespace) -> None:
        """Print the upgradable packages in canonical report form.

        Packages on the skip list are marked when a skip list exists.

        Args:
            args: Parsed command-line arguments

        """
        global_config = self._load_global_config()
        client = self._create_client(global_config)
        report = await self._read_report(args.report, client)

        records = OutputParser().parse(report)
        if not records:
            print("✅ No packages to upgrade")
            return

        print(format_report(records), end="")

        skip_file = args.skip_config or self.config_manager.skip_file
        if not skip_file.exists():
            return
        skip_set = self.config_manager.load_skip_set(skip_file)
        skipped = [record.id for record in records if record.id in skip_set]
        if skipped:
            print(f"\n⏭️  Skipped by configuration: {', '.join(skipped)}")
