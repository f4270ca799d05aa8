"""Upgrade command handler for bulkup CLI."""

from argparse import Namespace

from ..orchestrator import UpgradeOrchestrator
from ..progress import ProgressRenderer
from .base import BaseCommandHandler


class UpgradeHandler(BaseCommandHandler):
    """Handler for the upgrade command."""

    async def execute(self, args: Namespace) -> None:
        """Upgrade every reported package that is not on the skip list.

        Configuration is loaded before anything is dispatched, so a broken
        skip list aborts the run without touching any package.

        Args:
            args: Parsed command-line arguments

        """
        global_config = self._load_global_config()
        skip_set = self.config_manager.load_skip_set(args.skip_config)

        client = self._create_client(global_config)
        report = await self._read_report(args.report, client)

        orchestrator = UpgradeOrchestrator(
            operation=client,
            skip_set=skip_set,
            renderer=ProgressRenderer(bar_width=global_config["bar_width"]),
            poll_interval=global_config["poll_interval"],
            max_concurrent=global_config["max_concurrent"],
        )

        if args.dry_run:
            self._show_plan(orchestrator, report)
            return

        await orchestrator.run(report)

    @staticmethod
    def _show_plan(orchestrator: UpgradeOrchestrator, report: str) -> None:
        prepared = orchestrator.prepare(report)
        if not prepared.registry:
            print("✅ No packages to upgrade")
        else:
            print(f"Would upgrade {prepared.queued} package(s):")
            for status in prepared.registry.statuses():
                record = status.record
                print(
                    f"  {record.id:<30} {record.current_version} → "
                    f"{record.available_version}"
                )
        if prepared.skipped:
            print(f"⏭️  Skipping: {', '.join(prepared.skipped_ids)}")
