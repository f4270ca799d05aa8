"""Upgrade orchestration control loop.

report text -> parser -> skip filter -> registry -> one task per package
-> status updater + renderer polling until every task is done -> summary.
"""

import asyncio

from .logger import get_logger
from .parser import OutputParser
from .progress import ProgressRenderer
from .registry import FilterResult, PackageRegistry
from .runner import UpgradeOperation, UpgradeTaskRunner
from .summary import RunSummary, SummaryReporter
from .updater import StatusUpdater

logger = get_logger(__name__)


class UpgradeOrchestrator:
    """Runs one bulk upgrade from a tool report to the final summary."""

    def __init__(
        self,
        operation: UpgradeOperation,
        skip_set: frozenset[str] = frozenset(),
        renderer: ProgressRenderer | None = None,
        reporter: SummaryReporter | None = None,
        parser: OutputParser | None = None,
        poll_interval: float = 0.1,
        max_concurrent: int = 0,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            operation: External upgrade operation
            skip_set: Package ids excluded from the run
            renderer: Live progress display
            reporter: Final summary printer
            parser: Report parser
            poll_interval: Seconds between control loop polls
            max_concurrent: Cap on simultaneous upgrades, 0 for no cap

        """
        self.operation = operation
        self.skip_set = skip_set
        self.renderer = renderer or ProgressRenderer()
        self.reporter = reporter or SummaryReporter()
        self.parser = parser or OutputParser()
        self.poll_interval = poll_interval
        self.max_concurrent = max_concurrent

    def prepare(self, report: str) -> FilterResult:
        """Parse a report and seed the registry.

        Args:
            report: Raw report text of the external tool

        Returns:
            Registry of queued packages with queued and skipped counts

        """
        records = self.parser.parse(report)
        result = PackageRegistry.from_records(records, self.skip_set)
        logger.info(
            "%d packages queued for upgrade, %d skipped",
            result.queued,
            result.skipped,
        )
        return result

    async def run(self, report: str) -> RunSummary:
        """Upgrade every non-skipped package of a report.

        Args:
            report: Raw report text of the external tool

        Returns:
            Summary of the run

        """
        return await self.execute(self.prepare(report))

    async def execute(self, prepared: FilterResult) -> RunSummary:
        """Run the upgrade tasks of a seeded registry to completion.

        Cancelling the calling task abandons in-flight upgrades; finished
        upgrades are unaffected.

        Args:
            prepared: Result of ``prepare``

        Returns:
            Summary of the run

        """
        registry = prepared.registry
        if not registry:
            return self.reporter.report_nothing(prepared.skipped)

        runner = UpgradeTaskRunner(self.operation, self.max_concurrent)
        updater = StatusUpdater(registry)
        handles = runner.launch_all(registry)
        launch_failures = tuple(runner.launch_failures)
        if not handles:
            return self.reporter.report_nothing(prepared.skipped)

        total = len(registry)
        completed = 0
        try:
            with logger.progress_context():
                while handles:
                    for package_id in updater.poll(handles):
                        del handles[package_id]
                        completed += 1
                    self.renderer.render(registry, completed, total)
                    if handles:
                        await asyncio.sleep(self.poll_interval)
                self.renderer.finish(registry, completed, total)
        except asyncio.CancelledError:
            await runner.cancel_all(handles)
            raise

        return self.reporter.report(
            registry, prepared.skipped, launch_failures
        )
