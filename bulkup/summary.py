"""Final report of an upgrade run."""

import sys
from dataclasses import dataclass
from typing import TextIO

from .registry import PackageRegistry
from .utils.progress_utils import format_duration


@dataclass(frozen=True, slots=True)
class RunSummary:
    """Counts describing how an upgrade run ended."""

    dispatched: int
    skipped: int = 0
    succeeded: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()
    launch_failures: tuple[str, ...] = ()

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failed)


class SummaryReporter:
    """Prints the outcome of every dispatched package."""

    def __init__(self, output: TextIO | None = None) -> None:
        """Initialize the reporter.

        Args:
            output: Output stream (defaults to sys.stdout)

        """
        self.output = output or sys.stdout

    def _print(self, text: str = "") -> None:
        print(text, file=self.output)

    def report(
        self,
        registry: PackageRegistry,
        skipped: int = 0,
        launch_failures: tuple[str, ...] = (),
    ) -> RunSummary:
        """Print counts and failure diagnostics for a finished run.

        Args:
            registry: Registry with every entry in a terminal state
            skipped: Number of packages excluded by the skip list
            launch_failures: Packages dropped because their task never started

        Returns:
            Summary of the run

        """
        succeeded = registry.succeeded()
        failed = registry.failed()

        self._print("\n📦 Upgrade Summary:")
        self._print("-" * 50)
        for status in succeeded:
            record = status.record
            self._print(
                f"{record.id:<30} ✅ {record.current_version} → "
                f"{record.available_version} "
                f"({format_duration(status.duration)})"
            )
        for status in failed:
            self._print(f"{status.package_id:<30} ❌ Upgrade failed")

        self._print(f"\n🎉 Upgraded: {len(succeeded)}")
        self._print(f"❌ Failed: {len(failed)}")
        if skipped:
            self._print(f"⏭️  Skipped: {skipped}")

        if failed:
            self._print("\nFailures:")
            for status in failed:
                self._print(f"  {status.package_id}: {status.error_message}")
                if status.error_detail:
                    for line in status.error_detail.splitlines():
                        self._print(f"      {line}")

        return RunSummary(
            dispatched=len(registry),
            skipped=skipped,
            succeeded=tuple(s.package_id for s in succeeded),
            failed=tuple(s.package_id for s in failed),
            launch_failures=launch_failures,
        )

    def report_nothing(self, skipped: int = 0) -> RunSummary:
        """Report a run in which no package was dispatched.

        Args:
            skipped: Number of packages excluded by the skip list

        Returns:
            Empty summary

        """
        self._print("✅ No packages to upgrade")
        if skipped:
            self._print(f"⏭️  Skipped: {skipped}")
        return RunSummary(dispatched=0, skipped=skipped)
