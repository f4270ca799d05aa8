"""Concurrent upgrade tasks.

Every queued package gets one asyncio task. A task never touches the
registry: it reports progress only as status protocol lines on its own
``TaskOutput``, which the status updater reads from the control loop.
"""

import asyncio
import contextlib
import traceback
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from typing import Any, Protocol

from .client import UpgradeOutcome
from .constants import DOWNLOAD_MARKERS, ERROR_DETAIL_TAIL_LINES, INSTALL_MARKERS
from .exceptions import LaunchError
from .logger import get_logger
from .models import (
    ErrorDetailEvent,
    ErrorEvent,
    PackageRecord,
    PackageState,
    StatusEvent,
)
from .registry import PackageRegistry

logger = get_logger(__name__)


class UpgradeOperation(Protocol):
    """External operation upgrading a single package."""

    async def upgrade(
        self, package_id: str, on_line: Callable[[str], None]
    ) -> UpgradeOutcome: ...


class TaskOutput:
    """Append-only buffer of the protocol lines one task emitted.

    ``peek`` leaves the lines in place for later polls; ``drain`` hands them
    over once, when the task has finished.
    """

    def __init__(self) -> None:
        self._lines: list[str] = []

    def emit(self, line: str) -> None:
        self._lines.append(line)

    def peek(self) -> tuple[str, ...]:
        return tuple(self._lines)

    def drain(self) -> list[str]:
        lines, self._lines = self._lines, []
        return lines

    def __len__(self) -> int:
        return len(self._lines)


@dataclass(slots=True)
class TaskHandle:
    """A running or finished upgrade task."""

    package_id: str
    task: asyncio.Task[None]
    output: TaskOutput = field(default_factory=TaskOutput)


class _PhaseTracker:
    """Derives phase status lines from the tool's free-text output."""

    def __init__(self, package_id: str, output: TaskOutput) -> None:
        self.package_id = package_id
        self.output = output
        self.seen: set[PackageState] = set()

    def observe(self, line: str) -> None:
        if any(marker in line for marker in DOWNLOAD_MARKERS):
            self._enter(PackageState.DOWNLOADING)
        elif any(marker in line for marker in INSTALL_MARKERS):
            self._enter(PackageState.INSTALLING)

    def _enter(self, state: PackageState) -> None:
        if state not in self.seen:
            self.seen.add(state)
            self.output.emit(StatusEvent(state, self.package_id).to_line())


class UpgradeTaskRunner:
    """Starts one concurrent upgrade task per registry entry."""

    def __init__(
        self, operation: UpgradeOperation, max_concurrent: int = 0
    ) -> None:
        """Initialize the runner.

        Args:
            operation: External upgrade operation
            max_concurrent: Cap on simultaneously running upgrades, 0 for
                no cap

        """
        self.operation = operation
        self.max_concurrent = max_concurrent
        self._semaphore = (
            asyncio.Semaphore(max_concurrent) if max_concurrent > 0 else None
        )
        self.launch_failures: list[str] = []

    def launch_all(self, registry: PackageRegistry) -> dict[str, TaskHandle]:
        """Start a task for every entry of the registry.

        A package whose task cannot be created is removed from the registry;
        it counts as neither succeeded nor failed.

        Args:
            registry: Registry seeded with Queued entries

        Returns:
            Handles keyed by package id

        """
        handles: dict[str, TaskHandle] = {}
        for status in registry.statuses():
            try:
                handles[status.package_id] = self.launch(status.record)
            except LaunchError as e:
                registry.remove(status.package_id)
                self.launch_failures.append(status.package_id)
                logger.debug("Dropped %s from the run: %s", e.target, e)

        logger.debug(
            "Launched %d upgrade tasks (%d launch failures)",
            len(handles),
            len(self.launch_failures),
        )
        return handles

    def launch(self, record: PackageRecord) -> TaskHandle:
        """Start the upgrade task of one package.

        Args:
            record: Package to upgrade

        Returns:
            Handle of the started task

        Raises:
            LaunchError: If the task cannot be created

        """
        output = TaskOutput()
        coro = self._run(record, output)
        try:
            task = self._create_task(coro, name=f"upgrade:{record.id}")
        except RuntimeError as e:
            coro.close()
            raise LaunchError(f"Cannot start upgrade task: {e}", record.id) from e
        return TaskHandle(package_id=record.id, task=task, output=output)

    def _create_task(
        self, coro: Coroutine[Any, Any, None], name: str
    ) -> asyncio.Task[None]:
        return asyncio.create_task(coro, name=name)

    async def _run(self, record: PackageRecord, output: TaskOutput) -> None:
        slot = self._semaphore or contextlib.nullcontext()
        async with slot:
            output.emit(StatusEvent(PackageState.PROCESSING, record.id).to_line())
            tracker = _PhaseTracker(record.id, output)
            try:
                outcome = await self.operation.upgrade(record.id, tracker.observe)
            except OSError as e:
                _emit_failure(
                    output,
                    record.id,
                    f"Cannot run package manager: {e}",
                    traceback.format_exception(e),
                )
                return

        if outcome.success:
            output.emit(StatusEvent(PackageState.COMPLETED, record.id).to_line())
            return

        message = f"exit code {outcome.returncode}"
        if outcome.lines:
            message = f"{outcome.lines[-1]} ({message})"
        _emit_failure(
            output, record.id, message, outcome.lines[-ERROR_DETAIL_TAIL_LINES:]
        )

    async def cancel_all(self, handles: dict[str, TaskHandle]) -> None:
        """Cancel every unfinished task and wait for it to unwind.

        Args:
            handles: Handles of the tasks still tracked by the control loop

        """
        pending = [h.task for h in handles.values() if not h.task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        logger.debug("Abandoned %d in-flight upgrades", len(pending))


def _emit_failure(
    output: TaskOutput, package_id: str, message: str, detail: list[str]
) -> None:
    output.emit(StatusEvent(PackageState.FAILED, package_id).to_line())
    output.emit(ErrorEvent(package_id, message).to_line())
    for chunk in detail:
        for line in chunk.splitlines():
            if line.strip():
                output.emit(ErrorDetailEvent(package_id, line).to_line())
