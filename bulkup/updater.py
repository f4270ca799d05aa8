"""Status updater driving the per-package state machine.

Runs on the control loop. While a task is running its output is only
peeked, so no line is lost; once the task is done the output is drained
exactly once and the package is moved to a terminal state.
"""

import asyncio
import traceback
from collections.abc import Callable, Iterable
from datetime import datetime

from .logger import get_logger
from .models import (
    ErrorDetailEvent,
    ErrorEvent,
    PackageState,
    PackageStatus,
    StatusEvent,
    UnrecognizedEvent,
    parse_event,
)
from .registry import PackageRegistry
from .runner import TaskHandle

logger = get_logger(__name__)


class StatusUpdater:
    """Single writer of the registry."""

    def __init__(
        self,
        registry: PackageRegistry,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize the updater.

        Args:
            registry: Registry whose entries this updater owns
            clock: Source of transition timestamps

        """
        self.registry = registry
        self.clock = clock

    def poll(self, handles: dict[str, TaskHandle]) -> list[str]:
        """Advance every tracked package from its task's output.

        Args:
            handles: Tasks still tracked by the control loop

        Returns:
            Ids of packages whose task finished during this poll

        """
        finished: list[str] = []
        for package_id, handle in handles.items():
            status = self.registry.get(package_id)
            if status is None:
                continue

            if handle.task.done():
                self._finalize(status, handle)
                finished.append(package_id)
            else:
                self._advance(status, handle.output.peek())

        return finished

    def _advance(self, status: PackageStatus, lines: Iterable[str]) -> None:
        latest = _latest_state(status.package_id, lines)
        # Terminal states are only applied once the task is done
        if latest is not None and not latest.is_terminal:
            status.advance(latest, self.clock())

    def _finalize(self, status: PackageStatus, handle: TaskHandle) -> None:
        package_id = status.package_id
        lines = handle.output.drain()
        now = self.clock()

        message: str | None = None
        detail: list[str] = []
        last_state: PackageState | None = None
        for line in lines:
            event = parse_event(line)
            if isinstance(event, StatusEvent):
                if event.package_id == package_id:
                    last_state = event.state
                    if not event.state.is_terminal:
                        status.advance(event.state, now)
            elif isinstance(event, ErrorEvent):
                if event.package_id == package_id:
                    message = event.message
            elif isinstance(event, ErrorDetailEvent):
                if event.package_id == package_id:
                    detail.append(event.text)
            elif isinstance(event, UnrecognizedEvent):
                logger.debug("Unrecognized output from %s: %s", package_id, line)

        crash = _task_exception(handle.task)
        if last_state is PackageState.COMPLETED and crash is None:
            status.advance(PackageState.COMPLETED, now)
            logger.debug("%s upgraded", package_id)
            return

        if crash is not None:
            message = message or f"Upgrade task crashed: {crash!r}"
            if not detail:
                detail = "".join(traceback.format_exception(crash)).splitlines()
        elif handle.task.cancelled():
            message = message or "Upgrade was cancelled"
        elif message is None:
            phase = last_state.label if last_state else status.state.label
            message = f"Upgrade ended without completing (last phase: {phase})"

        status.fail(message, "\n".join(detail) or None, now)
        logger.debug("%s failed: %s", package_id, message)


def _latest_state(package_id: str, lines: Iterable[str]) -> PackageState | None:
    for line in reversed(tuple(lines)):
        event = parse_event(line)
        if isinstance(event, StatusEvent) and event.package_id == package_id:
            return event.state
    return None


def _task_exception(task: asyncio.Task[None]) -> BaseException | None:
    if task.cancelled():
        return None
    return task.exception()
