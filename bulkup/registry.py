"""Registry of per-package upgrade status.

The registry is the single source of truth for the upgrade state machine.
Only the status updater writes to it; the renderer and the summary reporter
read it on the same control thread, so no locking is involved.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from .logger import get_logger
from .models import PackageRecord, PackageState, PackageStatus

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class FilterResult:
    """Outcome of seeding the registry from parsed records."""

    registry: "PackageRegistry"
    queued: int
    skipped: int
    skipped_ids: tuple[str, ...] = ()


class PackageRegistry:
    """Mapping from package id to its mutable upgrade status."""

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._entries: dict[str, PackageStatus] = {}

    @classmethod
    def from_records(
        cls, records: Iterable[PackageRecord], skip_set: frozenset[str]
    ) -> FilterResult:
        """Seed a registry with Queued entries for non-skipped records.

        A duplicate id replaces the earlier entry.

        Args:
            records: Parsed records in report order
            skip_set: Package ids excluded from the run

        Returns:
            Registry together with the queued and skipped counts

        """
        registry = cls()
        skipped: list[str] = []
        for record in records:
            if record.id in skip_set:
                skipped.append(record.id)
                continue
            if record.id in registry:
                logger.debug(
                    "Duplicate package id %s, keeping the last entry",
                    record.id,
                )
            registry.add(record)

        return FilterResult(
            registry=registry,
            queued=len(registry),
            skipped=len(skipped),
            skipped_ids=tuple(skipped),
        )

    def add(self, record: PackageRecord) -> PackageStatus:
        """Create a Queued entry for a record.

        Args:
            record: Package to track

        Returns:
            The new status entry

        """
        status = PackageStatus(record=record)
        self._entries[record.id] = status
        return status

    def remove(self, package_id: str) -> PackageStatus | None:
        """Drop an entry from the registry.

        Args:
            package_id: Package identifier

        Returns:
            The removed entry, or None if it was not registered

        """
        return self._entries.pop(package_id, None)

    def get(self, package_id: str) -> PackageStatus | None:
        """Look up the status of a package."""
        return self._entries.get(package_id)

    def __getitem__(self, package_id: str) -> PackageStatus:
        return self._entries[package_id]

    def __contains__(self, package_id: object) -> bool:
        return package_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def statuses(self) -> list[PackageStatus]:
        """Get all entries sorted by package id."""
        return [self._entries[key] for key in sorted(self._entries)]

    def snapshot(self) -> tuple[tuple[str, PackageState], ...]:
        """Get the ordered (id, state) pairs of all entries."""
        return tuple(
            (status.package_id, status.state) for status in self.statuses()
        )

    def count_by_state(self) -> dict[PackageState, int]:
        """Count entries per state, omitting states nobody is in."""
        counts: dict[PackageState, int] = {}
        for status in self._entries.values():
            counts[status.state] = counts.get(status.state, 0) + 1
        return counts

    @property
    def finished_count(self) -> int:
        """Number of entries in a terminal state."""
        return sum(1 for s in self._entries.values() if s.state.is_terminal)

    @property
    def is_quiescent(self) -> bool:
        """Check if every entry reached a terminal state."""
        return all(s.state.is_terminal for s in self._entries.values())

    def succeeded(self) -> list[PackageStatus]:
        """Get Completed entries sorted by package id."""
        return [
            s for s in self.statuses() if s.state is PackageState.COMPLETED
        ]

    def failed(self) -> list[PackageStatus]:
        """Get Failed entries sorted by package id."""
        return [s for s in self.statuses() if s.state is PackageState.FAILED]
