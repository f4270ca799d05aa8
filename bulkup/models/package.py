"""Package records and per-package upgrade state."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from packaging.version import InvalidVersion, Version

from ..constants import (
    ICON_COMPLETED,
    ICON_FAILED,
    ICON_QUEUED,
    SPINNER_FRAMES,
)


@dataclass(frozen=True, slots=True)
class PackageRecord:
    """One upgradeable package as reported by the external tool."""

    name: str
    id: str
    current_version: str
    available_version: str

    @property
    def is_version_increase(self) -> bool:
        """Check whether the available version is newer than the current one.

        Falls back to a plain string comparison when either side is not a
        PEP 440 version (the tool reports vendor formats and "Unknown").

        """
        try:
            return Version(self.available_version) > Version(
                self.current_version
            )
        except InvalidVersion:
            return self.available_version != self.current_version


class PackageState(Enum):
    """Lifecycle states of one package upgrade."""

    QUEUED = ("Queued", 0)
    PROCESSING = ("Processing", 1)
    DOWNLOADING = ("Downloading", 2)
    INSTALLING = ("Installing", 3)
    COMPLETED = ("Completed", 4)
    FAILED = ("Failed", 4)

    def __init__(self, label: str, rank: int) -> None:
        self.label = label
        self.rank = rank

    @classmethod
    def from_label(cls, label: str) -> "PackageState | None":
        """Look up a state by its protocol label.

        Args:
            label: Phase name as written in a status line

        Returns:
            Matching state, or None for an unknown label

        """
        for state in cls:
            if state.label == label:
                return state
        return None

    @property
    def is_terminal(self) -> bool:
        """Check if no further transition can leave this state."""
        return self in (PackageState.COMPLETED, PackageState.FAILED)

    @property
    def is_busy(self) -> bool:
        """Check if the state shows an animated spinner."""
        return self in (
            PackageState.PROCESSING,
            PackageState.DOWNLOADING,
            PackageState.INSTALLING,
        )


@dataclass(slots=True)
class PackageStatus:
    """Mutable upgrade status of one registry entry."""

    record: PackageRecord
    state: PackageState = PackageState.QUEUED
    error_message: str | None = None
    error_detail: str | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    history: list[PackageState] = field(
        default_factory=lambda: [PackageState.QUEUED]
    )

    @property
    def package_id(self) -> str:
        """Get the identifier of the package."""
        return self.record.id

    @property
    def icon(self) -> str:
        """Get the icon of the current state at the first spinner frame."""
        return self.icon_at(0)

    def icon_at(self, frame: int) -> str:
        """Get the icon of the current state at an animation frame.

        Args:
            frame: Animation frame index

        Returns:
            Single glyph for the state

        """
        if self.state is PackageState.COMPLETED:
            return ICON_COMPLETED
        if self.state is PackageState.FAILED:
            return ICON_FAILED
        if self.state.is_busy:
            return SPINNER_FRAMES[frame % len(SPINNER_FRAMES)]
        return ICON_QUEUED

    def advance(self, state: PackageState, now: datetime | None = None) -> bool:
        """Move forward to a later state.

        Backward moves, repeats and moves out of a terminal state are
        ignored.

        Args:
            state: Target state
            now: Transition time (defaults to the current time)

        Returns:
            True if the state changed

        """
        if self.state.is_terminal or state.rank <= self.state.rank:
            return False

        now = now or datetime.now()
        if self.started_at is None:
            self.started_at = now
        if state.is_terminal:
            self.finished_at = now

        self.state = state
        self.history.append(state)
        return True

    def fail(
        self,
        message: str,
        detail: str | None = None,
        now: datetime | None = None,
    ) -> bool:
        """Move to the Failed state and record the diagnostics.

        Args:
            message: Short failure message
            detail: Optional diagnostic text
            now: Transition time (defaults to the current time)

        Returns:
            True if the state changed

        """
        if not self.advance(PackageState.FAILED, now):
            return False
        self.error_message = message
        self.error_detail = detail
        return True

    @property
    def duration(self) -> float | None:
        """Get the seconds spent between start and finish, if both known."""
        if self.started_at is None or self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()
