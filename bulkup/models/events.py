"""Typed events of the line-oriented task status protocol.

Upgrade tasks report progress as one line per event:

    STATUS:<Phase>:<id>
    ERROR:<id>:<message>
    ERRORDETAIL:<id>:<text>

Lines are parsed into event variants at the boundary; nothing past
``parse_event`` looks at raw protocol text.
"""

from dataclasses import dataclass

from ..constants import (
    ERROR_DETAIL_PREFIX,
    ERROR_PREFIX,
    PROTOCOL_SEPARATOR,
    STATUS_PREFIX,
)
from .package import PackageState


@dataclass(frozen=True, slots=True)
class StatusEvent:
    """Phase change reported for a package."""

    state: PackageState
    package_id: str

    def to_line(self) -> str:
        """Serialize the event to a protocol line."""
        return PROTOCOL_SEPARATOR.join(
            (STATUS_PREFIX, self.state.label, self.package_id)
        )


@dataclass(frozen=True, slots=True)
class ErrorEvent:
    """Failure message reported for a package."""

    package_id: str
    message: str

    def to_line(self) -> str:
        """Serialize the event to a protocol line."""
        return PROTOCOL_SEPARATOR.join(
            (ERROR_PREFIX, self.package_id, self.message)
        )


@dataclass(frozen=True, slots=True)
class ErrorDetailEvent:
    """One line of diagnostic detail reported for a package."""

    package_id: str
    text: str

    def to_line(self) -> str:
        """Serialize the event to a protocol line."""
        return PROTOCOL_SEPARATOR.join(
            (ERROR_DETAIL_PREFIX, self.package_id, self.text)
        )


@dataclass(frozen=True, slots=True)
class UnrecognizedEvent:
    """Line that does not follow the status protocol."""

    line: str


Event = StatusEvent | ErrorEvent | ErrorDetailEvent | UnrecognizedEvent


def parse_event(line: str) -> Event:
    """Parse one protocol line into an event.

    Args:
        line: Raw line emitted by an upgrade task

    Returns:
        Parsed event; UnrecognizedEvent for anything off-protocol

    """
    parts = line.rstrip("\r\n").split(PROTOCOL_SEPARATOR, 2)
    if len(parts) != 3:
        return UnrecognizedEvent(line)

    prefix, first, rest = parts
    if prefix == STATUS_PREFIX:
        state = PackageState.from_label(first)
        if state is None or not rest:
            return UnrecognizedEvent(line)
        return StatusEvent(state, rest)
    if not first:
        return UnrecognizedEvent(line)
    if prefix == ERROR_PREFIX:
        return ErrorEvent(first, rest)
    if prefix == ERROR_DETAIL_PREFIX:
        return ErrorDetailEvent(first, rest)
    return UnrecognizedEvent(line)
