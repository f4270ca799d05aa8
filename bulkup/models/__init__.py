"""Data models for bulkup operations."""

from .events import (
    ErrorDetailEvent,
    ErrorEvent,
    StatusEvent,
    UnrecognizedEvent,
    parse_event,
)
from .package import PackageRecord, PackageState, PackageStatus

__all__ = [
    "ErrorDetailEvent",
    "ErrorEvent",
    "PackageRecord",
    "PackageState",
    "PackageStatus",
    "StatusEvent",
    "UnrecognizedEvent",
    "parse_event",
]
