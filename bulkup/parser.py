"""Parser for the external tool's tabular upgrade report.

The report holds a standard section and, optionally, a second section of
packages that "require explicit targeting". Each section starts with a
header line whose column labels give the character offsets of every data
line below it:

    Name            Id                 Version   Available  Source
    -----------------------------------------------------------------
    Vendor App      Vendor.App         1.0       2.0        winget
    1 upgrades available.

When the header offsets cannot be computed, fields are split on runs of two
or more whitespace characters instead.
"""

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from .constants import (
    COLUMN_AVAILABLE,
    COLUMN_ID,
    COLUMN_NAME,
    COLUMN_SOURCE,
    COLUMN_VERSION,
    DIVIDER_CHAR,
    EXPLICIT_TARGETING_PATTERN,
    FIELD_DELIMITER_PATTERN,
    FOOTER_PATTERN,
    MALFORMED_MARKER,
)
from .logger import get_logger
from .models import PackageRecord

logger = get_logger(__name__)

_FOOTER_RE = re.compile(FOOTER_PATTERN, re.IGNORECASE)
_EXPLICIT_RE = re.compile(EXPLICIT_TARGETING_PATTERN, re.IGNORECASE)
_DELIMITER_RE = re.compile(FIELD_DELIMITER_PATTERN)
_HEADER_RE = re.compile(rf"^\s*{COLUMN_NAME}\b")


def _label_offset(header: str, label: str) -> int:
    match = re.search(rf"\b{label}\b", header)
    return match.start() if match else -1


def is_truncated(line: str) -> bool:
    """Check if the tool rendered a truncated cell on this line."""
    return MALFORMED_MARKER in line


@dataclass(frozen=True, slots=True)
class ColumnLayout:
    """Character offsets of the report columns."""

    id: int
    version: int
    available: int
    source: int | None = None

    @classmethod
    def from_header(cls, header: str) -> "ColumnLayout | None":
        """Derive column offsets from a header line.

        Args:
            header: Header line beginning with the Name label

        Returns:
            Layout, or None if the expected labels are missing or unordered

        """
        id_start = _label_offset(header, COLUMN_ID)
        version_start = _label_offset(header, COLUMN_VERSION)
        available_start = _label_offset(header, COLUMN_AVAILABLE)
        if not 0 < id_start < version_start < available_start:
            return None

        source_start = _label_offset(header, COLUMN_SOURCE)
        return cls(
            id=id_start,
            version=version_start,
            available=available_start,
            source=source_start if source_start > available_start else None,
        )

    def split(self, line: str) -> tuple[str, str, str, str] | None:
        """Cut a data line into its fields.

        Args:
            line: Data line of the section this layout belongs to

        Returns:
            (name, id, version, available), or None for a truncated line

        """
        if len(line) < self.available + 1:
            return None

        name = line[: self.id].strip()
        package_id = line[self.id : self.version].rstrip()
        current = line[self.version : self.available].rstrip()
        available = line[self.available : self.source].rstrip()
        return name, package_id, current, available


def split_delimited(line: str) -> tuple[str, str, str, str] | None:
    """Split a data line on runs of two or more whitespace characters.

    Args:
        line: Data line

    Returns:
        (name, id, version, available), or None if the line does not hold
        four or five fields

    """
    fields = _DELIMITER_RE.split(line.strip())
    if not 4 <= len(fields) <= 5:
        return None
    name, package_id, current, available = fields[:4]
    return name, package_id, current, available


class OutputParser:
    """Turns the tool's textual report into package records.

    Line indices recognized as malformed during the last ``parse`` call are
    kept in ``malformed_lines``; pass them back to skip them on a later pass
    over the same report.
    """

    def __init__(
        self, is_malformed: Callable[[str], bool] = is_truncated
    ) -> None:
        """Initialize the parser.

        Args:
            is_malformed: Predicate flagging lines that must not be parsed

        """
        self.is_malformed = is_malformed
        self.malformed_lines: set[int] = set()
        self.diagnostics: list[str] = []

    def parse(
        self,
        report: str | Sequence[str],
        malformed: set[int] | None = None,
    ) -> list[PackageRecord]:
        """Parse every section of a report.

        Args:
            report: Raw report text or its lines
            malformed: Line indices of this report already known to be
                malformed

        Returns:
            Records in order of appearance, standard section first; an
            empty list when no header is found

        """
        self.malformed_lines = set(malformed or ())
        self.diagnostics = []

        lines = _clean_lines(report)
        marker = _find_explicit_marker(lines)

        records = self._parse_section(lines, 0, marker)
        if marker is not None:
            records.extend(self._parse_section(lines, marker + 1, None))

        self._flag_duplicates(records)
        logger.debug("Parsed %d package records", len(records))
        return records

    def _parse_section(
        self, lines: list[str], start: int, end: int | None
    ) -> list[PackageRecord]:
        stop = len(lines) if end is None else end
        header_index = _find_header(lines, start, stop)
        if header_index is None:
            return []

        header = lines[header_index]
        layout = ColumnLayout.from_header(header)
        if layout is None:
            logger.debug(
                "Header on line %d has no usable column offsets, "
                "splitting fields on whitespace",
                header_index,
            )

        records: list[PackageRecord] = []
        for index in range(header_index + 1, stop):
            line = lines[index]
            if _FOOTER_RE.match(line) or _is_header(line):
                break
            if index in self.malformed_lines:
                continue
            if self.is_malformed(line):
                self._flag_malformed(index, line)
                continue
            if not line.strip() or line.startswith(DIVIDER_CHAR):
                continue

            record = self._parse_line(line, layout)
            if record is None:
                logger.debug("Skipping unparsable line %d: %r", index, line)
                continue
            records.append(record)

        return records

    def _parse_line(
        self, line: str, layout: ColumnLayout | None
    ) -> PackageRecord | None:
        fields = layout.split(line) if layout else split_delimited(line)
        if fields is None:
            return None

        name, package_id, current, available = fields
        if not package_id or not current or not available:
            return None
        if " " in package_id:
            # Ragged row: the name overflowed into the id column
            return None

        record = PackageRecord(
            name=name or package_id,
            id=package_id,
            current_version=current,
            available_version=available,
        )
        if not record.is_version_increase:
            logger.debug(
                "%s reports available version %s not newer than %s",
                record.id,
                record.available_version,
                record.current_version,
            )
        return record

    def _flag_malformed(self, index: int, line: str) -> None:
        self.malformed_lines.add(index)
        diagnostic = f"Line {index} is truncated and was skipped: {line.strip()}"
        self.diagnostics.append(diagnostic)
        logger.warning(diagnostic)

    def _flag_duplicates(self, records: list[PackageRecord]) -> None:
        seen: set[str] = set()
        for record in records:
            if record.id in seen:
                logger.debug("Package id %s appears more than once", record.id)
            seen.add(record.id)


def _clean_lines(report: str | Sequence[str]) -> list[str]:
    raw = report.split("\n") if isinstance(report, str) else list(report)
    # The tool redraws its spinner with carriage returns
    return [line.rsplit("\r", 1)[-1].rstrip("\n") for line in raw]


def _find_explicit_marker(lines: list[str]) -> int | None:
    for index, line in enumerate(lines):
        if _EXPLICIT_RE.search(line):
            return index
    return None


def _is_header(line: str) -> bool:
    return bool(_HEADER_RE.match(line)) and _label_offset(line, COLUMN_ID) > 0


def _find_header(lines: list[str], start: int, stop: int) -> int | None:
    for index in range(start, stop):
        if _is_header(lines[index]):
            return index
    return None


def format_report(records: Sequence[PackageRecord]) -> str:
    """Render records in the tool's fixed-column report format.

    Parsing the result yields the same records.

    Args:
        records: Records to render

    Returns:
        Report text with header, divider, one row per record and footer

    """
    labels = (COLUMN_NAME, COLUMN_ID, COLUMN_VERSION, COLUMN_AVAILABLE)
    rows = [
        (r.name, r.id, r.current_version, r.available_version) for r in records
    ]
    widths = [
        max([len(label)] + [len(row[col]) for row in rows]) + 1
        for col, label in enumerate(labels)
    ]

    def render(cells: Sequence[str]) -> str:
        padded = [cell.ljust(width) for cell, width in zip(cells, widths)]
        return " ".join(padded).rstrip()

    header = render(labels)
    lines = [header, DIVIDER_CHAR * len(header)]
    lines.extend(render(row) for row in rows)
    noun = "upgrade" if len(records) == 1 else "upgrades"
    lines.append(f"{len(records)} {noun} available.")
    return "\n".join(lines) + "\n"
