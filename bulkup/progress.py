"""Live progress display with ASCII rendering.

The display is a fixed-height block of lines:

    ────────────────────────────
     ⠹ Vendor App   Vendor.App   1.0 → 2.0   Downloading
     ✓ Other Tool   Other.Tool   3.1 → 3.2   Completed
    ────────────────────────────
    [===============>              ]  1/2  50%
    Downloading 1, Completed 1

The block is redrawn in place with relative cursor movement. A full redraw
only happens when the (id, state) pairs or the completed count change;
otherwise only the spinner glyphs of busy packages are rewritten.
"""

import os
import shutil
import sys
from enum import Enum, auto
from typing import TextIO

from .constants import (
    DEFAULT_BAR_WIDTH,
    MAX_ID_WIDTH,
    MAX_NAME_WIDTH,
    SEPARATOR_CHAR,
    SEPARATOR_WIDTH,
)
from .models import PackageState, PackageStatus
from .registry import PackageRegistry
from .utils.progress_utils import format_percentage, render_bar, truncate_text

CURSOR_UP = "\033[{count}A"
CLEAR_LINE = "\r\033[2K"


class TerminalSurface:
    """A fixed-origin rectangle of terminal lines.

    The origin is the first line reserved by ``reserve``; the cursor rests on
    the line right after the block between draws. Lines that scrolled out of
    the terminal's reach are silently skipped.
    """

    def __init__(
        self,
        output: TextIO | None = None,
        interactive: bool | None = None,
    ) -> None:
        """Initialize the surface.

        Args:
            output: Output stream (defaults to sys.stdout)
            interactive: Whether to use cursor control (auto-detected from
                TTY if None)

        """
        self.output = output or sys.stdout
        if interactive is not None:
            self.interactive = bool(interactive)
        else:
            try:
                is_tty = bool(getattr(self.output, "isatty", lambda: False)())
            except (OSError, ValueError):
                is_tty = False
            self.interactive = is_tty and os.environ.get("TERM", "") != "dumb"
        self.height = 0

    def terminal_size(self) -> os.terminal_size:
        return shutil.get_terminal_size(fallback=(80, 24))

    def reserve(self, count: int) -> None:
        """Claim ``count`` blank lines below the cursor as the block."""
        if count > self.height:
            self._write("\n" * (count - self.height))
            self.height = count

    def draw(self, lines: list[str], rows: set[int] | None = None) -> None:
        """Overwrite block lines in place.

        Args:
            lines: Full content of the block, one entry per row
            rows: Rows to rewrite; every row when None

        """
        self.reserve(len(lines))
        size = self.terminal_size()
        # The line holding the cursor is not part of the block
        reachable = min(self.height, size.lines - 1)
        if reachable <= 0:
            return

        width = max(size.columns - 1, 1)
        parts = [CURSOR_UP.format(count=reachable)]
        for row in range(self.height - reachable, self.height):
            if rows is None or row in rows:
                text = lines[row] if row < len(lines) else ""
                parts.append(CLEAR_LINE + truncate_text(text, width, ""))
            parts.append("\n")
        self._write("".join(parts))

    def write_line(self, text: str) -> None:
        """Append a plain line below the block (non-interactive output)."""
        self._write(text + "\n")

    def _write(self, text: str) -> None:
        # Display is best-effort; a broken terminal must not stop upgrades
        try:
            self.output.write(text)
            self.output.flush()
        except (OSError, ValueError):
            pass


class RenderAction(Enum):
    """What a render call did."""

    FULL = auto()
    ANIMATE = auto()
    IDLE = auto()


class ProgressRenderer:
    """Draws the registry state, redrawing only on change."""

    def __init__(
        self,
        surface: TerminalSurface | None = None,
        bar_width: int = DEFAULT_BAR_WIDTH,
    ) -> None:
        """Initialize the renderer.

        Args:
            surface: Terminal block to draw into
            bar_width: Width of the progress bar in characters

        """
        self.surface = surface or TerminalSurface()
        self.bar_width = bar_width
        self.frame = 0
        self.fingerprint: tuple[object, ...] | None = None
        self.full_redraws = 0
        self.animation_updates = 0
        self._lines: list[str] = []
        self._rows: dict[str, int] = {}
        self._widths = (0, 0)
        self._reported: dict[str, PackageState] = {}

    @staticmethod
    def state_key(
        registry: PackageRegistry, completed: int, total: int
    ) -> tuple[object, ...]:
        """Summarize the state a full redraw depends on."""
        return (registry.snapshot(), completed, total)

    def render(
        self, registry: PackageRegistry, completed: int, total: int
    ) -> RenderAction:
        """Redraw the block if the aggregate state changed.

        Args:
            registry: Registry to display
            completed: Number of finished packages
            total: Number of dispatched packages

        Returns:
            The path taken: full redraw, spinner-only update, or nothing

        """
        key = self.state_key(registry, completed, total)
        if key != self._last_key():
            self.fingerprint = (*key, self.frame)
            self._redraw(registry, completed, total)
            return RenderAction.FULL

        busy = [s for s in registry.statuses() if s.state.is_busy]
        if not busy or not self.surface.interactive:
            return RenderAction.IDLE

        self.frame += 1
        self.fingerprint = (*key, self.frame)
        self._animate(busy)
        return RenderAction.ANIMATE

    def finish(
        self, registry: PackageRegistry, completed: int, total: int
    ) -> None:
        """Draw the final state of the run."""
        if self.state_key(registry, completed, total) != self._last_key():
            self.render(registry, completed, total)

    def _last_key(self) -> tuple[object, ...] | None:
        return self.fingerprint[:-1] if self.fingerprint else None

    def build_lines(
        self, registry: PackageRegistry, completed: int, total: int
    ) -> list[str]:
        """Build the full block for the current state.

        Args:
            registry: Registry to display
            completed: Number of finished packages
            total: Number of dispatched packages

        Returns:
            Block lines: separator, packages, separator, bar, state summary

        """
        statuses = registry.statuses()
        name_width = max((len(s.record.name) for s in statuses), default=0)
        id_width = max((len(s.package_id) for s in statuses), default=0)
        self._widths = (
            min(name_width, MAX_NAME_WIDTH),
            min(id_width, MAX_ID_WIDTH),
        )
        self._rows = {}

        separator = SEPARATOR_CHAR * SEPARATOR_WIDTH
        lines = [separator]
        for status in statuses:
            self._rows[status.package_id] = len(lines)
            lines.append(self.package_line(status))
        lines.append(separator)

        bar = render_bar(completed, total, self.bar_width)
        percent = format_percentage(completed, total)
        lines.append(f"{bar} {completed}/{total} {percent}")
        lines.append(self.summary_line(registry))
        return lines

    def package_line(self, status: PackageStatus) -> str:
        """Format the row of one package at the current frame."""
        name_width, id_width = self._widths
        record = status.record
        name = truncate_text(record.name, name_width).ljust(name_width)
        package_id = truncate_text(record.id, id_width).ljust(id_width)
        versions = f"{record.current_version} → {record.available_version}"
        return (
            f" {status.icon_at(self.frame)} {name}  {package_id}  "
            f"{versions}  {status.state.label}"
        )

    @staticmethod
    def summary_line(registry: PackageRegistry) -> str:
        """Format the per-state counts, e.g. "Downloading 2, Completed 3"."""
        counts = registry.count_by_state()
        return ", ".join(
            f"{state.label} {counts[state]}"
            for state in PackageState
            if counts.get(state)
        )

    def _redraw(
        self, registry: PackageRegistry, completed: int, total: int
    ) -> None:
        self.full_redraws += 1
        self._lines = self.build_lines(registry, completed, total)
        if self.surface.interactive:
            self.surface.draw(self._lines)
        else:
            self._report_transitions(registry)

    def _animate(self, busy: list[PackageStatus]) -> None:
        self.animation_updates += 1
        rows: set[int] = set()
        for status in busy:
            row = self._rows.get(status.package_id)
            if row is not None:
                self._lines[row] = self.package_line(status)
                rows.add(row)
        self.surface.draw(self._lines, rows)

    def _report_transitions(self, registry: PackageRegistry) -> None:
        for status in registry.statuses():
            if self._reported.get(status.package_id) is not status.state:
                self._reported[status.package_id] = status.state
                self.surface.write_line(
                    f"{status.icon} {status.package_id}: {status.state.label}"
                )
