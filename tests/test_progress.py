"""Tests for the live progress display."""

import io
import os

import pytest

from bulkup.models import PackageRecord, PackageState
from bulkup.progress import (
    CLEAR_LINE,
    ProgressRenderer,
    RenderAction,
    TerminalSurface,
)
from bulkup.registry import PackageRegistry


class SizedSurface(TerminalSurface):
    """Surface with a fixed terminal size."""

    def __init__(self, output, columns: int = 120, lines: int = 50) -> None:
        super().__init__(output, interactive=True)
        self.size = os.terminal_size((columns, lines))

    def terminal_size(self) -> os.terminal_size:
        return self.size


class BrokenStream(io.StringIO):
    """Stream whose writes always fail."""

    def write(self, text: str) -> int:
        raise OSError("terminal went away")


def _registry(*package_ids: str) -> PackageRegistry:
    records = [PackageRecord(i, i, "1.0", "2.0") for i in package_ids]
    return PackageRegistry.from_records(records, frozenset()).registry


class TestTerminalSurface:
    """Test cases for TerminalSurface."""

    def test_draw_reserves_and_rewrites_block(self) -> None:
        """Test that the first draw claims lines then overwrites them."""
        output = io.StringIO()
        surface = SizedSurface(output)

        surface.draw(["one", "two"])

        assert surface.height == 2
        assert output.getvalue() == (
            "\n\n\033[2A" + CLEAR_LINE + "one\n" + CLEAR_LINE + "two\n"
        )

    def test_partial_draw_only_touches_selected_rows(self) -> None:
        """Test that unselected rows are skipped with a plain newline."""
        output = io.StringIO()
        surface = SizedSurface(output)
        surface.draw(["one", "two", "three"])
        output.seek(0)
        output.truncate()

        surface.draw(["one", "TWO", "three"], rows={1})

        assert output.getvalue() == "\033[3A\n" + CLEAR_LINE + "TWO\n\n"

    def test_unreachable_rows_are_skipped(self) -> None:
        """Test that rows scrolled out of the terminal are not drawn."""
        output = io.StringIO()
        surface = SizedSurface(output, lines=3)

        surface.draw(["one", "two", "three", "four"])

        drawn = output.getvalue()
        assert "\033[2A" in drawn
        assert "one" not in drawn
        assert "two" not in drawn
        assert "three" in drawn
        assert "four" in drawn

    def test_long_lines_are_truncated(self) -> None:
        """Test that rows never wrap."""
        output = io.StringIO()
        surface = SizedSurface(output, columns=10)

        surface.draw(["x" * 40])

        assert CLEAR_LINE + "x" * 9 + "\n" in output.getvalue()

    def test_write_faults_are_suppressed(self) -> None:
        """Test that a failing stream does not raise."""
        surface = SizedSurface(BrokenStream())

        surface.draw(["one"])
        surface.write_line("two")

    def test_non_tty_is_not_interactive(self) -> None:
        """Test auto-detection on a plain stream."""
        assert not TerminalSurface(io.StringIO()).interactive


class TestProgressRenderer:
    """Test cases for ProgressRenderer."""

    def test_unchanged_state_does_not_redraw(self) -> None:
        """Test that polls without a state change take the cheap path."""
        registry = _registry("A.One", "B.Two")
        renderer = ProgressRenderer(SizedSurface(io.StringIO()))

        assert renderer.render(registry, 0, 2) is RenderAction.FULL
        # Nothing busy yet, so there is nothing to animate
        assert renderer.render(registry, 0, 2) is RenderAction.IDLE
        assert renderer.full_redraws == 1

    def test_state_change_triggers_full_redraw(self) -> None:
        """Test that a transition or a completed count change redraws."""
        registry = _registry("A.One", "B.Two")
        renderer = ProgressRenderer(SizedSurface(io.StringIO()))
        renderer.render(registry, 0, 2)

        registry["A.One"].advance(PackageState.DOWNLOADING)
        assert renderer.render(registry, 0, 2) is RenderAction.FULL

        registry["A.One"].advance(PackageState.COMPLETED)
        assert renderer.render(registry, 1, 2) is RenderAction.FULL
        assert renderer.full_redraws == 3

    def test_busy_packages_only_animate(self) -> None:
        """Test that spinners advance without a full redraw."""
        output = io.StringIO()
        registry = _registry("A.One", "B.Two")
        registry["A.One"].advance(PackageState.INSTALLING)
        renderer = ProgressRenderer(SizedSurface(output))
        renderer.render(registry, 0, 2)
        output.seek(0)
        output.truncate()

        assert renderer.render(registry, 0, 2) is RenderAction.ANIMATE
        assert renderer.render(registry, 0, 2) is RenderAction.ANIMATE

        assert renderer.full_redraws == 1
        assert renderer.animation_updates == 2
        assert renderer.frame == 2
        drawn = output.getvalue()
        assert "A.One" in drawn
        assert "B.Two" not in drawn

    def test_block_layout(self) -> None:
        """Test the rows of the block."""
        registry = _registry("A.One", "B.Two")
        registry["A.One"].advance(PackageState.DOWNLOADING)
        registry["B.Two"].advance(PackageState.COMPLETED)
        renderer = ProgressRenderer(SizedSurface(io.StringIO()), bar_width=10)

        lines = renderer.build_lines(registry, 1, 2)

        assert len(lines) == 6
        assert lines[0] == lines[3]
        assert lines[1].endswith("1.0 → 2.0  Downloading")
        assert lines[2].startswith(" ✓ B.Two")
        assert lines[4] == "[====>     ] 1/2  50%"
        assert lines[5] == "Downloading 1, Completed 1"

    def test_finish_draws_final_state_once(self) -> None:
        """Test that finish redraws only when something changed."""
        registry = _registry("A.One")
        renderer = ProgressRenderer(SizedSurface(io.StringIO()))
        renderer.render(registry, 0, 1)

        registry["A.One"].advance(PackageState.COMPLETED)
        renderer.finish(registry, 1, 1)
        renderer.finish(registry, 1, 1)

        assert renderer.full_redraws == 2

    def test_non_interactive_prints_transitions(self) -> None:
        """Test plain output when no terminal is attached."""
        output = io.StringIO()
        registry = _registry("A.One")
        renderer = ProgressRenderer(TerminalSurface(output, interactive=False))

        renderer.render(registry, 0, 1)
        registry["A.One"].advance(PackageState.DOWNLOADING)
        renderer.render(registry, 0, 1)
        assert renderer.render(registry, 0, 1) is RenderAction.IDLE
        registry["A.One"].advance(PackageState.COMPLETED)
        renderer.render(registry, 1, 1)

        lines = output.getvalue().splitlines()
        assert len(lines) == 3
        assert lines[0] == "· A.One: Queued"
        assert lines[1].endswith(" A.One: Downloading")
        assert lines[2] == "✓ A.One: Completed"
        assert "\033[" not in output.getvalue()

    @pytest.mark.parametrize("total", [0, 3])
    def test_summary_line_skips_empty_states(self, total: int) -> None:
        """Test that states nobody is in are omitted."""
        registry = _registry(*[f"P.{i}" for i in range(total)])

        expected = f"Queued {total}" if total else ""
        assert ProgressRenderer.summary_line(registry) == expected
