"""Tests for concurrent upgrade tasks."""

import asyncio
from unittest.mock import patch

import pytest

from bulkup.models import PackageRecord
from bulkup.registry import PackageRegistry
from bulkup.runner import TaskOutput, UpgradeTaskRunner

from .conftest import FakeOperation


def _registry(*package_ids: str) -> PackageRegistry:
    records = [PackageRecord(i, i, "1.0", "2.0") for i in package_ids]
    return PackageRegistry.from_records(records, frozenset()).registry


async def _wait(handles) -> None:
    await asyncio.gather(*(h.task for h in handles.values()), return_exceptions=True)


class TestTaskOutput:
    """Test cases for the per-task line buffer."""

    def test_peek_keeps_lines(self) -> None:
        """Test that peeking does not consume anything."""
        output = TaskOutput()
        output.emit("STATUS:Processing:A")

        assert output.peek() == ("STATUS:Processing:A",)
        assert output.peek() == ("STATUS:Processing:A",)
        assert len(output) == 1

    def test_drain_empties_buffer(self) -> None:
        """Test that draining hands over the lines once."""
        output = TaskOutput()
        output.emit("one")
        output.emit("two")

        assert output.drain() == ["one", "two"]
        assert output.drain() == []


class TestUpgradeTaskRunner:
    """Test cases for UpgradeTaskRunner."""

    @pytest.mark.asyncio
    async def test_successful_upgrade_lines(self) -> None:
        """Test the protocol lines of a successful upgrade."""
        operation = FakeOperation(
            {
                "A.One": (
                    [
                        "Found A [A.One] Version 2.0",
                        "Downloading https://example.com/a.msi",
                        "Successfully verified installer hash",
                        "Starting package install...",
                        "Successfully installed",
                    ],
                    0,
                )
            }
        )
        runner = UpgradeTaskRunner(operation)

        handles = runner.launch_all(_registry("A.One"))
        await _wait(handles)

        assert handles["A.One"].output.peek() == (
            "STATUS:Processing:A.One",
            "STATUS:Downloading:A.One",
            "STATUS:Installing:A.One",
            "STATUS:Completed:A.One",
        )

    @pytest.mark.asyncio
    async def test_failed_upgrade_reports_last_line(self) -> None:
        """Test that a non-zero exit becomes an ERROR line with details."""
        lines = ["Downloading https://example.com/a.msi", "Installer hash mismatch"]
        runner = UpgradeTaskRunner(FakeOperation({"A.One": (lines, 5)}))

        handles = runner.launch_all(_registry("A.One"))
        await _wait(handles)

        output = handles["A.One"].output.peek()
        assert output[:3] == (
            "STATUS:Processing:A.One",
            "STATUS:Downloading:A.One",
            "STATUS:Failed:A.One",
        )
        assert output[3] == "ERROR:A.One:Installer hash mismatch (exit code 5)"
        assert output[4:] == (
            "ERRORDETAIL:A.One:Downloading https://example.com/a.msi",
            "ERRORDETAIL:A.One:Installer hash mismatch",
        )

    @pytest.mark.asyncio
    async def test_failure_without_output(self) -> None:
        """Test the message when the tool printed nothing."""
        runner = UpgradeTaskRunner(FakeOperation({"A.One": ([], 1)}))

        handles = runner.launch_all(_registry("A.One"))
        await _wait(handles)

        assert "ERROR:A.One:exit code 1" in handles["A.One"].output.peek()

    @pytest.mark.asyncio
    async def test_tool_cannot_start(self) -> None:
        """Test that an OSError becomes a failure with a traceback."""
        operation = FakeOperation(errors={"A.One": FileNotFoundError("winget")})
        runner = UpgradeTaskRunner(operation)

        handles = runner.launch_all(_registry("A.One"))
        await _wait(handles)

        output = handles["A.One"].output.peek()
        assert "STATUS:Failed:A.One" in output
        assert any(
            line.startswith("ERROR:A.One:Cannot run package manager")
            for line in output
        )
        assert any(line.startswith("ERRORDETAIL:A.One:") for line in output)
        assert handles["A.One"].task.exception() is None

    @pytest.mark.asyncio
    async def test_unexpected_exception_escapes_task(self) -> None:
        """Test that other exceptions end the task with that exception."""
        operation = FakeOperation(errors={"A.One": ValueError("bad")})
        runner = UpgradeTaskRunner(operation)

        handles = runner.launch_all(_registry("A.One"))
        await _wait(handles)

        assert isinstance(handles["A.One"].task.exception(), ValueError)

    @pytest.mark.asyncio
    async def test_all_tasks_run_concurrently(self) -> None:
        """Test that without a cap every upgrade overlaps."""
        operation = FakeOperation({i: (["x", "y"], 0) for i in "ABCD"})
        runner = UpgradeTaskRunner(operation)

        handles = runner.launch_all(_registry(*"ABCD"))
        await _wait(handles)

        assert sorted(operation.calls) == list("ABCD")
        assert operation.peak_running == 4

    @pytest.mark.asyncio
    async def test_concurrency_cap(self) -> None:
        """Test that max_concurrent bounds simultaneous upgrades."""
        operation = FakeOperation({i: (["x", "y"], 0) for i in "ABCD"})
        runner = UpgradeTaskRunner(operation, max_concurrent=2)

        handles = runner.launch_all(_registry(*"ABCD"))
        await _wait(handles)

        assert len(operation.calls) == 4
        assert operation.peak_running == 2

    @pytest.mark.asyncio
    async def test_launch_failure_removes_package(self) -> None:
        """Test that a package whose task cannot start leaves the registry."""
        registry = _registry("A.One", "B.Two")
        runner = UpgradeTaskRunner(FakeOperation())
        original = runner._create_task

        def create_task(coro, name):
            if name.endswith("B.Two"):
                raise RuntimeError("no running event loop")
            return original(coro, name)

        with patch.object(runner, "_create_task", side_effect=create_task):
            handles = runner.launch_all(registry)
        await _wait(handles)

        assert list(handles) == ["A.One"]
        assert "B.Two" not in registry
        assert runner.launch_failures == ["B.Two"]

    @pytest.mark.asyncio
    async def test_cancel_all(self) -> None:
        """Test that in-flight tasks are cancelled and awaited."""
        started = asyncio.Event()

        class BlockingOperation:
            async def upgrade(self, package_id, on_line):
                started.set()
                await asyncio.sleep(3600)

        runner = UpgradeTaskRunner(BlockingOperation())
        handles = runner.launch_all(_registry("A.One"))
        await started.wait()

        await runner.cancel_all(handles)

        assert handles["A.One"].task.cancelled()
        assert handles["A.One"].output.peek() == ("STATUS:Processing:A.One",)
