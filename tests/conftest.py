"""Pytest configuration and fixtures for bulkup tests."""

import asyncio
import logging
from collections.abc import Callable

import pytest

from bulkup.client import UpgradeOutcome

STANDARD_REPORT = """\
Name                 Id                  Version   Available  Source
----------------------------------------------------------------------
Vendor App           Vendor.App          1.0       2.0        winget
Other Tool           Other.Tool          3.1.4     3.2.0      winget
2 upgrades available.
"""

TWO_SECTION_REPORT = """\
Name        Id            Version  Available  Source
----------------------------------------------------
Vendor App  Vendor.App    1.0      2.0        winget
1 upgrades available.

The following packages have an upgrade available, but require explicit targeting for upgrade:
Name         Id             Version  Available  Source
------------------------------------------------------
Pinned Tool  Pinned.Tool    4.0      4.1        winget
"""


@pytest.fixture(autouse=True)
def enable_log_propagation():
    """Enable log propagation for all loggers during tests.

    This allows pytest's caplog fixture to capture logs from all loggers.
    """
    original_propagation = {}
    for name in list(logging.Logger.manager.loggerDict.keys()):
        if name.startswith("bulkup"):
            logger = logging.getLogger(name)
            original_propagation[name] = logger.propagate
            logger.propagate = True

    yield

    for name, propagate_value in original_propagation.items():
        logger = logging.getLogger(name)
        logger.propagate = propagate_value


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path, monkeypatch):
    """Point the configuration directory at a temporary path."""
    config_dir = tmp_path / "config"
    monkeypatch.setenv("BULKUP_CONFIG_DIR", str(config_dir))
    return config_dir


class FakeOperation:
    """Stand-in for the external tool with scripted output per package."""

    def __init__(
        self,
        scripts: dict[str, tuple[list[str], int]] | None = None,
        errors: dict[str, BaseException] | None = None,
    ) -> None:
        self.scripts = scripts or {}
        self.errors = errors or {}
        self.calls: list[str] = []
        self.running = 0
        self.peak_running = 0

    async def upgrade(
        self, package_id: str, on_line: Callable[[str], None]
    ) -> UpgradeOutcome:
        self.calls.append(package_id)
        self.running += 1
        self.peak_running = max(self.peak_running, self.running)
        try:
            await asyncio.sleep(0)
            if package_id in self.errors:
                raise self.errors[package_id]
            lines, returncode = self.scripts.get(package_id, ([], 0))
            for line in lines:
                on_line(line)
                await asyncio.sleep(0)
            return UpgradeOutcome(returncode, list(lines))
        finally:
            self.running -= 1


@pytest.fixture
def standard_report() -> str:
    return STANDARD_REPORT


@pytest.fixture
def two_section_report() -> str:
    return TWO_SECTION_REPORT
