"""Client for the external package-manager command-line tool.

The tool is an opaque collaborator: bulkup asks it for the upgrade report
and to upgrade one package at a time, and only looks at its text output
and exit code.
"""

import asyncio
import codecs
import contextlib
import re
from collections.abc import Callable
from dataclasses import dataclass, field

from .config import build_upgrade_command
from .exceptions import CommandError
from .logger import get_logger

logger = get_logger(__name__)

ENCODING = "utf-8"
READ_CHUNK_SIZE = 4096

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")

# Glyphs of the progress spinner the tool draws on its own line
_SPINNER_NOISE = frozenset({"-", "\\", "|", "/"})


@dataclass(slots=True)
class UpgradeOutcome:
    """Result of one external upgrade operation."""

    returncode: int
    lines: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Check if the tool reported success."""
        return self.returncode == 0


class PackageManagerClient:
    """Runs the external tool through asyncio subprocesses."""

    def __init__(
        self, list_command: list[str], upgrade_command: list[str]
    ) -> None:
        """Initialize the client.

        Args:
            list_command: Argument vector printing the upgrade report
            upgrade_command: Argument vector template containing ``{id}``

        """
        self.list_command = list_command
        self.upgrade_command = upgrade_command

    async def fetch_report(self) -> str:
        """Run the list command and return its report.

        Returns:
            Decoded report text

        Raises:
            CommandError: If the tool cannot be started or prints nothing
                while failing

        """
        logger.debug("Fetching upgrade report: %s", " ".join(self.list_command))
        try:
            process = await asyncio.create_subprocess_exec(
                *self.list_command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise CommandError(
                f"Cannot run package manager: {e}", self.list_command[0]
            ) from e

        stdout, stderr = await process.communicate()
        report = stdout.decode(ENCODING, errors="replace")

        # The tool exits non-zero when nothing is upgradable; only a failure
        # without any report is an error.
        if process.returncode != 0 and not report.strip():
            message = stderr.decode(ENCODING, errors="replace").strip()
            raise CommandError(
                message or f"exit code {process.returncode}",
                self.list_command[0],
            )
        return report

    async def upgrade(
        self, package_id: str, on_line: Callable[[str], None]
    ) -> UpgradeOutcome:
        """Upgrade one package, streaming the tool's output.

        Cancelling the calling task, or an error while reading output, kills
        the subprocess and waits for it to exit.

        Args:
            package_id: Package identifier
            on_line: Called with every non-empty output line as it arrives

        Returns:
            Exit code and collected output lines

        Raises:
            OSError: If the tool cannot be started

        """
        command = build_upgrade_command(self.upgrade_command, package_id)
        logger.debug("Upgrading %s: %s", package_id, " ".join(command))
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )

        outcome = UpgradeOutcome(returncode=-1)
        try:
            await self._stream_lines(process, outcome, on_line)
            outcome.returncode = await process.wait()
        finally:
            if process.returncode is None:
                await _kill(process)

        logger.debug(
            "Upgrade of %s exited with code %d", package_id, outcome.returncode
        )
        return outcome

    async def _stream_lines(
        self,
        process: asyncio.subprocess.Process,
        outcome: UpgradeOutcome,
        on_line: Callable[[str], None],
    ) -> None:
        if process.stdout is None:
            return

        decoder = codecs.getincrementaldecoder(ENCODING)(errors="replace")
        pending = ""
        while chunk := await process.stdout.read(READ_CHUNK_SIZE):
            pending += decoder.decode(chunk)
            *complete, pending = _LINE_BREAK_RE.split(pending)
            for line in complete:
                self._emit(line, outcome, on_line)
        pending += decoder.decode(b"", final=True)
        self._emit(pending, outcome, on_line)

    @staticmethod
    def _emit(
        line: str, outcome: UpgradeOutcome, on_line: Callable[[str], None]
    ) -> None:
        text = line.strip()
        if text and text not in _SPINNER_NOISE:
            outcome.lines.append(text)
            on_line(text)


async def _kill(process: asyncio.subprocess.Process) -> None:
    """Kill a subprocess and reap it."""
    with contextlib.suppress(ProcessLookupError):
        process.kill()
    with contextlib.suppress(ProcessLookupError):
        await process.wait()
