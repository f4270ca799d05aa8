"""Main CLI entry point for bulkup.

This module provides the minimal entry point for the command-line
interface, delegating all functionality to specialized command
handlers and CLI components.
"""

import asyncio
import sys

from .cli import CLIRunner

# uvloop does not support Windows
if sys.platform != "win32":
    import uvloop


async def async_main() -> None:
    """Run the CLI asynchronously.

    Initialize the CLI runner and execute the main command loop
    asynchronously.
    """
    runner = CLIRunner()
    await runner.run()


def main() -> None:
    """Run the CLI application.

    Run the CLI on uvloop for improved async performance, or on the
    default event loop on Windows.

    Raises:
        SystemExit: With code 1 on interrupt or unexpected errors.

    """
    try:
        if sys.platform == "win32":
            asyncio.run(async_main())
        else:
            uvloop.run(async_main())
    except KeyboardInterrupt:
        print("\n⏹️  Operation cancelled by user")
        sys.exit(1)
    except Exception as e:
        print(f"❌ Unexpected error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
