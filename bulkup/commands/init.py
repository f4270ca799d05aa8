"""Init command handler for bulkup CLI."""

from argparse import Namespace

from .base import BaseCommandHandler


class InitHandler(BaseCommandHandler):
    """Handler for the init command."""

    async def execute(self, args: Namespace) -> None:
        """Create default configuration files that do not exist yet.

        Args:
            args: Parsed command-line arguments

        """
        created = self.config_manager.create_default_config()
        if not created:
            print(
                "Configuration already exists in "
                f"{self.config_manager.config_dir}"
            )
            return
        for path in created:
            print(f"✅ Created {path}")
