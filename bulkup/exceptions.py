"""Exception classes for bulkup operations."""


class BulkupError(Exception):
    """Base exception for bulkup errors."""

    def __init__(self, message: str, target: str | None = None) -> None:
        """Initialize the error.

        Args:
            message: Error message describing the failure.
            target: Optional file, command or package the error relates to.

        """
        super().__init__(message)
        self.message = message
        self.target = target

    def __str__(self) -> str:
        """Return string representation of the error.

        Returns:
            Formatted error message with target if available.

        """
        if self.target:
            return f"{self.message} ({self.target})"
        return self.message


class ConfigurationError(BulkupError):
    """Raised when the settings or skip list cannot be loaded."""


class LaunchError(BulkupError):
    """Raised when an upgrade task cannot be started."""


class CommandError(BulkupError):
    """Raised when the external package-manager tool cannot be run."""
