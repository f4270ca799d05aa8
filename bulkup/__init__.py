"""Top-level package for bulkup.

Bulk upgrade orchestration for packages reported by an external
package-manager tool.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("bulkup")
    # Handle None return in Python 3.13+ for uninstalled packages
    if __version__ is None:
        __version__ = "dev"
except PackageNotFoundError:
    # Fallback for development environments where package isn't installed
    __version__ = "dev"
