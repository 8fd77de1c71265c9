"""dashsync - dashboard persistence with OAuth identity and repository mirroring."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("dashsync")
except PackageNotFoundError:
    # Package is not installed (e.g., running from source without pip install)
    __version__ = "0.0.0.dev0"

# Re-export core public API
from dashsync.app import main
from dashsync.dashboard_service import DashboardService

# NOTE: Update this list when adding new exports to this module.
__all__ = [
    "__version__",
    "DashboardService",
    "main",
]
