"""Command-line interface argument parsing for dashsync.

Commands:
- ``providers``: list configured OAuth providers and whether they are enabled
- ``mirror``: push a dashboard JSON file to a provider's repository
"""

from __future__ import annotations

import argparse
from pathlib import Path

from dashsync.types import DashboardAction


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        args: Optional list of arguments to parse. If None, uses sys.argv.

    Returns:
        Parsed arguments namespace with the following attributes:
        - command: "providers" or "mirror"
        - env_file: Path to .env file
        - log_level: Logging level override
        - oauth_config: OAuth provider configuration override
        - file, provider, org_id, folder, action, message, token: mirror options
    """
    parser = argparse.ArgumentParser(
        prog="dashsync",
        description="dashsync - dashboard persistence with OAuth repository mirroring",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to .env file (default: ./.env)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level (overrides DASHSYNC_LOG_LEVEL)",
    )

    parser.add_argument(
        "--oauth-config",
        type=Path,
        default=None,
        help="Path to the OAuth provider YAML file (overrides DASHSYNC_OAUTH_CONFIG)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("providers", help="List configured OAuth providers")

    mirror = subparsers.add_parser(
        "mirror", help="Mirror a dashboard JSON file through an OAuth provider"
    )
    mirror.add_argument("file", type=Path, help="Dashboard JSON file")
    mirror.add_argument("--provider", required=True, help="Provider name, e.g. gitlab")
    mirror.add_argument("--org-id", type=int, required=True, help="Organization id")
    mirror.add_argument(
        "--folder",
        default=None,
        help="Folder directory in the repository (default: General)",
    )
    mirror.add_argument(
        "--action",
        choices=[action.value for action in DashboardAction],
        default=DashboardAction.CREATE.value,
        help="File action (default: create)",
    )
    mirror.add_argument("--message", default="", help="Commit message for updates")
    mirror.add_argument(
        "--token",
        default=None,
        help="OAuth access token (default: DASHSYNC_MIRROR_TOKEN)",
    )

    return parser.parse_args(args)


__all__ = ["parse_args"]
