"""Command-line application runner for dashsync."""

from __future__ import annotations

import argparse
import json
import os
from dataclasses import replace
from typing import Any

from dashsync.cli import parse_args
from dashsync.config import Config, LoggingConfig, load_config
from dashsync.container import create_registry, load_settings
from dashsync.errors import ConfigurationError, DashboardError
from dashsync.logging import get_logger, setup_logging
from dashsync.models import ROOT_FOLDER_NAME, Dashboard, slugify
from dashsync.social.base import SocialError, UpdateDashboardOptions
from dashsync.social.settings import OAuthSettings, get_oauth_providers
from dashsync.types import DashboardAction

logger = get_logger(__name__)


def apply_cli_overrides(config: Config, parsed: argparse.Namespace) -> Config:
    """Apply CLI argument overrides to the configuration.

    Args:
        config: Base configuration loaded from environment.
        parsed: Parsed command-line arguments.

    Returns:
        New Config instance with CLI overrides applied.
    """
    overrides: dict[str, Any] = {}

    if parsed.log_level:
        overrides["logging_config"] = LoggingConfig(
            level=parsed.log_level,
            json=config.logging_config.json,
            diagnostic_tags=config.logging_config.diagnostic_tags,
        )
    if parsed.oauth_config:
        overrides["oauth_config_path"] = parsed.oauth_config

    if overrides:
        return replace(config, **overrides)
    return config


def run_providers(settings: OAuthSettings) -> int:
    """Print every configured provider and its state.

    Returns:
        Exit code: always 0.
    """
    providers = get_oauth_providers(settings)
    if not providers:
        print("No OAuth providers configured")
        return 0
    for name, enabled in sorted(providers.items()):
        print(f"{name}\t{'enabled' if enabled else 'disabled'}")
    return 0


def run_mirror(parsed: argparse.Namespace, config: Config, settings: OAuthSettings) -> int:
    """Mirror a dashboard file through a provider.

    Returns:
        Exit code: 0 for success, 1 for failure.
    """
    token = parsed.token or os.getenv("DASHSYNC_MIRROR_TOKEN", "")
    if not token:
        logger.error("No token given: use --token or set DASHSYNC_MIRROR_TOKEN")
        return 1

    registry = create_registry(config, settings)
    connector = registry.get(parsed.provider)
    if connector is None:
        logger.error("OAuth provider %r is not enabled", parsed.provider)
        return 1

    try:
        with open(parsed.file, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error("Cannot read dashboard file %s: %s", parsed.file, e)
        return 1

    if not isinstance(data, dict):
        logger.error("Dashboard file %s must contain a JSON object", parsed.file)
        return 1

    dashboard = Dashboard.from_json(data)
    options = UpdateDashboardOptions(
        action=DashboardAction(parsed.action),
        message=parsed.message,
        title=dashboard.title,
        name=dashboard.slug or slugify(parsed.file.stem),
        dashboard=json.dumps(dashboard.data, indent=2, ensure_ascii=False),
        folder=parsed.folder or ROOT_FOLDER_NAME,
        org_id=parsed.org_id,
    )

    try:
        connector.update_dashboard(options, token)
    except (DashboardError, SocialError) as e:
        logger.error("Mirroring %s failed: %s", parsed.file, e)
        return 1

    logger.info(
        "Mirrored %s as %s/%s.json",
        parsed.file,
        options.folder,
        options.name,
        extra={"provider": parsed.provider, "org_id": parsed.org_id},
    )
    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point for the application.

    Args:
        args: Optional list of command-line arguments.

    Returns:
        Exit code for the application.
    """
    parsed = parse_args(args)

    config = apply_cli_overrides(load_config(parsed.env_file), parsed)
    setup_logging(
        level=config.logging_config.level,
        json_format=config.logging_config.json,
        diagnostic_tags=config.logging_config.diagnostic_tags,
    )

    try:
        settings = load_settings(config)
    except ConfigurationError as e:
        logger.error("Failed to load OAuth configuration: %s", e)
        return 1

    if parsed.command == "providers":
        return run_providers(settings)
    return run_mirror(parsed, config, settings)


__all__ = [
    "apply_cli_overrides",
    "main",
    "run_mirror",
    "run_providers",
]
