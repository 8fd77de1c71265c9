"""Type definitions and enums for dashsync.

This module provides centralized type definitions, replacing magic strings
and numbers throughout the codebase with type-safe constants.

Usage:
    from dashsync.types import DashboardAction, ProviderName

    # StrEnum members compare equal to their string values
    if options.action == DashboardAction.CREATE:
        ...

    ProviderName.is_valid("gitlab")  # True
"""

from __future__ import annotations

from enum import IntEnum, StrEnum


class DashboardAction(StrEnum):
    """Action mirrored to an external repository for a dashboard file.

    Values:
        UPDATE: Overwrite an existing file ("update")
        CREATE: Add a new file ("create")
        DELETE: Remove a file ("delete")
    """

    UPDATE = "update"
    CREATE = "create"
    DELETE = "delete"


class ProviderName(StrEnum):
    """The closed set of supported OAuth providers.

    ``grafananet`` is accepted in configuration as a legacy alias and
    folded into ``GRAFANA_COM`` (see :meth:`normalize`).
    """

    GITHUB = "github"
    GITLAB = "gitlab"
    GOOGLE = "google"
    GENERIC_OAUTH = "generic_oauth"
    GRAFANA_COM = "grafana_com"

    @classmethod
    def is_valid(cls, value: str) -> bool:
        """Check if a string value names a supported provider (aliases included)."""
        return value in cls._value2member_map_ or value in LEGACY_PROVIDER_ALIASES

    @classmethod
    def normalize(cls, value: str) -> ProviderName:
        """Resolve a configured provider name, folding legacy aliases.

        Raises:
            ValueError: If the name is not a supported provider.
        """
        return cls(LEGACY_PROVIDER_ALIASES.get(value, value))


# Legacy configuration section names mapped to their current provider
LEGACY_PROVIDER_ALIASES: dict[str, str] = {"grafananet": "grafana_com"}

# Order in which provider sections are read from configuration
ALL_OAUTH_PROVIDERS: tuple[str, ...] = (
    "github",
    "gitlab",
    "google",
    "generic_oauth",
    "grafananet",
    "grafana_com",
)


class OAuthType(IntEnum):
    """Numeric identity-provider tags reported by ``SocialConnector.type``."""

    GITHUB = 1
    GOOGLE = 2
    TWITTER = 3
    GENERIC = 4
    GRAFANA_COM = 5
    GITLAB = 6


class RoleType(StrEnum):
    """Organization roles a signed-in user can hold."""

    VIEWER = "Viewer"
    EDITOR = "Editor"
    ADMIN = "Admin"
