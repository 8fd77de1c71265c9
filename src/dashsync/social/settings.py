"""OAuth provider configuration loaded from YAML.

Example file::

    auth:
      gitlab:
        enabled: true
        client_id: abc
        client_secret: s3cret
        scopes: api read_user
        auth_url: https://gitlab.example.com/oauth/authorize
        token_url: https://gitlab.example.com/oauth/token
        api_url: https://gitlab.example.com/api/v4
        allowed_groups: [platform, observability]
        repos:
          - org_id: 1
            repo_id: 42
            branch: main
            url: https://gitlab.example.com
            dashboards_path: dashboards

The ``client_secret`` of a provider can be supplied through the
``DASHSYNC_AUTH_<NAME>_CLIENT_SECRET`` environment variable instead, e.g.
``DASHSYNC_AUTH_GITLAB_CLIENT_SECRET``.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from dashsync.errors import ConfigurationError
from dashsync.logging import get_logger
from dashsync.types import ALL_OAUTH_PROVIDERS, ProviderName

logger = get_logger(__name__)

_LIST_SEPARATOR_PATTERN = re.compile(r"[,\s]+")


@dataclass(frozen=True)
class GitLabRepo:
    """Repository that mirrors the dashboards of one organization.

    Attributes:
        org_id: Organization whose dashboards are mirrored.
        repo_id: GitLab project id.
        branch: Branch commits are created on.
        url: GitLab instance URL; ``/api/v4`` is appended when missing.
        dashboards_path: Directory inside the repository holding dashboards.
    """

    org_id: int = 0
    repo_id: int = 0
    branch: str = ""
    url: str = ""
    dashboards_path: str = ""


@dataclass(frozen=True)
class OAuthInfo:
    """Static configuration of one OAuth provider."""

    name: str
    enabled: bool = False
    client_id: str = ""
    client_secret: str = ""
    scopes: tuple[str, ...] = ()
    auth_url: str = ""
    token_url: str = ""
    api_url: str = ""
    allowed_domains: tuple[str, ...] = ()
    hosted_domain: str = ""
    allow_sign_up: bool = False
    email_attribute_name: str = ""
    email_attribute_path: str = ""
    send_client_credentials_via_post: bool = False
    tls_client_cert: str = ""
    tls_client_key: str = ""
    tls_client_ca: str = ""
    tls_skip_verify_insecure: bool = False
    team_ids: tuple[int, ...] = ()
    allowed_organizations: tuple[str, ...] = ()
    allowed_groups: tuple[str, ...] = ()
    repos: tuple[GitLabRepo, ...] = ()


@dataclass(frozen=True)
class OAuthSettings:
    """Every provider section found in the configuration, enabled or not.

    ``providers`` is keyed by canonical provider name (``grafananet`` is
    stored as ``grafana_com``) and is read-only.
    """

    providers: Mapping[str, OAuthInfo] = field(default_factory=lambda: MappingProxyType({}))

    def get(self, name: str) -> OAuthInfo | None:
        return self.providers.get(name)


def _split_list(value: Any, key: str, provider: str) -> tuple[str, ...]:
    """Read a list setting given as a YAML list or a comma/space separated string."""
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(item for item in _LIST_SEPARATOR_PATTERN.split(value) if item)
    if isinstance(value, list):
        return tuple(str(item).strip() for item in value if str(item).strip())
    raise ConfigurationError(f"'{key}' of provider '{provider}' must be a list or a string")


def _parse_bool(value: Any, key: str, provider: str) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() in ("true", "1", "yes")
    raise ConfigurationError(f"'{key}' of provider '{provider}' must be a boolean")


def _parse_int(value: Any, key: str, context: str) -> int:
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise ConfigurationError(f"'{key}' of {context} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"'{key}' of {context} must be an integer, got {value!r}") from e


def _parse_str(value: Any) -> str:
    return "" if value is None else str(value)


def _parse_repos(value: Any, provider: str) -> tuple[GitLabRepo, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ConfigurationError(f"'repos' of provider '{provider}' must be a list")

    repos = []
    for index, item in enumerate(value):
        if not isinstance(item, dict):
            raise ConfigurationError(f"repos[{index}] of provider '{provider}' must be a mapping")
        context = f"repos[{index}] of provider '{provider}'"
        repos.append(
            GitLabRepo(
                org_id=_parse_int(item.get("org_id"), "org_id", context),
                repo_id=_parse_int(item.get("repo_id"), "repo_id", context),
                branch=_parse_str(item.get("branch")),
                url=_parse_str(item.get("url")),
                dashboards_path=_parse_str(item.get("dashboards_path")),
            )
        )
    return tuple(repos)


def _parse_provider(section: str, data: dict[str, Any]) -> OAuthInfo:
    """Parse one provider section.

    Raises:
        ConfigurationError: If a setting has the wrong type.
    """
    canonical = ProviderName.normalize(section)
    context = f"provider '{section}'"

    client_secret = _parse_str(data.get("client_secret"))
    env_secret = os.getenv(f"DASHSYNC_AUTH_{canonical.value.upper()}_CLIENT_SECRET")
    if env_secret:
        client_secret = env_secret

    team_ids = tuple(
        _parse_int(team_id, "team_ids", context)
        for team_id in _split_list(data.get("team_ids"), "team_ids", section)
    )

    return OAuthInfo(
        name=_parse_str(data.get("name")) or section,
        enabled=_parse_bool(data.get("enabled"), "enabled", section),
        client_id=_parse_str(data.get("client_id")),
        client_secret=client_secret,
        scopes=_split_list(data.get("scopes"), "scopes", section),
        auth_url=_parse_str(data.get("auth_url")),
        token_url=_parse_str(data.get("token_url")),
        api_url=_parse_str(data.get("api_url")),
        allowed_domains=_split_list(data.get("allowed_domains"), "allowed_domains", section),
        hosted_domain=_parse_str(data.get("hosted_domain")),
        allow_sign_up=_parse_bool(data.get("allow_sign_up"), "allow_sign_up", section),
        email_attribute_name=_parse_str(data.get("email_attribute_name")),
        email_attribute_path=_parse_str(data.get("email_attribute_path")),
        send_client_credentials_via_post=_parse_bool(
            data.get("send_client_credentials_via_post"),
            "send_client_credentials_via_post",
            section,
        ),
        tls_client_cert=_parse_str(data.get("tls_client_cert")),
        tls_client_key=_parse_str(data.get("tls_client_key")),
        tls_client_ca=_parse_str(data.get("tls_client_ca")),
        tls_skip_verify_insecure=_parse_bool(
            data.get("tls_skip_verify_insecure"), "tls_skip_verify_insecure", section
        ),
        team_ids=team_ids,
        allowed_organizations=_split_list(
            data.get("allowed_organizations"), "allowed_organizations", section
        ),
        allowed_groups=_split_list(data.get("allowed_groups"), "allowed_groups", section),
        repos=_parse_repos(data.get("repos"), section),
    )


def parse_oauth_settings(data: Any, source: str = "<config>") -> OAuthSettings:
    """Build OAuth settings from an already decoded YAML document.

    Args:
        data: The decoded document. ``None`` yields empty settings.
        source: Name of the document used in error messages.

    Returns:
        The parsed settings.

    Raises:
        ConfigurationError: If the document is malformed.
    """
    if not data:
        return OAuthSettings()
    if not isinstance(data, dict):
        raise ConfigurationError(f"Top level of {source} must be a mapping")

    auth = data.get("auth") or {}
    if not isinstance(auth, dict):
        raise ConfigurationError(f"'auth' must be a mapping in {source}")

    for section in auth:
        if not ProviderName.is_valid(section):
            logger.warning("Ignoring unknown OAuth provider '%s' in %s", section, source)

    providers: dict[str, OAuthInfo] = {}
    # Sections are read in a fixed order so grafana_com overrides grafananet
    for section in ALL_OAUTH_PROVIDERS:
        if section not in auth:
            continue
        section_data = auth[section] or {}
        if not isinstance(section_data, dict):
            raise ConfigurationError(f"Provider '{section}' must be a mapping in {source}")
        info = _parse_provider(section, section_data)
        providers[ProviderName.normalize(section).value] = info

    logger.debug("Loaded %s OAuth provider sections from %s", len(providers), source)
    return OAuthSettings(providers=MappingProxyType(providers))


def load_oauth_settings(path: Path) -> OAuthSettings:
    """Load OAuth provider settings from a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        The parsed settings.

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    except FileNotFoundError:
        raise ConfigurationError(f"OAuth configuration file not found: {path}") from None
    except OSError as e:
        raise ConfigurationError(f"Cannot read OAuth configuration {path}: {e}") from e

    return parse_oauth_settings(data, str(path))


def get_oauth_providers(settings: OAuthSettings | None) -> dict[str, bool]:
    """Report every configured provider and whether it is enabled.

    Example:
        >>> get_oauth_providers(settings)
        {'github': False, 'gitlab': True}
    """
    if settings is None:
        return {}
    return {name: info.enabled for name, info in settings.providers.items()}
