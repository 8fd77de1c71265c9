"""Registry of configured OAuth connectors.

The registry is built once at startup by :func:`new_oauth_service` and is
read-only afterwards, so request handlers can share it without locking.

Usage:
    registry = new_oauth_service(settings, app_url="https://dash.example.com/")
    connector = registry.get("gitlab")
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping

import httpx

from dashsync.logging import get_logger
from dashsync.social.base import SocialConnector
from dashsync.social.generic_oauth import SocialGenericOAuth
from dashsync.social.github import SocialGithub
from dashsync.social.gitlab import SocialGitlab
from dashsync.social.google import SocialGoogle
from dashsync.social.grafana_com import SocialGrafanaCom
from dashsync.social.oauth2 import OAuth2Client, OAuth2Config
from dashsync.social.settings import OAuthInfo, OAuthSettings
from dashsync.types import ProviderName

logger = get_logger(__name__)

# Path prefix of the OAuth callback, followed by the provider name
SOCIAL_BASE_URL = "/login/"


class OAuthProviderRegistry(Mapping[str, SocialConnector]):
    """Read-only mapping of provider name to connector."""

    def __init__(self, connectors: Mapping[str, SocialConnector] | None = None) -> None:
        self._connectors: dict[str, SocialConnector] = dict(connectors or {})

    def __getitem__(self, name: str) -> SocialConnector:
        return self._connectors[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._connectors)

    def __len__(self) -> int:
        return len(self._connectors)

    def __repr__(self) -> str:
        return f"OAuthProviderRegistry({sorted(self._connectors)})"


def redirect_url(app_url: str, name: str) -> str:
    """Build the OAuth callback URL of a provider.

    Example:
        >>> redirect_url("https://dash.example.com/", "gitlab")
        'https://dash.example.com/login/gitlab'
    """
    return app_url.rstrip("/") + SOCIAL_BASE_URL + name


def _oauth_client(
    info: OAuthInfo,
    name: str,
    app_url: str,
    auth_url: str,
    token_url: str,
    timeout: httpx.Timeout | float | None,
    transport: httpx.BaseTransport | None,
) -> OAuth2Client:
    config = OAuth2Config(
        client_id=info.client_id,
        client_secret=info.client_secret,
        auth_url=auth_url,
        token_url=token_url,
        redirect_url=redirect_url(app_url, name),
        scopes=info.scopes,
        send_client_credentials_via_post=info.send_client_credentials_via_post,
        tls_client_cert=info.tls_client_cert,
        tls_client_key=info.tls_client_key,
        tls_client_ca=info.tls_client_ca,
        tls_skip_verify=info.tls_skip_verify_insecure,
    )
    return OAuth2Client(config, timeout=timeout, transport=transport)


def new_connector(
    name: ProviderName,
    info: OAuthInfo,
    app_url: str,
    grafana_com_url: str = "https://grafana.com",
    timeout: httpx.Timeout | float | None = None,
    transport: httpx.BaseTransport | None = None,
) -> SocialConnector:
    """Create the connector variant for one provider.

    Args:
        name: Canonical provider name.
        info: The provider's configuration.
        app_url: Public application URL used for the callback.
        grafana_com_url: Base URL of Grafana.com, whose OAuth endpoints
            are derived from it rather than configured.
        timeout: Optional timeout for the provider's HTTP calls.
        transport: Optional httpx transport for the provider's HTTP calls.

    Returns:
        The configured connector.
    """
    if name == ProviderName.GRAFANA_COM:
        base = grafana_com_url.rstrip("/")
        oauth = _oauth_client(
            info,
            name,
            app_url,
            f"{base}/oauth2/authorize",
            f"{base}/api/oauth2/token",
            timeout,
            transport,
        )
        return SocialGrafanaCom(
            oauth,
            url=base,
            allow_signup=info.allow_sign_up,
            allowed_organizations=info.allowed_organizations,
        )

    oauth = _oauth_client(
        info, name, app_url, info.auth_url, info.token_url, timeout, transport
    )

    match name:
        case ProviderName.GITHUB:
            return SocialGithub(
                oauth,
                api_url=info.api_url,
                allowed_domains=info.allowed_domains,
                allow_signup=info.allow_sign_up,
                team_ids=info.team_ids,
                allowed_organizations=info.allowed_organizations,
            )
        case ProviderName.GITLAB:
            return SocialGitlab(
                oauth,
                api_url=info.api_url,
                allowed_domains=info.allowed_domains,
                allow_signup=info.allow_sign_up,
                allowed_groups=info.allowed_groups,
                repos=info.repos,
                timeout=timeout,
                transport=transport,
            )
        case ProviderName.GOOGLE:
            return SocialGoogle(
                oauth,
                api_url=info.api_url,
                allowed_domains=info.allowed_domains,
                hosted_domain=info.hosted_domain,
                allow_signup=info.allow_sign_up,
            )
        case ProviderName.GENERIC_OAUTH:
            return SocialGenericOAuth(
                oauth,
                api_url=info.api_url,
                allowed_domains=info.allowed_domains,
                allow_signup=info.allow_sign_up,
                email_attribute_name=info.email_attribute_name,
                email_attribute_path=info.email_attribute_path,
                team_ids=info.team_ids,
                allowed_organizations=info.allowed_organizations,
            )

    raise ValueError(f"Unsupported OAuth provider: {name}")


def new_oauth_service(
    settings: OAuthSettings,
    app_url: str,
    grafana_com_url: str = "https://grafana.com",
    timeout: httpx.Timeout | float | None = None,
    transport: httpx.BaseTransport | None = None,
) -> OAuthProviderRegistry:
    """Build the registry with one connector per enabled provider.

    Args:
        settings: Loaded provider settings.
        app_url: Public application URL used for callbacks.
        grafana_com_url: Base URL of Grafana.com.
        timeout: Optional timeout for provider HTTP calls.
        transport: Optional httpx transport for provider HTTP calls.

    Returns:
        The populated registry.
    """
    connectors: dict[str, SocialConnector] = {}
    for key, info in settings.providers.items():
        if not info.enabled:
            continue
        name = ProviderName.normalize(key)
        connectors[name.value] = new_connector(
            name,
            info,
            app_url,
            grafana_com_url=grafana_com_url,
            timeout=timeout,
            transport=transport,
        )
        logger.debug("Registered OAuth provider %s", name.value, extra={"provider": name.value})

    logger.info("OAuth providers enabled: %s", ", ".join(sorted(connectors)) or "none")
    return OAuthProviderRegistry(connectors)
