"""Tests for the OAuth provider registry."""

from types import MappingProxyType

import httpx
import pytest

from dashsync.social.generic_oauth import SocialGenericOAuth
from dashsync.social.github import SocialGithub
from dashsync.social.gitlab import SocialGitlab
from dashsync.social.google import SocialGoogle
from dashsync.social.grafana_com import SocialGrafanaCom
from dashsync.social.registry import (
    OAuthProviderRegistry,
    new_connector,
    new_oauth_service,
    redirect_url,
)
from dashsync.social.settings import GitLabRepo, OAuthInfo, OAuthSettings
from dashsync.types import ProviderName


def settings_for(*infos: tuple[str, OAuthInfo]) -> OAuthSettings:
    return OAuthSettings(providers=MappingProxyType(dict(infos)))


class TestRedirectUrl:
    """Tests for redirect_url."""

    @pytest.mark.parametrize("app_url", ["https://dash.example.com", "https://dash.example.com/"])
    def test_builds_callback(self, app_url: str) -> None:
        assert redirect_url(app_url, "gitlab") == "https://dash.example.com/login/gitlab"


class TestNewConnector:
    """Tests for new_connector."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            (ProviderName.GITHUB, SocialGithub),
            (ProviderName.GITLAB, SocialGitlab),
            (ProviderName.GOOGLE, SocialGoogle),
            (ProviderName.GENERIC_OAUTH, SocialGenericOAuth),
            (ProviderName.GRAFANA_COM, SocialGrafanaCom),
        ],
    )
    def test_variant_per_provider(self, name: ProviderName, expected: type) -> None:
        info = OAuthInfo(name=name.value, enabled=True, api_url="https://api.example.com")

        connector = new_connector(name, info, app_url="http://localhost:3000/")

        assert isinstance(connector, expected)

    def test_oauth_client_settings(self) -> None:
        info = OAuthInfo(
            name="gitlab",
            client_id="abc",
            client_secret="s3cret",
            scopes=("api",),
            auth_url="https://gitlab.example.com/oauth/authorize",
            token_url="https://gitlab.example.com/oauth/token",
            api_url="https://gitlab.example.com/api/v4",
            send_client_credentials_via_post=True,
            allowed_groups=("platform",),
            repos=(GitLabRepo(org_id=1, repo_id=42),),
        )

        connector = new_connector(ProviderName.GITLAB, info, app_url="https://dash.example.com")

        assert isinstance(connector, SocialGitlab)
        config = connector.oauth.config
        assert config.client_id == "abc"
        assert config.redirect_url == "https://dash.example.com/login/gitlab"
        assert config.send_client_credentials_via_post is True
        assert connector.allowed_groups == ("platform",)
        assert connector.get_repo(1) == GitLabRepo(org_id=1, repo_id=42)

    def test_grafana_com_endpoints(self) -> None:
        info = OAuthInfo(name="grafana_com", auth_url="ignored", token_url="ignored")

        connector = new_connector(
            ProviderName.GRAFANA_COM,
            info,
            app_url="http://localhost:3000",
            grafana_com_url="https://grafana.example.com/",
        )

        assert isinstance(connector, SocialGrafanaCom)
        assert connector.oauth.config.auth_url == "https://grafana.example.com/oauth2/authorize"
        assert connector.oauth.config.token_url == "https://grafana.example.com/api/oauth2/token"
        assert connector.url == "https://grafana.example.com"

    def test_send_credentials_flag_is_per_provider(self) -> None:
        registry = new_oauth_service(
            settings_for(
                ("github", OAuthInfo(name="github", enabled=True)),
                (
                    "generic_oauth",
                    OAuthInfo(
                        name="generic_oauth", enabled=True, send_client_credentials_via_post=True
                    ),
                ),
            ),
            app_url="http://localhost:3000",
        )

        github = registry["github"]
        generic = registry["generic_oauth"]
        assert isinstance(github, SocialGithub)
        assert isinstance(generic, SocialGenericOAuth)
        assert github.oauth.config.send_client_credentials_via_post is False
        assert generic.oauth.config.send_client_credentials_via_post is True


class TestNewOAuthService:
    """Tests for new_oauth_service and OAuthProviderRegistry."""

    def test_only_enabled_providers(self) -> None:
        registry = new_oauth_service(
            settings_for(
                ("gitlab", OAuthInfo(name="gitlab", enabled=True)),
                ("github", OAuthInfo(name="github", enabled=False)),
            ),
            app_url="http://localhost:3000",
        )

        assert list(registry) == ["gitlab"]
        assert len(registry) == 1
        assert registry.get("github") is None

    def test_empty_settings(self) -> None:
        registry = new_oauth_service(OAuthSettings(), app_url="http://localhost:3000")

        assert len(registry) == 0

    def test_transport_reaches_connectors(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200))
        registry = new_oauth_service(
            settings_for(("gitlab", OAuthInfo(name="gitlab", enabled=True))),
            app_url="http://localhost:3000",
            transport=transport,
        )

        connector = registry["gitlab"]
        assert isinstance(connector, SocialGitlab)
        assert connector._transport is transport
        assert connector.oauth._transport is transport

    def test_registry_is_read_only(self) -> None:
        registry = OAuthProviderRegistry({})

        with pytest.raises(TypeError):
            registry["gitlab"] = None  # type: ignore[index]

    def test_registry_copies_input(self) -> None:
        connectors: dict[str, SocialGithub] = {}
        registry = OAuthProviderRegistry(connectors)
        connectors["github"] = new_connector(  # type: ignore[assignment]
            ProviderName.GITHUB, OAuthInfo(name="github"), app_url="http://localhost"
        )

        assert "github" not in registry
