"""Tests for the GitHub connector."""

import httpx
import pytest

from dashsync.social.base import (
    MissingOrganizationMembershipError,
    MissingTeamMembershipError,
    UserInfoError,
)
from dashsync.social.github import SocialGithub, fetch_primary_email, fetch_team_ids
from dashsync.social.oauth2 import OAuth2Token
from dashsync.types import OAuthType
from tests.helpers import json_response, route_transport
from tests.mocks import make_oauth_client

API_URL = "https://api.github.com/user"
TEAMS_URL = f"{API_URL}/teams?per_page=100"
ORGS_URL = f"{API_URL}/orgs"
EMAILS_URL = f"{API_URL}/emails"

TOKEN = OAuth2Token(access_token="gho_abc")


def make_connector(
    team_ids: tuple[int, ...] = (),
    allowed_organizations: tuple[str, ...] = (),
) -> SocialGithub:
    return SocialGithub(
        make_oauth_client(),
        api_url=API_URL,
        team_ids=team_ids,
        allowed_organizations=allowed_organizations,
    )


def user(email: str | None = "octo@example.com") -> dict[str, object]:
    return {"id": 583231, "login": "octocat", "email": email}


class TestFetchHelpers:
    """Tests for the paginated listing helpers."""

    def test_team_ids_follow_pages(self) -> None:
        page2 = f"{API_URL}/teams?page=2"
        transport = route_transport(
            {
                TEAMS_URL: json_response(
                    [{"id": 1}, {"id": 2}], headers={"Link": f'<{page2}>; rel="next"'}
                ),
                page2: json_response([{"id": 3}]),
            }
        )

        with httpx.Client(transport=transport) as client:
            assert fetch_team_ids(client, TEAMS_URL) == [1, 2, 3]

    def test_primary_email(self) -> None:
        transport = route_transport(
            {
                EMAILS_URL: json_response(
                    [
                        {"email": "old@example.com", "primary": False},
                        {"email": "main@example.com", "primary": True},
                    ]
                )
            }
        )

        with httpx.Client(transport=transport) as client:
            assert fetch_primary_email(client, EMAILS_URL) == "main@example.com"

    def test_no_primary_email(self) -> None:
        transport = route_transport({EMAILS_URL: json_response([{"email": "a@example.com"}])})

        with httpx.Client(transport=transport) as client:
            assert fetch_primary_email(client, EMAILS_URL) == ""


class TestUserInfo:
    """Tests for SocialGithub.user_info."""

    def test_unrestricted(self) -> None:
        requests: list[httpx.Request] = []
        transport = route_transport({API_URL: json_response(user())}, requests)

        with httpx.Client(transport=transport) as client:
            info = make_connector().user_info(client, TOKEN)

        assert info.id == "583231"
        assert info.login == "octocat"
        assert info.name == "octocat"
        assert info.email == "octo@example.com"
        assert [str(r.url) for r in requests] == [API_URL]

    def test_team_member(self) -> None:
        transport = route_transport(
            {
                API_URL: json_response(user()),
                TEAMS_URL: json_response([{"id": 10}, {"id": 20}]),
            }
        )

        with httpx.Client(transport=transport) as client:
            info = make_connector(team_ids=(20,)).user_info(client, TOKEN)

        assert info.login == "octocat"

    def test_not_team_member(self) -> None:
        transport = route_transport(
            {API_URL: json_response(user()), TEAMS_URL: json_response([{"id": 10}])}
        )

        with httpx.Client(transport=transport) as client:
            with pytest.raises(MissingTeamMembershipError):
                make_connector(team_ids=(20,)).user_info(client, TOKEN)

    def test_team_listing_failure_denies(self) -> None:
        transport = route_transport(
            {API_URL: json_response(user()), TEAMS_URL: httpx.Response(500, text="boom")}
        )

        with httpx.Client(transport=transport) as client:
            with pytest.raises(MissingTeamMembershipError):
                make_connector(team_ids=(20,)).user_info(client, TOKEN)

    def test_organization_member(self) -> None:
        transport = route_transport(
            {
                API_URL: json_response(user()),
                ORGS_URL: json_response([{"login": "github"}, {"login": "acme"}]),
            }
        )

        with httpx.Client(transport=transport) as client:
            info = make_connector(allowed_organizations=("acme",)).user_info(client, TOKEN)

        assert info.email == "octo@example.com"

    def test_not_organization_member(self) -> None:
        transport = route_transport(
            {API_URL: json_response(user()), ORGS_URL: json_response([{"login": "github"}])}
        )

        with httpx.Client(transport=transport) as client:
            with pytest.raises(MissingOrganizationMembershipError):
                make_connector(allowed_organizations=("acme",)).user_info(client, TOKEN)

    def test_private_email_fetched(self) -> None:
        transport = route_transport(
            {
                API_URL: json_response(user(email=None)),
                EMAILS_URL: json_response([{"email": "hidden@example.com", "primary": True}]),
            }
        )

        with httpx.Client(transport=transport) as client:
            info = make_connector().user_info(client, TOKEN)

        assert info.email == "hidden@example.com"

    def test_email_listing_failure(self) -> None:
        transport = route_transport({API_URL: json_response(user(email=None))})

        with httpx.Client(transport=transport) as client:
            with pytest.raises(UserInfoError, match="Error getting email address"):
                make_connector().user_info(client, TOKEN)

    def test_user_fetch_failure(self) -> None:
        transport = route_transport({API_URL: httpx.Response(401, text="Bad credentials")})

        with httpx.Client(transport=transport) as client:
            with pytest.raises(UserInfoError, match="Bad credentials"):
                make_connector().user_info(client, TOKEN)

    def test_type(self) -> None:
        assert make_connector().type() == OAuthType.GITHUB


class TestNoOpMirroring:
    """Providers without a repository ignore dashboard changes."""

    def test_update_dashboard_is_noop(self) -> None:
        from dashsync.social.base import UpdateDashboardOptions
        from dashsync.types import DashboardAction

        assert (
            make_connector().update_dashboard(
                UpdateDashboardOptions(DashboardAction.CREATE, org_id=1), "token"
            )
            is None
        )
