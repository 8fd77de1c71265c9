"""GitHub connector."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import httpx

from dashsync.logging import get_logger
from dashsync.social.base import (
    BasicUserInfo,
    HttpGetError,
    MissingOrganizationMembershipError,
    MissingTeamMembershipError,
    SocialBase,
    UserInfoError,
    get_json,
    http_get,
    next_page_url,
)
from dashsync.types import OAuthType

if TYPE_CHECKING:
    from dashsync.social.oauth2 import OAuth2Client, OAuth2Token

logger = get_logger(__name__)


def fetch_team_ids(client: httpx.Client, url: str) -> list[int]:
    """Collect team ids from a paginated team listing.

    Raises:
        HttpGetError: If a page cannot be fetched.
        ValueError: If a page is not valid JSON.
    """
    team_ids: list[int] = []
    while url:
        response = http_get(client, url)
        for team in response.json():
            team_ids.append(int(team["id"]))
        url = next_page_url(response)
    return team_ids


def fetch_organization_logins(client: httpx.Client, url: str) -> list[str]:
    """Return the logins of the organizations listed at ``url``.

    Raises:
        HttpGetError: If the listing cannot be fetched.
        ValueError: If the listing is not valid JSON.
    """
    return [str(org.get("login", "")) for org in get_json(client, url)]


def fetch_primary_email(client: httpx.Client, url: str) -> str:
    """Return the primary address from an e-mail listing, or ``""``.

    Raises:
        HttpGetError: If the listing cannot be fetched.
        ValueError: If the listing is not valid JSON.
    """
    for record in get_json(client, url):
        if record.get("primary") or record.get("isPrimary"):
            return str(record.get("email", ""))
    return ""


class SocialGithub(SocialBase):
    """GitHub sign-in restricted by team ids and organizations."""

    def __init__(
        self,
        oauth: OAuth2Client,
        api_url: str,
        allowed_domains: Sequence[str] = (),
        allow_signup: bool = False,
        team_ids: Sequence[int] = (),
        allowed_organizations: Sequence[str] = (),
    ) -> None:
        """Initialize the GitHub connector.

        Args:
            oauth: OAuth2 client configured for GitHub.
            api_url: URL of the authenticated user resource, e.g.
                ``https://api.github.com/user``. Teams, organizations and
                e-mails are read below it.
            allowed_domains: E-mail domains allowed to sign in (empty = all).
            allow_signup: Whether unknown users may be created on sign-in.
            team_ids: Team ids allowed to sign in (empty = all).
            allowed_organizations: Organization logins allowed to sign in (empty = all).
        """
        super().__init__(oauth, allowed_domains=allowed_domains, allow_signup=allow_signup)
        self.api_url = api_url.rstrip("/")
        self.team_ids: tuple[int, ...] = tuple(team_ids)
        self.allowed_organizations: tuple[str, ...] = tuple(allowed_organizations)

    def type(self) -> int:
        return int(OAuthType.GITHUB)

    def is_team_member(self, client: httpx.Client) -> bool:
        if not self.team_ids:
            return True

        try:
            memberships = fetch_team_ids(client, f"{self.api_url}/teams?per_page=100")
        except (HttpGetError, ValueError, KeyError, TypeError) as e:
            logger.error("Error getting team memberships: %s", e)
            return False

        return any(team_id in memberships for team_id in self.team_ids)

    def is_organization_member(self, client: httpx.Client, organizations_url: str) -> bool:
        if not self.allowed_organizations:
            return True

        try:
            logins = fetch_organization_logins(client, organizations_url)
        except (HttpGetError, ValueError, AttributeError, TypeError) as e:
            logger.error("Error getting organizations: %s", e)
            return False

        return any(login in logins for login in self.allowed_organizations)

    def user_info(self, client: httpx.Client, token: OAuth2Token) -> BasicUserInfo:
        """Fetch the GitHub user and enforce the team and organization policy.

        Raises:
            UserInfoError: If the user or their e-mail cannot be fetched.
            MissingTeamMembershipError: If the user is in none of the allowed teams.
            MissingOrganizationMembershipError: If the user is in none of the
                allowed organizations.
        """
        try:
            data = get_json(client, self.api_url)
        except (HttpGetError, ValueError) as e:
            raise UserInfoError(f"Error getting user info: {e}") from e

        if not isinstance(data, dict):
            raise UserInfoError("Error getting user info: unexpected response")

        login = str(data.get("login") or "")
        user = BasicUserInfo(
            id=str(data.get("id", 0)),
            name=login,
            login=login,
            email=str(data.get("email") or ""),
        )

        if not self.is_team_member(client):
            raise MissingTeamMembershipError()

        if not self.is_organization_member(client, f"{self.api_url}/orgs"):
            raise MissingOrganizationMembershipError()

        if not user.email:
            try:
                user.email = fetch_primary_email(client, f"{self.api_url}/emails")
            except (HttpGetError, ValueError, AttributeError, TypeError) as e:
                raise UserInfoError(f"Error getting email address: {e}") from e

        return user
