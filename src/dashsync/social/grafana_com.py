"""Grafana.com connector."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import httpx

from dashsync.social.base import (
    BasicUserInfo,
    HttpGetError,
    MissingOrganizationMembershipError,
    SocialBase,
    UserInfoError,
    get_json,
)
from dashsync.types import OAuthType

if TYPE_CHECKING:
    from dashsync.social.oauth2 import OAuth2Client, OAuth2Token


class SocialGrafanaCom(SocialBase):
    """Grafana.com sign-in restricted by organization.

    Grafana.com vouches for the e-mail addresses it reports, so every
    address is allowed.
    """

    def __init__(
        self,
        oauth: OAuth2Client,
        url: str,
        allow_signup: bool = False,
        allowed_organizations: Sequence[str] = (),
    ) -> None:
        super().__init__(oauth, allow_signup=allow_signup)
        self.url = url.rstrip("/")
        self.allowed_organizations: tuple[str, ...] = tuple(allowed_organizations)

    def type(self) -> int:
        return int(OAuthType.GRAFANA_COM)

    def is_email_allowed(self, email: str) -> bool:
        return True

    def is_organization_member(self, organizations: list[dict[str, Any]]) -> bool:
        if not self.allowed_organizations:
            return True
        logins = {str(org.get("login", "")) for org in organizations if isinstance(org, dict)}
        return any(allowed in logins for allowed in self.allowed_organizations)

    def user_info(self, client: httpx.Client, token: OAuth2Token) -> BasicUserInfo:
        """Fetch the Grafana.com user and enforce the organization policy.

        Raises:
            UserInfoError: If the user cannot be fetched or decoded.
            MissingOrganizationMembershipError: If the user is in none of the
                allowed organizations.
        """
        try:
            data = get_json(client, f"{self.url}/api/oauth2/user")
        except (HttpGetError, ValueError) as e:
            raise UserInfoError(f"Error getting user info: {e}") from e

        if not isinstance(data, dict):
            raise UserInfoError("Error getting user info: unexpected response")

        user = BasicUserInfo(
            id=str(data.get("id", 0)),
            name=str(data.get("name") or ""),
            login=str(data.get("username") or ""),
            email=str(data.get("email") or ""),
            role=str(data.get("role") or ""),
        )

        if not self.is_organization_member(data.get("orgs") or []):
            raise MissingOrganizationMembershipError()

        return user
