"""Generic OAuth2 / OpenID Connect connector.

Works with any provider exposing a user resource at ``api_url``. Identity
fields are looked up in this order:

- OpenID Connect ``id_token`` claims, when the token carries one that
  yields an e-mail address; otherwise the JSON document at ``api_url``
- e-mail: ``email``, then the ``email_attribute_path`` dot path, then
  ``attributes[email_attribute_name]``, then ``upn``, then the primary
  entry of ``{api_url}/emails``
- login: ``login``, then ``username``, then the e-mail address
- name: ``name``, then ``display_name``

Team and organization restrictions follow the GitHub scheme.
"""

from __future__ import annotations

import base64
import json
from collections.abc import Sequence
from email.utils import parseaddr
from typing import TYPE_CHECKING, Any

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
)
from dashsync.social.github import fetch_organization_logins, fetch_primary_email, fetch_team_ids
from dashsync.types import OAuthType

if TYPE_CHECKING:
    from dashsync.social.oauth2 import OAuth2Client, OAuth2Token

logger = get_logger(__name__)

DEFAULT_EMAIL_ATTRIBUTE_NAME = "email:primary"


def lookup_path(data: Any, path: str) -> Any:
    """Resolve a dot-separated key path in nested mappings.

    Example:
        >>> lookup_path({"profile": {"mail": "a@b.c"}}, "profile.mail")
        'a@b.c'
    """
    current = data
    for key in path.split("."):
        if not isinstance(current, dict) or key not in current:
            return None
        current = current[key]
    return current


class SocialGenericOAuth(SocialBase):
    """Sign-in through a standards-following OAuth2 provider."""

    def __init__(
        self,
        oauth: OAuth2Client,
        api_url: str,
        allowed_domains: Sequence[str] = (),
        allow_signup: bool = False,
        email_attribute_name: str = "",
        email_attribute_path: str = "",
        team_ids: Sequence[int] = (),
        allowed_organizations: Sequence[str] = (),
    ) -> None:
        super().__init__(oauth, allowed_domains=allowed_domains, allow_signup=allow_signup)
        self.api_url = api_url.rstrip("/")
        self.email_attribute_name = email_attribute_name or DEFAULT_EMAIL_ATTRIBUTE_NAME
        self.email_attribute_path = email_attribute_path
        self.team_ids: tuple[int, ...] = tuple(team_ids)
        self.allowed_organizations: tuple[str, ...] = tuple(allowed_organizations)

    def type(self) -> int:
        return int(OAuthType.GENERIC)

    def is_team_member(self, client: httpx.Client) -> bool:
        if not self.team_ids:
            return True

        try:
            memberships = fetch_team_ids(client, f"{self.api_url}/teams")
        except (HttpGetError, ValueError, KeyError, TypeError) as e:
            logger.error("Error getting team memberships: %s", e)
            return False

        return any(team_id in memberships for team_id in self.team_ids)

    def is_organization_member(self, client: httpx.Client) -> bool:
        if not self.allowed_organizations:
            return True

        try:
            logins = fetch_organization_logins(client, f"{self.api_url}/orgs")
        except (HttpGetError, ValueError, AttributeError, TypeError) as e:
            logger.error("Error getting organizations: %s", e)
            return False

        return any(login in logins for login in self.allowed_organizations)

    def extract_email(self, data: dict[str, Any]) -> str:
        """Find the e-mail address in a user document, or return ``""``."""
        email = data.get("email")
        if email:
            return str(email)

        if self.email_attribute_path:
            value = lookup_path(data, self.email_attribute_path)
            if isinstance(value, str) and value:
                return value

        attributes = data.get("attributes")
        if isinstance(attributes, dict):
            values = attributes.get(self.email_attribute_name)
            if isinstance(values, list) and values:
                return str(values[0])

        upn = data.get("upn")
        if upn:
            _, address = parseaddr(str(upn))
            if "@" in address:
                return address

        return ""

    def claims_from_id_token(self, token: OAuth2Token) -> dict[str, Any] | None:
        """Decode the ``id_token`` claims of a token if they name an e-mail address.

        The token signature is not verified.
        """
        id_token = token.extra.get("id_token")
        if not id_token:
            return None

        parts = str(id_token).split(".")
        if len(parts) != 3:
            logger.error("Error decoding id_token: expected 3 segments, got %s", len(parts))
            return None

        segment = parts[1] + "=" * (-len(parts[1]) % 4)
        try:
            claims = json.loads(base64.urlsafe_b64decode(segment))
        except ValueError as e:
            logger.error("Error decoding id_token payload: %s", e)
            return None

        if not isinstance(claims, dict):
            return None

        if not self.extract_email(claims):
            logger.debug("No email found in id_token")
            return None

        return claims

    def user_info(self, client: httpx.Client, token: OAuth2Token) -> BasicUserInfo:
        """Resolve the user from the id_token or the user resource.

        Raises:
            UserInfoError: If the user or their e-mail cannot be fetched.
            MissingTeamMembershipError: If the user is in none of the allowed teams.
            MissingOrganizationMembershipError: If the user is in none of the
                allowed organizations.
        """
        data = self.claims_from_id_token(token)
        if data is None:
            try:
                fetched = get_json(client, self.api_url)
            except HttpGetError as e:
                raise UserInfoError(f"Error getting user info: {e}") from e
            except ValueError as e:
                raise UserInfoError(f"Error decoding user info JSON: {e}") from e
            if not isinstance(fetched, dict):
                raise UserInfoError("Error decoding user info JSON: unexpected response")
            data = fetched

        email = self.extract_email(data)
        if not email:
            try:
                email = fetch_primary_email(client, f"{self.api_url}/emails")
            except (HttpGetError, ValueError, AttributeError, TypeError) as e:
                raise UserInfoError(f"Error getting email address: {e}") from e

        user = BasicUserInfo(
            id=str(data.get("id") or data.get("sub") or ""),
            name=str(data.get("name") or data.get("display_name") or ""),
            login=str(data.get("login") or data.get("username") or email),
            email=email,
        )

        if not self.is_team_member(client):
            raise MissingTeamMembershipError()

        if not self.is_organization_member(client):
            raise MissingOrganizationMembershipError()

        return user
