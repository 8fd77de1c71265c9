"""Google connector."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import httpx

from dashsync.social.base import BasicUserInfo, HttpGetError, SocialBase, UserInfoError, get_json
from dashsync.types import OAuthType

if TYPE_CHECKING:
    from dashsync.social.oauth2 import OAuth2Client, OAuth2Token


class SocialGoogle(SocialBase):
    """Google sign-in, optionally restricted to one G Suite domain.

    The login of a Google user is their e-mail address.
    """

    def __init__(
        self,
        oauth: OAuth2Client,
        api_url: str,
        allowed_domains: Sequence[str] = (),
        hosted_domain: str = "",
        allow_signup: bool = False,
    ) -> None:
        super().__init__(oauth, allowed_domains=allowed_domains, allow_signup=allow_signup)
        self.api_url = api_url
        self.hosted_domain = hosted_domain

    def type(self) -> int:
        return int(OAuthType.GOOGLE)

    def auth_code_url(self, state: str, **extra: str) -> str:
        # "hd" limits the Google account chooser to the hosted domain
        if self.hosted_domain:
            extra.setdefault("hd", self.hosted_domain)
        return super().auth_code_url(state, **extra)

    def user_info(self, client: httpx.Client, token: OAuth2Token) -> BasicUserInfo:
        try:
            data = get_json(client, self.api_url)
        except (HttpGetError, ValueError) as e:
            raise UserInfoError(f"Error getting user info: {e}") from e

        if not isinstance(data, dict):
            raise UserInfoError("Error getting user info: unexpected response")

        email = str(data.get("email") or "")
        return BasicUserInfo(
            name=str(data.get("name") or ""),
            email=email,
            login=email,
        )
