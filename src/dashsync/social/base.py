"""Provider-independent OAuth connector contract.

Every supported identity provider is a :class:`SocialConnector`. The
connectors share :class:`SocialBase`, which holds the provider's
:class:`~dashsync.social.oauth2.OAuth2Client` and implements the
authorization-code flow, the e-mail domain policy and a no-op dashboard
sync. Variants only add identity lookup and, for GitLab, dashboard
mirroring.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

from dashsync.logging import get_logger
from dashsync.types import DashboardAction

if TYPE_CHECKING:
    from dashsync.social.oauth2 import OAuth2Client, OAuth2Token

logger = get_logger(__name__)

# Link header entry pointing at the next page of a paginated listing
NEXT_LINK_PATTERN = re.compile(r'<([^>]+)>; rel="next"')


class SocialError(Exception):
    """Base class for errors raised by OAuth connectors."""

    pass


class OAuthExchangeError(SocialError):
    """Raised when an authorization code cannot be exchanged for a token."""

    pass


class UserInfoError(SocialError):
    """Raised when the provider's identity API cannot be read."""

    pass


class HttpGetError(SocialError):
    """Raised by :func:`http_get` for transport failures and non-2xx responses."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class IdentityRejectedError(SocialError):
    """Raised when an authenticated identity fails the provider's sign-in policy."""

    default_message = "User is not allowed to sign in"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class InactiveUserError(IdentityRejectedError):
    default_message = "User is inactive"


class MissingGroupMembershipError(IdentityRejectedError):
    default_message = "User not a member of one of the required groups"


class MissingTeamMembershipError(IdentityRejectedError):
    default_message = "User not a member of one of the required teams"


class MissingOrganizationMembershipError(IdentityRejectedError):
    default_message = "User not a member of one of the required organizations"


@dataclass
class BasicUserInfo:
    """Identity reported by a provider after sign-in."""

    id: str = ""
    name: str = ""
    email: str = ""
    login: str = ""
    company: str = ""
    role: str = ""
    groups: list[str] = field(default_factory=list)


@dataclass
class UpdateDashboardOptions:
    """One file change to mirror into an external repository.

    Attributes:
        action: Whether the file is created, updated or deleted.
        message: Commit message supplied by the user (used for updates).
        title: Dashboard title, used in generated commit messages.
        name: File name without the ``.json`` extension.
        dashboard: Serialized dashboard JSON written to the file.
        folder: Folder directory the file lives in.
        org_id: Organization whose repository mapping is used.
    """

    action: DashboardAction
    message: str = ""
    title: str = ""
    name: str = ""
    dashboard: str = ""
    folder: str = ""
    org_id: int = 0


class SocialConnector(ABC):
    """Abstract interface for one configured OAuth identity provider."""

    @abstractmethod
    def type(self) -> int:
        """Return the numeric provider tag (see :class:`dashsync.types.OAuthType`)."""
        pass

    @abstractmethod
    def user_info(self, client: httpx.Client, token: OAuth2Token) -> BasicUserInfo:
        """Fetch and vet the identity behind ``token``.

        Args:
            client: HTTP client authenticated with ``token``.
            token: The token issued by the provider.

        Returns:
            The user's identity.

        Raises:
            UserInfoError: If the identity API cannot be read.
            IdentityRejectedError: If the identity fails the provider's policy.
        """
        pass

    @abstractmethod
    def is_email_allowed(self, email: str) -> bool:
        pass

    @abstractmethod
    def is_signup_allowed(self) -> bool:
        pass

    @abstractmethod
    def update_dashboard(self, options: UpdateDashboardOptions, token: str) -> None:
        """Mirror a dashboard change into the provider's repository.

        Args:
            options: The file change to mirror.
            token: The user's access token for the provider.

        Raises:
            DashboardSyncError: If the change cannot be mirrored.
        """
        pass

    @abstractmethod
    def auth_code_url(self, state: str, **extra: str) -> str:
        pass

    @abstractmethod
    def exchange(self, code: str) -> OAuth2Token:
        pass

    @abstractmethod
    def client(self, token: OAuth2Token) -> httpx.Client:
        pass


class SocialBase(SocialConnector):
    """Behavior shared by every provider variant.

    Subclasses implement :meth:`type` and :meth:`user_info`.
    """

    def __init__(
        self,
        oauth: OAuth2Client,
        allowed_domains: Sequence[str] = (),
        allow_signup: bool = False,
    ) -> None:
        self.oauth = oauth
        self.allowed_domains: tuple[str, ...] = tuple(allowed_domains)
        self.allow_signup = allow_signup

    def is_email_allowed(self, email: str) -> bool:
        return is_email_allowed(email, self.allowed_domains)

    def is_signup_allowed(self) -> bool:
        return self.allow_signup

    def update_dashboard(self, options: UpdateDashboardOptions, token: str) -> None:
        # Providers without a repository accept and drop dashboard changes
        return None

    def auth_code_url(self, state: str, **extra: str) -> str:
        return self.oauth.auth_code_url(state, **extra)

    def exchange(self, code: str) -> OAuth2Token:
        return self.oauth.exchange(code)

    def client(self, token: OAuth2Token) -> httpx.Client:
        return self.oauth.client(token)


def is_email_allowed(email: str, allowed_domains: Sequence[str]) -> bool:
    """Check an e-mail address against a domain allow-list.

    An empty allow-list admits every address.

    Example:
        >>> is_email_allowed("jane@example.com", ["example.com"])
        True
        >>> is_email_allowed("jane@example.org", ["example.com"])
        False
    """
    if not allowed_domains:
        return True
    return any(email.endswith(f"@{domain}") for domain in allowed_domains)


def http_get(client: httpx.Client, url: str) -> httpx.Response:
    """GET ``url`` and return the response if it succeeded.

    Args:
        client: Authenticated HTTP client.
        url: Absolute URL to fetch.

    Returns:
        The response, with a status below 300.

    Raises:
        HttpGetError: On transport failures and responses with status >= 300.
            The message of a failed response is its body.
    """
    try:
        response = client.get(url)
    except httpx.RequestError as e:
        raise HttpGetError(f"GET {url} failed: {e}") from e

    if response.status_code >= 300:
        raise HttpGetError(response.text, status_code=response.status_code)

    logger.debug(
        "HTTP GET %s: %s", url, response.status_code, extra={"diagnostic_tag": "http"}
    )
    return response


def get_json(client: httpx.Client, url: str) -> Any:
    """GET ``url`` and decode its JSON body.

    Raises:
        HttpGetError: If the request fails.
        ValueError: If the body is not valid JSON.
    """
    return http_get(client, url).json()


def next_page_url(response: httpx.Response) -> str:
    """Return the ``rel="next"`` URL of a response's Link header, or ``""``."""
    link = response.headers.get("Link")
    if not link:
        return ""
    match = NEXT_LINK_PATTERN.search(link)
    if match is None:
        return ""
    return match.group(1)
