"""GitLab connector with dashboard mirroring.

Besides sign-in, this connector mirrors dashboard changes into a GitLab
repository. Each organization maps to one repository; a change becomes a
single-file commit created with the acting user's OAuth token through the
commits API:
https://docs.gitlab.com/ee/api/commits.html#create-a-commit-with-multiple-files-and-actions
"""

from __future__ import annotations

import posixpath
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import httpx

from dashsync.errors import DashboardSyncError
from dashsync.logging import get_logger
from dashsync.social.base import (
    BasicUserInfo,
    HttpGetError,
    InactiveUserError,
    MissingGroupMembershipError,
    SocialBase,
    UpdateDashboardOptions,
    UserInfoError,
    get_json,
    http_get,
    next_page_url,
)
from dashsync.social.settings import GitLabRepo
from dashsync.types import DashboardAction, OAuthType

if TYPE_CHECKING:
    from dashsync.social.oauth2 import OAuth2Client, OAuth2Token

logger = get_logger(__name__)

# Path segment of the GitLab REST API
API_VERSION_PATH = "/api/v4"

# Default timeout for commit requests (connect, read, write, pool)
DEFAULT_TIMEOUT = httpx.Timeout(10.0, read=30.0)


def create_commit_message(options: UpdateDashboardOptions) -> str:
    """Build the commit message for a mirrored change.

    Example:
        >>> create_commit_message(UpdateDashboardOptions(DashboardAction.CREATE, title="Ops"))
        'Create Ops dashboard'
    """
    if options.action == DashboardAction.CREATE:
        return f"Create {options.title} dashboard"
    if options.action == DashboardAction.DELETE:
        return f"Delete {options.title} dashboard"
    return f"Update {options.title} dashboard\n\n{options.message}"


def api_base_url(url: str) -> str:
    """Return the REST API root of a GitLab instance URL."""
    base = url.rstrip("/")
    if not base.endswith(API_VERSION_PATH):
        base += API_VERSION_PATH
    return base


class SocialGitlab(SocialBase):
    """GitLab sign-in with group policy and dashboard mirroring."""

    def __init__(
        self,
        oauth: OAuth2Client,
        api_url: str,
        allowed_domains: Sequence[str] = (),
        allow_signup: bool = False,
        allowed_groups: Sequence[str] = (),
        repos: Sequence[GitLabRepo] = (),
        timeout: httpx.Timeout | float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the GitLab connector.

        Args:
            oauth: OAuth2 client configured for the GitLab instance.
            api_url: GitLab API root, e.g. ``https://gitlab.com/api/v4``.
            allowed_domains: E-mail domains allowed to sign in (empty = all).
            allow_signup: Whether unknown users may be created on sign-in.
            allowed_groups: Group full paths allowed to sign in (empty = all).
            repos: Repository mapping per organization.
            timeout: Optional timeout for commit requests.
            transport: Optional httpx transport for commit requests.
        """
        super().__init__(oauth, allowed_domains=allowed_domains, allow_signup=allow_signup)
        self.api_url = api_url.rstrip("/")
        self.allowed_groups: tuple[str, ...] = tuple(allowed_groups)
        self.repos: tuple[GitLabRepo, ...] = tuple(repos)
        self.timeout = timeout if timeout is not None else DEFAULT_TIMEOUT
        self._transport = transport

    def type(self) -> int:
        return int(OAuthType.GITLAB)

    def get_repo(self, org_id: int) -> GitLabRepo | None:
        """Return the repository mapped to ``org_id``.

        When several mappings name the same organization the first one wins.
        """
        for repo in self.repos:
            if repo.org_id == org_id:
                return repo
        return None

    def update_dashboard(self, options: UpdateDashboardOptions, token: str) -> None:
        """Commit one dashboard file change to the organization's repository.

        Raises:
            DashboardSyncError: If the organization has no repository, or the
                commit request fails for any reason.
        """
        repo = self.get_repo(options.org_id)
        if repo is None:
            logger.error("No GitLab repository configured for org %s", options.org_id)
            raise DashboardSyncError()

        file_path = posixpath.join(repo.dashboards_path, options.folder, f"{options.name}.json")
        payload: dict[str, Any] = {
            "branch": repo.branch,
            "commit_message": create_commit_message(options),
            "actions": [
                {
                    "action": str(options.action),
                    "file_path": file_path,
                    "content": options.dashboard,
                }
            ],
        }
        url = f"{api_base_url(repo.url)}/projects/{repo.repo_id}/repository/commits"

        logger.debug(
            "Committing %s of %s to %s",
            options.action,
            file_path,
            url,
            extra={"diagnostic_tag": "mirror"},
        )

        try:
            with httpx.Client(
                headers={"Authorization": f"Bearer {token}"},
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = client.post(url, json=payload)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "GitLab commit to project %s failed with status %s",
                repo.repo_id,
                e.response.status_code,
            )
            raise DashboardSyncError() from e
        except httpx.RequestError as e:
            logger.error("GitLab commit to project %s failed: %s", repo.repo_id, e)
            raise DashboardSyncError() from e

        logger.info(
            "Mirrored %s of %s to GitLab project %s", options.action, file_path, repo.repo_id
        )

    def is_group_member(self, groups: Sequence[str]) -> bool:
        """Check the user's groups against the allow-list; an empty list admits all."""
        if not self.allowed_groups:
            return True
        return any(group in self.allowed_groups for group in groups)

    def get_groups(self, client: httpx.Client) -> list[str]:
        """Return the full paths of every group the user belongs to.

        Pages are followed through the Link header until a page has no next
        link or fails to load. Groups keep page order and are not deduplicated.
        """
        groups: list[str] = []
        page, url = self.get_groups_page(client, f"{self.api_url}/groups")
        while page is not None:
            groups.extend(page)
            page, url = self.get_groups_page(client, url)
        return groups

    def get_groups_page(self, client: httpx.Client, url: str) -> tuple[list[str] | None, str]:
        """Fetch one page of groups.

        Args:
            client: HTTP client authenticated as the user.
            url: Page URL. An empty URL ends the listing.

        Returns:
            The group full paths of the page (None if the page could not be
            loaded) and the URL of the next page (empty if there is none).
        """
        if not url:
            return None, ""

        try:
            response = http_get(client, url)
        except HttpGetError as e:
            logger.error("Error getting groups from GitLab API: %s", e)
            return None, ""

        try:
            data = response.json()
        except ValueError as e:
            logger.error("Error parsing JSON from GitLab API: %s", e)
            return None, ""

        if not isinstance(data, list):
            logger.error("Error parsing JSON from GitLab API: expected a list of groups")
            return None, ""

        full_paths = [
            str(group.get("full_path") or "") if isinstance(group, dict) else "" for group in data
        ]
        next_url = next_page_url(response)
        logger.debug(
            "Fetched %s groups from %s", len(full_paths), url, extra={"diagnostic_tag": "groups"}
        )
        return full_paths, next_url

    def user_info(self, client: httpx.Client, token: OAuth2Token) -> BasicUserInfo:
        """Fetch the GitLab user and enforce the active-state and group policy.

        Raises:
            UserInfoError: If the user cannot be fetched or decoded.
            InactiveUserError: If the account is not active.
            MissingGroupMembershipError: If the user is in none of the
                allowed groups. A failed group listing counts as no groups.
        """
        try:
            data = get_json(client, f"{self.api_url}/user")
        except (HttpGetError, ValueError) as e:
            raise UserInfoError(f"Error getting user info: {e}") from e

        if not isinstance(data, dict):
            raise UserInfoError("Error getting user info: unexpected response")

        username = str(data.get("username") or "")
        if data.get("state") != "active":
            raise InactiveUserError(f"User {username} is inactive")

        groups = self.get_groups(client)

        user = BasicUserInfo(
            id=str(data.get("id", 0)),
            name=str(data.get("name") or ""),
            login=username,
            email=str(data.get("email") or ""),
            groups=groups,
        )

        if not self.is_group_member(groups):
            raise MissingGroupMembershipError()

        return user
