"""OAuth identity providers and external dashboard mirroring."""

from dashsync.social.base import (
    BasicUserInfo,
    IdentityRejectedError,
    InactiveUserError,
    MissingGroupMembershipError,
    MissingOrganizationMembershipError,
    MissingTeamMembershipError,
    OAuthExchangeError,
    SocialBase,
    SocialConnector,
    SocialError,
    UpdateDashboardOptions,
    UserInfoError,
)
from dashsync.social.registry import OAuthProviderRegistry, new_oauth_service
from dashsync.social.settings import (
    GitLabRepo,
    OAuthInfo,
    OAuthSettings,
    get_oauth_providers,
    load_oauth_settings,
)

__all__ = [
    "BasicUserInfo",
    "GitLabRepo",
    "IdentityRejectedError",
    "InactiveUserError",
    "MissingGroupMembershipError",
    "MissingOrganizationMembershipError",
    "MissingTeamMembershipError",
    "OAuthExchangeError",
    "OAuthInfo",
    "OAuthProviderRegistry",
    "OAuthSettings",
    "SocialBase",
    "SocialConnector",
    "SocialError",
    "UpdateDashboardOptions",
    "UserInfoError",
    "get_oauth_providers",
    "load_oauth_settings",
    "new_oauth_service",
]
