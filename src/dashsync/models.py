"""Dashboard domain models shared by the command pipeline and its collaborators."""

from __future__ import annotations

import base64
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from slugify import slugify as make_slug

from dashsync.types import RoleType

# Name of the implicit root folder; no real folder may use it
ROOT_FOLDER_NAME = "General"

# Maximum length of a dashboard uid
MAX_UID_LENGTH = 40

# Allowed uid charset; the empty uid is valid and is filled in by the store
SHORT_UID_PATTERN = re.compile(r"[a-zA-Z0-9\-_]*")


def is_valid_short_uid(uid: str) -> bool:
    """Return True if ``uid`` only uses the short-uid charset."""
    return SHORT_UID_PATTERN.fullmatch(uid) is not None


def slugify(title: str) -> str:
    """Build the URL-safe slug for a dashboard title.

    Non-Latin characters are transliterated. A title with nothing left to
    slug is encoded as unpadded base64url instead, so it never maps to an
    empty file name.

    Example:
        >>> slugify("Production Overview (EU)")
        'production-overview-eu'
    """
    slug = make_slug(title.lower())
    if not slug:
        slug = base64.urlsafe_b64encode(title.encode()).rstrip(b"=").decode()
    return slug


@dataclass
class Dashboard:
    """A dashboard or folder as seen by the save pipeline.

    ``data`` is the raw JSON model. ``title`` and ``uid`` mirror the
    ``"title"`` and ``"uid"`` keys of ``data`` and must be kept in sync
    through :meth:`set_title` and :meth:`set_uid`.
    """

    id: int = 0
    uid: str = ""
    org_id: int = 0
    title: str = ""
    folder_id: int = 0
    is_folder: bool = False
    version: int = 0
    plugin_id: str = ""
    slug: str = ""
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Dashboard:
        """Create a dashboard from its JSON model.

        The id, version, uid and title are read from the model. A model
        without an id is a new dashboard and has its version reset to 0.
        """
        title = data.get("title") or ""
        dashboard = cls(
            uid=data.get("uid") or "",
            title=title,
            slug=slugify(title),
            data=data,
        )

        raw_id = data.get("id")
        if isinstance(raw_id, int | float) and not isinstance(raw_id, bool):
            dashboard.id = int(raw_id)
            raw_version = data.get("version")
            if isinstance(raw_version, int | float) and not isinstance(raw_version, bool):
                dashboard.version = int(raw_version)
        else:
            data["version"] = 0

        return dashboard

    def set_title(self, title: str) -> None:
        self.title = title
        self.data["title"] = title

    def set_uid(self, uid: str) -> None:
        self.uid = uid
        self.data["uid"] = uid

    def update_slug(self) -> None:
        self.slug = slugify(self.title)

    def save_permission_target(self) -> int:
        """Return the resource id the save permission is checked against.

        An existing dashboard is checked against itself; a new one against
        the folder it is being created in.
        """
        if self.id == 0:
            return self.folder_id
        return self.id


@dataclass
class SignedInUser:
    """The identity performing an operation.

    ``auth_module`` names the OAuth provider the user signed in with and
    ``token`` is that provider's access token. Users with a token have
    their dashboard changes mirrored to the provider.
    """

    user_id: int = 0
    org_id: int = 0
    org_role: RoleType = RoleType.VIEWER
    login: str = ""
    name: str = ""
    email: str = ""
    auth_module: str = ""
    token: str = ""

    @property
    def has_external_token(self) -> bool:
        return self.token != ""


@dataclass
class SaveDashboardRequest:
    """A single save request; owned by one service call and mutated by it."""

    org_id: int
    dashboard: Dashboard
    user: SignedInUser
    message: str = ""
    overwrite: bool = False
    updated_at: datetime | None = None


@dataclass
class DashboardProvisioning:
    """Link between a dashboard and the provisioning source that owns it."""

    dashboard_id: int = 0
    name: str = ""
    external_id: str = ""
    check_sum: str = ""
    updated: int = 0
    id: int = 0


@dataclass
class SaveDashboardCommand:
    """Normalized instruction handed to the dashboard store.

    ``result`` is filled in by the store with the persisted dashboard.
    ``updated_at`` is None unless the caller supplied an explicit time.
    """

    dashboard: dict[str, Any]
    org_id: int = 0
    user_id: int = 0
    message: str = ""
    overwrite: bool = False
    folder_id: int = 0
    is_folder: bool = False
    plugin_id: str = ""
    updated_at: datetime | None = None
    result: Dashboard | None = None

    def get_dashboard_model(self) -> Dashboard:
        """Re-derive the dashboard described by this command."""
        dashboard = Dashboard.from_json(self.dashboard)
        dashboard.org_id = self.org_id
        dashboard.plugin_id = self.plugin_id
        dashboard.is_folder = self.is_folder
        dashboard.folder_id = self.folder_id
        dashboard.update_slug()
        return dashboard


@dataclass
class ValidateBeforeSaveResult:
    """Outcome of the store's pre-save validation."""

    is_parent_folder_changed: bool = False
