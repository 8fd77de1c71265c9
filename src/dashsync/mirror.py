"""Mirroring of dashboard changes through the user's OAuth provider."""

from __future__ import annotations

import json
from collections.abc import Mapping

from dashsync.errors import DashboardNotFoundError, DashboardSyncError
from dashsync.logging import get_logger
from dashsync.models import ROOT_FOLDER_NAME, Dashboard, SignedInUser, slugify
from dashsync.social.base import SocialConnector, UpdateDashboardOptions
from dashsync.store import DashboardStore
from dashsync.types import DashboardAction

logger = get_logger(__name__)

# Folder directory used when a dashboard's folder no longer exists
UNKNOWN_FOLDER_NAME = "unknown"


class DashboardMirror:
    """Sends dashboard changes to the connector the user signed in with.

    The file of a dashboard is ``<folder title>/<slug>.json``; dashboards
    outside any folder live under ``General``.
    """

    def __init__(
        self,
        connectors: Mapping[str, SocialConnector],
        store: DashboardStore,
    ) -> None:
        self.connectors = connectors
        self.store = store

    def folder_name(self, dashboard: Dashboard) -> str:
        """Return the directory name of the folder holding ``dashboard``."""
        if dashboard.folder_id == 0:
            return ROOT_FOLDER_NAME

        try:
            folder = self.store.get_dashboard(dashboard.folder_id)
        except DashboardNotFoundError:
            folder = None

        if folder is None:
            return UNKNOWN_FOLDER_NAME
        return folder.title

    def build_options(
        self,
        dashboard: Dashboard,
        action: DashboardAction,
        org_id: int,
        message: str = "",
    ) -> UpdateDashboardOptions:
        return UpdateDashboardOptions(
            action=action,
            message=message,
            title=dashboard.title,
            name=dashboard.slug or slugify(dashboard.title),
            dashboard=json.dumps(dashboard.data, indent=2, ensure_ascii=False),
            folder=self.folder_name(dashboard),
            org_id=org_id,
        )

    def sync(
        self,
        dashboard: Dashboard,
        action: DashboardAction,
        user: SignedInUser,
        org_id: int,
        message: str = "",
    ) -> None:
        """Mirror one change of ``dashboard`` with the user's token.

        Args:
            dashboard: The dashboard whose file is changed.
            action: Whether the file is created, updated or deleted.
            user: The acting user; ``auth_module`` selects the connector.
            org_id: Organization whose repository receives the change.
            message: Commit message supplied by the user.

        Raises:
            DashboardSyncError: If the user's provider is not configured or
                the connector fails to mirror the change.
        """
        connector = self.connectors.get(user.auth_module)
        if connector is None:
            logger.error(
                "No OAuth provider %r configured for dashboard sync",
                user.auth_module,
                extra={"org_id": org_id},
            )
            raise DashboardSyncError()

        options = self.build_options(dashboard, action, org_id, message)
        logger.debug(
            "Mirroring %s of %s/%s.json",
            action,
            options.folder,
            options.name,
            extra={"diagnostic_tag": "mirror", "provider": user.auth_module},
        )
        connector.update_dashboard(options, user.token)
