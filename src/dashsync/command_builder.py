"""Validation and normalization of dashboard save requests."""

from __future__ import annotations

from dashsync.errors import (
    CannotSaveProvisionedDashboardError,
    DashboardFolderCannotHaveParentError,
    DashboardFolderNameExistsError,
    DashboardInvalidUidError,
    DashboardTitleEmptyError,
    DashboardUidTooLongError,
    DashboardUpdateAccessDeniedError,
)
from dashsync.guardian import GuardianFactory
from dashsync.logging import get_logger
from dashsync.models import (
    MAX_UID_LENGTH,
    ROOT_FOLDER_NAME,
    SaveDashboardCommand,
    SaveDashboardRequest,
    SignedInUser,
    is_valid_short_uid,
)
from dashsync.store import AlertService, DashboardStore

logger = get_logger(__name__)


class DashboardCommandBuilder:
    """Turns a :class:`SaveDashboardRequest` into a :class:`SaveDashboardCommand`.

    Checks run in a fixed order and the first failure is raised:

    1. Title and uid are trimmed; the trimmed title is written back to the JSON model
    2. The title must not be empty
    3. A folder cannot have a parent folder
    4. A folder cannot be named like the root folder
    5. The uid must use the short-uid charset, then be at most 40 characters
    6. Embedded alert rules are validated (optional)
    7. The store pre-validates the save and reports conflicts
    8. A move to another folder requires save permission on the new folder
    9. Provisioned dashboards are refused (optional)
    10. The user needs save permission on the dashboard (or its folder if new)

    The request's dashboard is normalized in place.
    """

    def __init__(
        self,
        store: DashboardStore,
        alerts: AlertService,
        guardian_factory: GuardianFactory,
    ) -> None:
        self.store = store
        self.alerts = alerts
        self.guardian_factory = guardian_factory

    def build(
        self,
        request: SaveDashboardRequest,
        validate_alerts: bool,
        validate_provisioned: bool,
    ) -> SaveDashboardCommand:
        """Validate a save request and build the store command.

        Args:
            request: The save request; its dashboard is normalized in place.
            validate_alerts: Whether to validate embedded alert rules.
            validate_provisioned: Whether to refuse provisioned dashboards.

        Returns:
            The command to hand to the store.

        Raises:
            DashboardValidationError: If the dashboard breaks a structural rule.
            DashboardUpdateAccessDeniedError: If the user may not save it.
            CannotSaveProvisionedDashboardError: If it is provisioned and
                ``validate_provisioned`` is set.
            Exception: Errors of the alert service, the store and the
                guardian are propagated unchanged.
        """
        dash = request.dashboard
        ctx_logger = logger.with_context(org_id=request.org_id, dashboard_uid=dash.uid)

        dash.set_title(dash.title.strip())
        dash.set_uid(dash.uid.strip())

        if dash.title == "":
            raise DashboardTitleEmptyError()

        if dash.is_folder and dash.folder_id > 0:
            raise DashboardFolderCannotHaveParentError()

        if dash.is_folder and dash.title.lower() == ROOT_FOLDER_NAME.lower():
            raise DashboardFolderNameExistsError()

        if not is_valid_short_uid(dash.uid):
            raise DashboardInvalidUidError()
        if len(dash.uid) > MAX_UID_LENGTH:
            raise DashboardUidTooLongError()

        if validate_alerts:
            self.alerts.validate_dashboard_alerts(request.org_id, dash, request.user)

        result = self.store.validate_dashboard_before_save(
            request.org_id, dash, request.overwrite
        )

        if result.is_parent_folder_changed:
            ctx_logger.debug("Parent folder changed, checking access to folder %s", dash.folder_id)
            self._check_can_save(dash.folder_id, request.org_id, request.user)

        if validate_provisioned:
            provisioning = self.store.get_provisioned_dashboard_data_by_dashboard_id(dash.id)
            if provisioning is not None:
                raise CannotSaveProvisionedDashboardError()

        self._check_can_save(dash.save_permission_target(), request.org_id, request.user)

        cmd = SaveDashboardCommand(
            dashboard=dash.data,
            message=request.message,
            org_id=request.org_id,
            overwrite=request.overwrite,
            user_id=request.user.user_id,
            folder_id=dash.folder_id,
            is_folder=dash.is_folder,
            plugin_id=dash.plugin_id,
        )

        if request.updated_at is not None:
            cmd.updated_at = request.updated_at

        ctx_logger.debug("Built save command for dashboard %r", dash.title)
        return cmd

    def _check_can_save(self, resource_id: int, org_id: int, user: SignedInUser) -> None:
        guardian = self.guardian_factory(resource_id, org_id, user)
        if not guardian.can_save():
            raise DashboardUpdateAccessDeniedError()
