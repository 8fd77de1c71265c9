"""Dashboard save and delete flows.

:class:`DashboardService` is the public entry point of the package. Every
flow runs synchronously in the calling thread:

    request -> DashboardCommandBuilder -> (mirror) -> DashboardStore -> AlertService

Errors abort the remaining steps and are raised to the caller. A failure
after the store has persisted a dashboard (for example while updating
alerts) does not roll the save back.
"""

from __future__ import annotations

from dashsync.command_builder import DashboardCommandBuilder
from dashsync.errors import (
    CannotDeleteProvisionedDashboardError,
    DashboardNotFoundError,
    DashboardSyncRequiredError,
    ProvisioningLookupError,
)
from dashsync.guardian import GuardianFactory
from dashsync.logging import get_logger
from dashsync.mirror import DashboardMirror
from dashsync.models import (
    Dashboard,
    DashboardProvisioning,
    SaveDashboardCommand,
    SaveDashboardRequest,
    SignedInUser,
)
from dashsync.store import AlertService, DashboardStore
from dashsync.types import DashboardAction, RoleType

logger = get_logger(__name__)


class DashboardService:
    """Validates, persists and mirrors dashboards."""

    def __init__(
        self,
        store: DashboardStore,
        alerts: AlertService,
        guardian_factory: GuardianFactory,
        mirror: DashboardMirror,
    ) -> None:
        """Initialize the dashboard service.

        Args:
            store: Dashboard persistence.
            alerts: Alert rule validation and synchronization.
            guardian_factory: Creates permission guardians.
            mirror: Sends changes to the user's OAuth provider.
        """
        self.store = store
        self.alerts = alerts
        self.mirror = mirror
        self.builder = DashboardCommandBuilder(store, alerts, guardian_factory)

    def get_provisioned_dashboard_data(self, name: str) -> list[DashboardProvisioning]:
        return self.store.get_provisioned_dashboard_data(name)

    def get_provisioned_dashboard_data_by_dashboard_id(
        self, dashboard_id: int
    ) -> DashboardProvisioning | None:
        return self.store.get_provisioned_dashboard_data_by_dashboard_id(dashboard_id)

    def save_dashboard(self, request: SaveDashboardRequest) -> Dashboard:
        """Save a dashboard on behalf of a user.

        When the user signed in through an OAuth provider, the change is
        mirrored before it is persisted and a mirror failure aborts the
        save. A dashboard moved to another folder is mirrored as a delete
        of the old file followed by a create of the new one; a failure
        between the two leaves the mirror without either file.

        Args:
            request: The save request.

        Returns:
            The persisted dashboard.

        Raises:
            DashboardError: Any validation, permission, provisioning,
                conflict or sync failure.
        """
        cmd = self.builder.build(request, validate_alerts=True, validate_provisioned=True)
        user = request.user
        dashboard = request.dashboard
        ctx_logger = logger.with_context(org_id=request.org_id, dashboard_uid=dashboard.uid)

        if user.has_external_token:
            previous = self._get_previous_dashboard(dashboard)

            if previous is None:
                self.mirror.sync(dashboard, DashboardAction.CREATE, user, request.org_id)
            elif previous.folder_id != dashboard.folder_id:
                ctx_logger.debug(
                    "Dashboard moved from folder %s to %s",
                    previous.folder_id,
                    dashboard.folder_id,
                )
                self.mirror.sync(
                    previous, DashboardAction.DELETE, user, previous.org_id or request.org_id
                )
                try:
                    self.mirror.sync(dashboard, DashboardAction.CREATE, user, request.org_id)
                except Exception:
                    ctx_logger.warning(
                        "Mirrored delete of %r succeeded but create in the new folder failed",
                        previous.title,
                    )
                    raise
            else:
                self.mirror.sync(
                    dashboard, DashboardAction.UPDATE, user, request.org_id, request.message
                )

        result = self._persist(cmd)
        self.alerts.update_dashboard_alerts(request.org_id, result, user)
        ctx_logger.info("Saved dashboard %r (id %s)", result.title, result.id)
        return result

    def save_provisioned_dashboard(
        self, request: SaveDashboardRequest, provisioning: DashboardProvisioning
    ) -> Dashboard:
        """Save a dashboard owned by a provisioning source.

        Runs as an internal admin of the request's organization and skips
        the provisioned-dashboard check. No mirroring takes place.
        """
        request.user = SignedInUser(user_id=0, org_role=RoleType.ADMIN, org_id=request.org_id)

        cmd = self.builder.build(request, validate_alerts=True, validate_provisioned=False)

        result = self.store.save_provisioned_dashboard(cmd, provisioning)
        cmd.result = result

        self.alerts.update_dashboard_alerts(request.org_id, result, request.user)
        logger.info(
            "Saved provisioned dashboard %r from %s",
            result.title,
            provisioning.name,
            extra={"org_id": request.org_id, "dashboard_uid": result.uid},
        )
        return result

    def save_folder_for_provisioned_dashboards(self, request: SaveDashboardRequest) -> Dashboard:
        """Save the folder a provisioning source places its dashboards in.

        Runs as an internal admin. Unlike :meth:`save_provisioned_dashboard`
        the admin carries no organization (``org_id`` 0); the request's
        ``org_id`` is still used for the save itself.
        """
        request.user = SignedInUser(user_id=0, org_role=RoleType.ADMIN)

        cmd = self.builder.build(request, validate_alerts=False, validate_provisioned=False)

        result = self._persist(cmd)
        self.alerts.update_dashboard_alerts(request.org_id, result, request.user)
        logger.info(
            "Saved provisioning folder %r",
            result.title,
            extra={"org_id": request.org_id, "dashboard_uid": result.uid},
        )
        return result

    def import_dashboard(self, request: SaveDashboardRequest) -> Dashboard:
        """Import a dashboard, mirroring it as a new file.

        Raises:
            DashboardSyncRequiredError: If the user has no OAuth token. The
                dashboard is not persisted.
            DashboardError: Any validation, permission, provisioning or
                sync failure.
        """
        cmd = self.builder.build(request, validate_alerts=False, validate_provisioned=True)

        if not request.user.has_external_token:
            raise DashboardSyncRequiredError()

        self.mirror.sync(
            request.dashboard,
            DashboardAction.CREATE,
            request.user,
            request.org_id,
            request.message,
        )

        result = self._persist(cmd)
        logger.info(
            "Imported dashboard %r",
            result.title,
            extra={"org_id": request.org_id, "dashboard_uid": result.uid},
        )
        return result

    def delete_dashboard(self, dashboard_id: int, org_id: int) -> None:
        """Delete a dashboard that is not provisioned.

        Raises:
            ProvisioningLookupError: If the provisioning state cannot be read.
            CannotDeleteProvisionedDashboardError: If the dashboard is provisioned.
        """
        self._delete_dashboard(dashboard_id, org_id, validate_provisioned=True)

    def delete_provisioned_dashboard(self, dashboard_id: int, org_id: int) -> None:
        """Delete a dashboard even if it is provisioned."""
        self._delete_dashboard(dashboard_id, org_id, validate_provisioned=False)

    def unprovision_dashboard(self, dashboard_id: int) -> None:
        """Detach a dashboard from its provisioning source, keeping the dashboard."""
        self.store.unprovision_dashboard(dashboard_id)
        logger.info("Unprovisioned dashboard %s", dashboard_id)

    def _delete_dashboard(self, dashboard_id: int, org_id: int, validate_provisioned: bool) -> None:
        if validate_provisioned:
            try:
                provisioning = self.store.get_provisioned_dashboard_data_by_dashboard_id(
                    dashboard_id
                )
            except Exception as e:
                raise ProvisioningLookupError(
                    f"failed to check if dashboard is provisioned: {e}"
                ) from e

            if provisioning is not None:
                raise CannotDeleteProvisionedDashboardError()

        self.store.delete_dashboard(dashboard_id, org_id)
        logger.info("Deleted dashboard %s", dashboard_id, extra={"org_id": org_id})

    def _persist(self, cmd: SaveDashboardCommand) -> Dashboard:
        result = self.store.save_dashboard(cmd)
        cmd.result = result
        return result

    def _get_previous_dashboard(self, dashboard: Dashboard) -> Dashboard | None:
        # Version 0 means the dashboard has never been stored
        if dashboard.version == 0:
            return None
        try:
            return self.store.get_dashboard(dashboard.id)
        except DashboardNotFoundError:
            return None
