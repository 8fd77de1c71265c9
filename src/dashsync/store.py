"""Collaborator interfaces for dashboard persistence and alerting.

The dashboard service never talks to a database directly. It depends on
these narrow interfaces, which allows it to work with different
implementations:
- A real storage engine (production)
- In-memory fakes (testing)

Implementations raise the errors from :mod:`dashsync.errors` (for example
:class:`~dashsync.errors.DashboardVersionMismatchError`); the service
propagates them unchanged.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from dashsync.models import (
    Dashboard,
    DashboardProvisioning,
    SaveDashboardCommand,
    SignedInUser,
    ValidateBeforeSaveResult,
)


class DashboardStore(ABC):
    """Abstract interface for dashboard persistence."""

    @abstractmethod
    def save_dashboard(self, cmd: SaveDashboardCommand) -> Dashboard:
        """Persist a dashboard.

        Args:
            cmd: The save command. ``cmd.result`` is set to the persisted dashboard.

        Returns:
            The persisted dashboard.
        """
        pass

    @abstractmethod
    def save_provisioned_dashboard(
        self, cmd: SaveDashboardCommand, provisioning: DashboardProvisioning
    ) -> Dashboard:
        """Persist a dashboard and its provisioning link as one unit.

        Args:
            cmd: The save command. ``cmd.result`` is set to the persisted dashboard.
            provisioning: The provisioning record to upsert for the dashboard.

        Returns:
            The persisted dashboard.
        """
        pass

    @abstractmethod
    def delete_dashboard(self, dashboard_id: int, org_id: int) -> None:
        """Delete a dashboard and any provisioning record pointing at it."""
        pass

    @abstractmethod
    def get_dashboard(self, dashboard_id: int) -> Dashboard | None:
        """Return the stored dashboard with ``dashboard_id``, or None if missing."""
        pass

    @abstractmethod
    def get_provisioned_dashboard_data(self, name: str) -> list[DashboardProvisioning]:
        """Return every provisioning record created by the named source."""
        pass

    @abstractmethod
    def get_provisioned_dashboard_data_by_dashboard_id(
        self, dashboard_id: int
    ) -> DashboardProvisioning | None:
        """Return the provisioning record for a dashboard, or None if not provisioned."""
        pass

    @abstractmethod
    def unprovision_dashboard(self, dashboard_id: int) -> None:
        """Remove the provisioning record of a dashboard, leaving the dashboard itself."""
        pass

    @abstractmethod
    def validate_dashboard_before_save(
        self, org_id: int, dashboard: Dashboard, overwrite: bool
    ) -> ValidateBeforeSaveResult:
        """Check a pending save against the stored state.

        Args:
            org_id: Organization the dashboard is saved in.
            dashboard: The normalized dashboard about to be saved.
            overwrite: Whether conflicting stored versions may be overwritten.

        Returns:
            Whether the dashboard's parent folder changes with this save.

        Raises:
            DashboardConflictError: If the save would clobber another change
                and ``overwrite`` is False.
        """
        pass


class AlertService(ABC):
    """Abstract interface for the alert rules embedded in dashboards."""

    @abstractmethod
    def validate_dashboard_alerts(
        self, org_id: int, dashboard: Dashboard, user: SignedInUser
    ) -> None:
        """Validate the alert rules of a dashboard before it is saved.

        Raises:
            Exception: Any validation failure; propagated to the caller as-is.
        """
        pass

    @abstractmethod
    def update_dashboard_alerts(
        self, org_id: int, dashboard: Dashboard, user: SignedInUser
    ) -> None:
        """Synchronize alert rules with a freshly persisted dashboard."""
        pass
