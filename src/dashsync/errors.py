"""Dashboard error hierarchy.

Every failure of the save/delete pipeline is raised as a subclass of
:class:`DashboardError`. Each class carries a default message and an HTTP
``status_code`` so that a web layer can translate errors without knowing
the individual classes:

- Validation errors (400): empty title, bad or long uid, folder rules
- Access denied (403): the guardian refused or failed the save check
- Conflicts (412): raised by the store's pre-save validation
- Provisioning conflicts (400): manual save/delete of a provisioned dashboard
- Sync errors: import without an external token (400), or any failure
  writing to the external mirror (500)
"""

from __future__ import annotations


class DashboardError(Exception):
    """Base class for dashboard pipeline errors."""

    status_code: int = 500
    default_message: str = "Dashboard operation failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class DashboardValidationError(DashboardError):
    """Raised when a dashboard payload violates a structural rule."""

    status_code = 400
    default_message = "Dashboard is invalid"


class DashboardTitleEmptyError(DashboardValidationError):
    default_message = "Dashboard title cannot be empty"


class DashboardFolderCannotHaveParentError(DashboardValidationError):
    default_message = "A Dashboard Folder cannot be added to another folder"


class DashboardFolderNameExistsError(DashboardValidationError):
    default_message = "A folder with that name already exists"


class DashboardInvalidUidError(DashboardValidationError):
    default_message = "uid contains illegal characters"


class DashboardUidTooLongError(DashboardValidationError):
    default_message = "uid too long. max 40 characters"


class DashboardUpdateAccessDeniedError(DashboardError):
    """Raised when the acting user may not save to the target resource."""

    status_code = 403
    default_message = "Access denied to save dashboard"


class DashboardConflictError(DashboardError):
    """Raised by the store when a save would clobber a concurrent change."""

    status_code = 412
    default_message = "Dashboard conflicts with an existing dashboard"


class DashboardVersionMismatchError(DashboardConflictError):
    default_message = "The dashboard has been changed by someone else"


class DashboardNotFoundError(DashboardError):
    status_code = 404
    default_message = "Dashboard not found"


class ProvisionedDashboardError(DashboardError):
    """Raised when a manual operation targets a provisioned dashboard."""

    status_code = 400
    default_message = "Dashboard is provisioned"


class CannotSaveProvisionedDashboardError(ProvisionedDashboardError):
    default_message = "Cannot save provisioned dashboard"


class CannotDeleteProvisionedDashboardError(ProvisionedDashboardError):
    default_message = "provisioned dashboard cannot be deleted"


class ProvisioningLookupError(DashboardError):
    """Raised when the provisioning state of a dashboard cannot be determined."""

    default_message = "failed to check if dashboard is provisioned"


class DashboardSyncRequiredError(DashboardError):
    """Raised when a flow requires an external identity token and none is present."""

    status_code = 400
    default_message = "Dashboard sync requires an external identity, sign in with OAuth"


class DashboardSyncError(DashboardError):
    """Opaque failure writing a dashboard to the external mirror.

    Transport errors, API errors and missing repository mappings all
    collapse into this error; the cause is chained but never part of
    the message.
    """

    status_code = 500
    default_message = "Failed to sync dashboard with the external repository"


class ConfigurationError(Exception):
    """Raised when OAuth provider configuration cannot be loaded.

    Example:
        >>> raise ConfigurationError("'auth' must be a mapping in oauth.yaml")
    """

    pass
