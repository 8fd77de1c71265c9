"""Permission checks for dashboard saves."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from dashsync.models import SignedInUser


class Guardian(ABC):
    """Answers whether a user may modify one resource in one organization.

    A guardian is created per check through a :data:`GuardianFactory`.
    """

    @abstractmethod
    def can_save(self) -> bool:
        """Return True if the user may save the resource.

        Raises:
            Exception: If the permission cannot be evaluated. The dashboard
                service propagates this error unchanged.
        """
        pass


# (resource_id, org_id, user) -> Guardian
GuardianFactory = Callable[[int, int, SignedInUser], Guardian]
