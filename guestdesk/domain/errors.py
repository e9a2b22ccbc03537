"""Exception hierarchy shared by the repository, services and controllers."""

from __future__ import annotations


class GuestDeskError(Exception):
    """Base class for guest desk failures."""


class NotFoundError(GuestDeskError):
    """Raised when a referenced entity does not exist."""


class TaskNotFoundError(NotFoundError):
    """Raised when a task id is unknown."""


class OfferNotFoundError(NotFoundError):
    """Raised when no offer exists for a task/employee pair."""


class DepartmentNotFoundError(NotFoundError):
    """Raised when a department id is unknown."""


class GuestRequestNotFoundError(NotFoundError):
    """Raised when a guest request id is unknown."""


class OfferExpiredError(GuestDeskError):
    """Raised when an offer is accepted after its validity window."""


class ConflictError(GuestDeskError):
    """Raised when an entity was already resolved by someone else."""


class OfferConflictError(ConflictError):
    """Raised when an offer is no longer pending."""


class GuestRequestConflictError(ConflictError):
    """Raised when a guest request was already claimed."""


class NoEligibleEmployeeError(GuestDeskError):
    """Raised when a department has nobody to receive a task."""


class UnauthorizedActionError(GuestDeskError):
    """Raised when an employee acts on a task not assigned to them."""


class InvalidTransitionError(GuestDeskError):
    """Raised when a task status change is not allowed."""


class StoreError(GuestDeskError):
    """Raised when the underlying store read or write fails."""
