"""Service-layer exceptions.

Services raise these; the API layer maps them to HTTP responses in one place
(see main.py). Nothing here is recovered silently.
"""

from __future__ import annotations


class ComplaintDeskError(Exception):
    """Base exception for service errors."""

    status_code = 400

    def __init__(self, message: str | None = None):
        self.message = message or self.__class__.__doc__ or self.__class__.__name__
        super().__init__(self.message)


class NotFound(ComplaintDeskError):
    """Entity not found."""

    status_code = 404

    def __init__(self, entity: str, entity_id: object | None = None):
        self.entity = entity
        self.entity_id = entity_id
        detail = f"{entity} not found" if entity_id is None else f"{entity} {entity_id} not found"
        super().__init__(detail)


class Forbidden(ComplaintDeskError):
    """Acting user lacks authority for this action."""

    status_code = 403


class InvalidRole(ComplaintDeskError):
    """User role does not allow this part in the action."""

    status_code = 422


class InvalidTransition(ComplaintDeskError):
    """Target status is not reachable from the current status."""

    status_code = 409

    def __init__(self, from_status: str, to_status: str, message: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(message or f"Cannot move complaint from {from_status} to {to_status}")


class TerminalState(ComplaintDeskError):
    """Complaint is closed or withdrawn."""

    status_code = 409

    def __init__(self, status: str):
        self.status = status
        super().__init__(f"Complaint is {status} and can no longer be changed")


class Conflict(ComplaintDeskError):
    """Complaint changed concurrently; re-read and retry."""

    status_code = 409

    def __init__(self, expected: str, actual: str | None = None):
        self.expected = expected
        self.actual = actual
        detail = f"Complaint status changed concurrently: expected {expected}"
        if actual:
            detail += f", found {actual}"
        super().__init__(detail)


class PersistenceFailure(ComplaintDeskError):
    """Database write failed; nothing was applied."""

    status_code = 503


class ValidationError(ComplaintDeskError):
    """Request data failed a domain rule."""

    status_code = 422


class AlreadyExists(ComplaintDeskError):
    """Entity already exists."""

    status_code = 409


class AlreadyMember(AlreadyExists):
    """User is already a member of the team."""


class InUse(ComplaintDeskError):
    """Entity is still referenced and cannot be removed."""

    status_code = 409
