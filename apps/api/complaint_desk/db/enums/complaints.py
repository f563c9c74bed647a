"""Complaint-related enums."""

from enum import Enum


class ComplaintCategory(str, Enum):
    BUG = "BUG"
    DELAY = "DELAY"
    QUALITY = "QUALITY"
    COMMUNICATION = "COMMUNICATION"
    OTHER = "OTHER"


class ComplaintStatus(str, Enum):
    """
    Complaint lifecycle status.

    PENDING -> IN_PROGRESS -> RESOLVED -> CLOSED, with WITHDRAWN reachable
    from PENDING or IN_PROGRESS. CLOSED and WITHDRAWN are terminal.
    """

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"
    WITHDRAWN = "WITHDRAWN"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


class ComplaintPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class ResolutionAction(str, Enum):
    """Client verdict on a resolved complaint."""

    APPROVE = "APPROVE"
    REJECT = "REJECT"


TERMINAL_STATUSES = frozenset({ComplaintStatus.CLOSED, ComplaintStatus.WITHDRAWN})

OPEN_STATUSES = frozenset({ComplaintStatus.PENDING, ComplaintStatus.IN_PROGRESS})
