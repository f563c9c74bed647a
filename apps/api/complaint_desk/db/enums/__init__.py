"""Enum definitions for application constants."""

from complaint_desk.db.enums.activity import ActivityAction
from complaint_desk.db.enums.auth import UserRole
from complaint_desk.db.enums.complaints import (
    OPEN_STATUSES,
    TERMINAL_STATUSES,
    ComplaintCategory,
    ComplaintPriority,
    ComplaintStatus,
    ResolutionAction,
)
from complaint_desk.db.enums.jobs import JobStatus, JobType
from complaint_desk.db.enums.notifications import NotificationType
from complaint_desk.db.enums.permissions import (
    ROLES_CAN_ASSIGN,
    ROLES_CAN_MANAGE,
    STAFF_ROLES,
)

__all__ = [
    "ActivityAction",
    "ComplaintCategory",
    "ComplaintPriority",
    "ComplaintStatus",
    "JobStatus",
    "JobType",
    "NotificationType",
    "OPEN_STATUSES",
    "ROLES_CAN_ASSIGN",
    "ROLES_CAN_MANAGE",
    "ResolutionAction",
    "STAFF_ROLES",
    "TERMINAL_STATUSES",
    "UserRole",
]
