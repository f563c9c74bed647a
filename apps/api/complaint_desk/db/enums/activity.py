"""Activity log enums."""

from enum import Enum


class ActivityAction(str, Enum):
    """Mutating actions recorded in the activity log."""

    COMPLAINT_CREATED = "COMPLAINT_CREATED"
    COMPLAINT_UPDATED = "COMPLAINT_UPDATED"
    COMPLAINT_DELETED = "COMPLAINT_DELETED"
    COMPLAINT_STATUS_CHANGED = "COMPLAINT_STATUS_CHANGED"
    COMPLAINT_RESOLVED = "COMPLAINT_RESOLVED"
    RESOLUTION_APPROVED = "RESOLUTION_APPROVED"
    RESOLUTION_REJECTED = "RESOLUTION_REJECTED"
    COMPLAINT_ASSIGNED = "COMPLAINT_ASSIGNED"
    COMPLAINT_UNASSIGNED = "COMPLAINT_UNASSIGNED"
    RESPONSE_ADDED = "RESPONSE_ADDED"

    USER_CREATED = "USER_CREATED"
    USER_UPDATED = "USER_UPDATED"
    USER_DEACTIVATED = "USER_DEACTIVATED"
    PROJECT_CREATED = "PROJECT_CREATED"
    TEAM_CREATED = "TEAM_CREATED"
    TEAM_UPDATED = "TEAM_UPDATED"
    TEAM_DELETED = "TEAM_DELETED"
    TEAM_MEMBER_ADDED = "TEAM_MEMBER_ADDED"
    TEAM_MEMBER_REMOVED = "TEAM_MEMBER_REMOVED"
