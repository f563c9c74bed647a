"""Notification-related enums."""

from enum import Enum


class NotificationType(str, Enum):
    """Types of in-app notifications."""

    # Complaint notifications
    COMPLAINT_SUBMITTED = "COMPLAINT_SUBMITTED"
    STATUS_UPDATED = "STATUS_UPDATED"
    NEW_RESPONSE = "NEW_RESPONSE"
    ASSIGNED = "ASSIGNED"
    RESOLVED = "RESOLVED"

    # Team membership notifications
    TEAM_ADDED = "TEAM_ADDED"
    TEAM_REMOVED = "TEAM_REMOVED"
