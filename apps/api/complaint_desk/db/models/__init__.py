"""SQLAlchemy ORM models."""

from complaint_desk.db.models.activity import ActivityLog
from complaint_desk.db.models.auth import User
from complaint_desk.db.models.complaints import (
    Attachment,
    Complaint,
    ComplaintHistory,
    Response,
)
from complaint_desk.db.models.jobs import Job
from complaint_desk.db.models.notifications import Notification
from complaint_desk.db.models.projects import Project
from complaint_desk.db.models.teams import Team, TeamMember

__all__ = [
    "ActivityLog",
    "Attachment",
    "Complaint",
    "ComplaintHistory",
    "Job",
    "Notification",
    "Project",
    "Response",
    "Team",
    "TeamMember",
    "User",
]
