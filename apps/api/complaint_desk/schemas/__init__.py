"""Pydantic schemas for API request/response models."""

from complaint_desk.schemas.auth import UserSession
from complaint_desk.schemas.complaint import (
    AttachmentCreate,
    AttachmentRead,
    BalancedAssignment,
    ComplaintAssign,
    ComplaintCreate,
    ComplaintDetail,
    ComplaintHistoryRead,
    ComplaintRead,
    ComplaintResolve,
    ComplaintStatusChange,
    ComplaintUpdate,
    ResolutionResponse,
    ResponseCreate,
    ResponseRead,
)
from complaint_desk.schemas.team import (
    ProjectCreate,
    ProjectRead,
    TeamCreate,
    TeamMemberCreate,
    TeamMemberRead,
    TeamRead,
    TeamUpdate,
)
from complaint_desk.schemas.user import AssignableStaffItem, UserCreate, UserRead, UserUpdate

__all__ = [
    "AssignableStaffItem",
    "AttachmentCreate",
    "AttachmentRead",
    "BalancedAssignment",
    "ComplaintAssign",
    "ComplaintCreate",
    "ComplaintDetail",
    "ComplaintHistoryRead",
    "ComplaintRead",
    "ComplaintResolve",
    "ComplaintStatusChange",
    "ComplaintUpdate",
    "ProjectCreate",
    "ProjectRead",
    "ResolutionResponse",
    "ResponseCreate",
    "ResponseRead",
    "TeamCreate",
    "TeamMemberCreate",
    "TeamMemberRead",
    "TeamRead",
    "TeamUpdate",
    "UserCreate",
    "UserRead",
    "UserUpdate",
    "UserSession",
]
