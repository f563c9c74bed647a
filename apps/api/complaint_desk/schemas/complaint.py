"""Pydantic schemas for complaints, responses and attachments."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from complaint_desk.db.enums import (
    ComplaintCategory,
    ComplaintPriority,
    ComplaintStatus,
    ResolutionAction,
)


class AttachmentCreate(BaseModel):
    """Reference to an already-stored file."""
    file_name: str = Field(..., min_length=1, max_length=255)
    file_type: str = Field(..., min_length=1, max_length=100)
    file_path: str = Field(..., min_length=1, max_length=1000)
    file_size: int = Field(..., ge=0)


class AttachmentRead(BaseModel):
    id: UUID
    file_name: str
    file_type: str
    file_path: str
    file_size: int
    complaint_id: UUID | None
    response_id: UUID | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ComplaintCreate(BaseModel):
    """Request to submit a complaint."""
    project_id: UUID
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    category: ComplaintCategory
    priority: ComplaintPriority = ComplaintPriority.MEDIUM
    attachments: list[AttachmentCreate] = Field(default_factory=list, max_length=5)


class ComplaintRead(BaseModel):
    id: UUID
    title: str
    description: str
    category: ComplaintCategory
    status: ComplaintStatus
    priority: ComplaintPriority
    client_id: UUID
    assignee_id: UUID | None
    project_id: UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ComplaintDetail(ComplaintRead):
    """Complaint with its attachments."""
    attachments: list[AttachmentRead] = []


class ComplaintUpdate(BaseModel):
    """Partial edit of a complaint's descriptive fields."""
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, min_length=1)
    category: ComplaintCategory | None = None
    priority: ComplaintPriority | None = None


class ComplaintStatusChange(BaseModel):
    """Request to move a complaint to a new status."""
    status: ComplaintStatus
    message: str | None = Field(None, max_length=2000)
    expected_status: ComplaintStatus | None = None


class ComplaintAssign(BaseModel):
    """Assign to a staff user, or clear with null."""
    assignee_id: UUID | None = None


class BalancedAssignment(BaseModel):
    complaint_id: UUID
    assignee_id: UUID


class ComplaintResolve(BaseModel):
    resolution_comment: str = Field(..., min_length=1, max_length=5000)


class ResolutionResponse(BaseModel):
    action: ResolutionAction
    feedback: str | None = Field(None, max_length=2000)


class ComplaintHistoryRead(BaseModel):
    id: UUID
    complaint_id: UUID
    status: ComplaintStatus
    message: str | None
    user_id: UUID
    created_at: datetime

    model_config = {"from_attributes": True}


class ResponseCreate(BaseModel):
    message: str = Field(..., min_length=1, max_length=10000)
    attachments: list[AttachmentCreate] = Field(default_factory=list, max_length=5)


class ResponseRead(BaseModel):
    id: UUID
    complaint_id: UUID
    user_id: UUID
    message: str
    created_at: datetime
    attachments: list[AttachmentRead] = []

    model_config = {"from_attributes": True}
