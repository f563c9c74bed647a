"""Pydantic schemas for users."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from complaint_desk.db.enums import UserRole


class UserCreate(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    name: str = Field(..., min_length=1, max_length=255)
    role: UserRole = UserRole.CLIENT
    organization: str | None = Field(None, max_length=255)


class UserUpdate(BaseModel):
    """Profile fields an admin may change. The role is not editable."""
    email: str | None = Field(None, min_length=3, max_length=255)
    name: str | None = Field(None, min_length=1, max_length=255)
    organization: str | None = Field(None, max_length=255)


class UserRead(BaseModel):
    id: UUID
    email: str
    name: str
    organization: str | None
    role: UserRole
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class AssignableStaffItem(BaseModel):
    """Staff member with current workload."""
    id: UUID
    name: str
    email: str
    role: UserRole
    open_complaints: int
