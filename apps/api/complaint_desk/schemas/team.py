"""Pydantic schemas for teams and projects."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class TeamMemberCreate(BaseModel):
    user_id: UUID
    role: str = Field("MEMBER", min_length=1, max_length=50)


class TeamMemberRead(BaseModel):
    id: UUID
    team_id: UUID
    user_id: UUID
    role: str
    joined_at: datetime

    model_config = {"from_attributes": True}


class TeamCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=2000)
    members: list[TeamMemberCreate] = Field(default_factory=list)


class TeamUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=2000)


class TeamRead(BaseModel):
    id: UUID
    name: str
    description: str | None
    created_at: datetime
    members: list[TeamMemberRead] = []

    model_config = {"from_attributes": True}


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=2000)
    team_id: UUID | None = None


class ProjectRead(BaseModel):
    id: UUID
    name: str
    description: str | None
    team_id: UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
