"""SQLAlchemy ORM models."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Integer, String, Uuid, func, text, true
from sqlalchemy.orm import Mapped, mapped_column, relationship

from complaint_desk.db.base import Base
from complaint_desk.db.models._common import utcnow

if TYPE_CHECKING:
    from complaint_desk.db.models.teams import TeamMember


class User(Base):
    """
    Application user.

    The role is fixed at creation. Users are referenced (never owned) by
    complaints, responses, history rows, activity entries and team members.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    organization: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    token_version: Mapped[int] = mapped_column(Integer, server_default=text("1"), default=1, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, server_default=true(), default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )

    teams: Mapped[list["TeamMember"]] = relationship(back_populates="user")
