"""SQLAlchemy ORM models."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from complaint_desk.db.base import Base
from complaint_desk.db.enums import ComplaintPriority, ComplaintStatus
from complaint_desk.db.models._common import utcnow

if TYPE_CHECKING:
    from complaint_desk.db.models.auth import User
    from complaint_desk.db.models.projects import Project


class Complaint(Base):
    """
    Client-submitted issue tracked through the status lifecycle.

    Status changes go through complaint_status_service only, which writes the
    matching ComplaintHistory row in the same transaction.
    """

    __tablename__ = "complaints"
    __table_args__ = (
        Index("idx_complaints_client", "client_id", "created_at"),
        Index("idx_complaints_assignee_status", "assignee_id", "status"),
        Index("idx_complaints_project", "project_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(30), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=ComplaintStatus.PENDING.value, nullable=False
    )
    priority: Mapped[str] = mapped_column(
        String(20), default=ComplaintPriority.MEDIUM.value, nullable=False
    )

    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    assignee_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="RESTRICT"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )

    # Relationships
    client: Mapped["User"] = relationship(foreign_keys=[client_id])
    assignee: Mapped["User | None"] = relationship(foreign_keys=[assignee_id])
    project: Mapped["Project"] = relationship()
    history: Mapped[list["ComplaintHistory"]] = relationship(
        back_populates="complaint",
        order_by="ComplaintHistory.created_at",
        cascade="all, delete-orphan",
    )
    responses: Mapped[list["Response"]] = relationship(
        back_populates="complaint", order_by="Response.created_at"
    )
    attachments: Mapped[list["Attachment"]] = relationship(
        back_populates="complaint",
    )


class ComplaintHistory(Base):
    """
    Immutable ledger entry, one per status transition.

    Append-only. created_at matches the Complaint.updated_at written by the
    same transition.
    """

    __tablename__ = "complaint_history"
    __table_args__ = (
        Index("idx_complaint_history_complaint", "complaint_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    complaint_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("complaints.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )

    complaint: Mapped["Complaint"] = relationship(back_populates="history")
    user: Mapped["User"] = relationship()


class Response(Base):
    """Threaded reply to a complaint."""

    __tablename__ = "responses"
    __table_args__ = (
        Index("idx_responses_complaint", "complaint_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    complaint_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("complaints.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )

    complaint: Mapped["Complaint"] = relationship(back_populates="responses")
    user: Mapped["User"] = relationship()
    attachments: Mapped[list["Attachment"]] = relationship(
        back_populates="response",
    )


class Attachment(Base):
    """
    File reference owned by exactly one of a complaint or a response.

    The single-owner rule is checked in response_service.add_attachment;
    the CHECK constraint only guards against rows with two owners.
    """

    __tablename__ = "attachments"
    __table_args__ = (
        CheckConstraint(
            "complaint_id IS NULL OR response_id IS NULL",
            name="ck_attachments_single_owner",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_type: Mapped[str] = mapped_column(String(100), nullable=False)
    file_path: Mapped[str] = mapped_column(String(1000), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)

    complaint_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("complaints.id", ondelete="CASCADE"), nullable=True
    )
    response_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("responses.id", ondelete="CASCADE"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )

    complaint: Mapped["Complaint | None"] = relationship(back_populates="attachments")
    response: Mapped["Response | None"] = relationship(back_populates="attachments")
