"""Domain events (side-effect dispatch via the job outbox).

Services publish an event inside the transaction that made the change. The
event is stored as a pending job, so it is only visible to the worker once
that transaction commits, and it disappears if the transaction rolls back.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from uuid import UUID

from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from complaint_desk.db.enums import JobType, NotificationType
from complaint_desk.db.models import Complaint, Job, Team
from complaint_desk.services import job_service


class DomainEvent(BaseModel):
    """A committed change that may fan out into notifications."""

    event_id: UUID = Field(default_factory=uuid.uuid4)
    type: NotificationType
    actor_user_id: UUID
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    complaint_id: UUID | None = None
    complaint_title: str | None = None
    client_id: UUID | None = None
    assignee_id: UUID | None = None
    previous_assignee_id: UUID | None = None
    project_id: UUID | None = None
    from_status: str | None = None
    to_status: str | None = None

    team_id: UUID | None = None
    team_name: str | None = None
    # User affected by a team membership change
    subject_user_id: UUID | None = None


def complaint_event(
    complaint: Complaint,
    type: NotificationType,
    *,
    actor_user_id: UUID,
    **extra,
) -> DomainEvent:
    """Build an event snapshot from the complaint; keyword overrides win."""
    fields = {
        "complaint_id": complaint.id,
        "complaint_title": complaint.title,
        "client_id": complaint.client_id,
        "assignee_id": complaint.assignee_id,
        "project_id": complaint.project_id,
    }
    fields.update(extra)
    return DomainEvent(type=type, actor_user_id=actor_user_id, **fields)


def team_event(
    team: Team,
    type: NotificationType,
    *,
    actor_user_id: UUID,
    subject_user_id: UUID,
) -> DomainEvent:
    return DomainEvent(
        type=type,
        actor_user_id=actor_user_id,
        team_id=team.id,
        team_name=team.name,
        subject_user_id=subject_user_id,
    )


def ordering_key_for(event: DomainEvent) -> str | None:
    """Events about the same complaint (or team) are delivered in order."""
    if event.complaint_id is not None:
        return f"complaint:{event.complaint_id}"
    if event.team_id is not None:
        return f"team:{event.team_id}"
    return None


def publish(db: Session, event: DomainEvent) -> Job:
    """Enqueue the event in the caller's transaction. Does not commit."""
    return job_service.enqueue_job(
        db,
        JobType.DOMAIN_EVENT,
        payload=event.model_dump(mode="json"),
        idempotency_key=f"event:{event.event_id}",
        ordering_key=ordering_key_for(event),
    )


def from_payload(payload: dict) -> DomainEvent:
    return DomainEvent.model_validate(payload)
