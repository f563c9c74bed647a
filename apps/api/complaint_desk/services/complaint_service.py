"""Complaint service - intake and role-scoped reads."""

import logging
from uuid import UUID

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from complaint_desk.core.structured_logging import build_log_context
from complaint_desk.db.enums import (
    ActivityAction,
    ComplaintStatus,
    JobStatus,
    NotificationType,
    TERMINAL_STATUSES,
    UserRole,
)
from complaint_desk.db.models import (
    Attachment,
    Complaint,
    ComplaintHistory,
    Job,
    Notification,
    Project,
    Response,
    User,
)
from complaint_desk.db.models._common import utcnow
from complaint_desk.schemas.complaint import ComplaintCreate, ComplaintUpdate
from complaint_desk.services import activity_service, complaint_events, response_service
from complaint_desk.services.complaint_status_service import (
    get_complaint_or_raise,
    get_user_or_raise,
    is_staff,
)
from complaint_desk.services.errors import (
    Forbidden,
    NotFound,
    PersistenceFailure,
    TerminalState,
    ValidationError,
)

logger = logging.getLogger(__name__)


def create_complaint(db: Session, client_user_id: UUID, data: ComplaintCreate) -> Complaint:
    """
    Submit a new complaint as a client.

    The complaint starts PENDING with one history row. Attachments, the
    activity entry and the submission event are committed together with it.
    """
    client = get_user_or_raise(db, client_user_id)
    if client.role != UserRole.CLIENT.value or not client.is_active:
        raise Forbidden("Only clients can submit complaints")

    project = db.get(Project, data.project_id)
    if not project:
        raise NotFound("Project", data.project_id)

    complaint = Complaint(
        title=data.title.strip(),
        description=data.description.strip(),
        category=data.category.value,
        priority=data.priority.value,
        status=ComplaintStatus.PENDING.value,
        client_id=client.id,
        project_id=project.id,
    )
    try:
        db.add(complaint)
        db.flush()

        db.add(
            ComplaintHistory(
                complaint_id=complaint.id,
                status=ComplaintStatus.PENDING.value,
                message="Complaint submitted",
                user_id=client.id,
                created_at=complaint.created_at,
            )
        )
        for attachment in data.attachments:
            response_service.add_attachment(db, attachment, complaint_id=complaint.id)

        activity_service.record(
            db,
            user_id=client.id,
            action=ActivityAction.COMPLAINT_CREATED,
            entity_id=complaint.id,
            details={
                "project_id": str(project.id),
                "category": complaint.category,
                "priority": complaint.priority,
            },
        )
        complaint_events.publish(
            db,
            complaint_events.complaint_event(
                complaint,
                NotificationType.COMPLAINT_SUBMITTED,
                actor_user_id=client.id,
                team_id=project.team_id,
                to_status=ComplaintStatus.PENDING.value,
            ),
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(
            "Complaint creation failed: %s",
            build_log_context(user_id=client.id, error_class=type(exc).__name__),
        )
        raise PersistenceFailure("Could not save the complaint") from exc

    db.refresh(complaint)
    logger.info(
        "Complaint created: %s",
        build_log_context(user_id=client.id, complaint_id=complaint.id, project_id=project.id),
    )
    return complaint


def can_view(complaint: Complaint, user) -> bool:
    return complaint.client_id == user.id or is_staff(user)


def get_complaint(db: Session, complaint_id: UUID, acting_user_id: UUID) -> Complaint:
    """Get a complaint the acting user may see (its client, or any staff)."""
    complaint = get_complaint_or_raise(db, complaint_id)
    actor = get_user_or_raise(db, acting_user_id)
    if not can_view(complaint, actor):
        raise Forbidden("Not authorized to view this complaint")
    return complaint


def scope_to_actor(query, actor: User):
    """
    Restrict a query over Complaint to the actor's queue.

    Clients get their own complaints, support users the complaints assigned
    to them, admins everything.
    """
    if actor.role == UserRole.CLIENT.value:
        return query.filter(Complaint.client_id == actor.id)
    if actor.role == UserRole.SUPPORT.value:
        return query.filter(Complaint.assignee_id == actor.id)
    if actor.role == UserRole.ADMIN.value:
        return query
    raise Forbidden("Not authorized to list complaints")


def list_complaints(
    db: Session,
    acting_user_id: UUID,
    status: ComplaintStatus | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[Complaint]:
    """
    List complaints visible in the acting user's queue, newest first.

    Clients see their own complaints, support users see complaints assigned
    to them, admins see everything.
    """
    actor = get_user_or_raise(db, acting_user_id)

    query = scope_to_actor(
        db.query(Complaint).options(selectinload(Complaint.attachments)), actor
    )

    if status:
        query = query.filter(Complaint.status == ComplaintStatus(status).value)

    return query.order_by(Complaint.created_at.desc()).offset(offset).limit(limit).all()


def update_complaint(
    db: Session,
    complaint_id: UUID,
    acting_user_id: UUID,
    data: ComplaintUpdate,
) -> Complaint:
    """
    Edit title, description, category or priority.

    Clients may edit their own complaints while PENDING; staff may edit any
    complaint that is not closed or withdrawn. Status and assignee only
    change through the lifecycle and assignment services.
    """
    complaint = get_complaint_or_raise(db, complaint_id)
    actor = get_user_or_raise(db, acting_user_id)

    if actor.role == UserRole.CLIENT.value:
        if complaint.client_id != actor.id or complaint.status != ComplaintStatus.PENDING.value:
            raise Forbidden("You can only update your own pending complaints")
    elif not is_staff(actor):
        raise Forbidden("Not authorized to update this complaint")
    if not actor.is_active:
        raise Forbidden("Inactive users cannot change complaints")
    if ComplaintStatus(complaint.status) in TERMINAL_STATUSES:
        raise TerminalState(complaint.status)

    changes = data.model_dump(exclude_none=True)
    if not changes:
        raise ValidationError("No fields to update")

    for field, value in changes.items():
        if field in ("title", "description"):
            value = value.strip()
        else:
            value = value.value
        setattr(complaint, field, value)
    complaint.updated_at = utcnow()

    try:
        activity_service.record(
            db,
            user_id=actor.id,
            action=ActivityAction.COMPLAINT_UPDATED,
            entity_id=complaint.id,
            details={"fields": sorted(changes)},
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(
            "Complaint update failed: %s",
            build_log_context(
                user_id=actor.id,
                complaint_id=complaint_id,
                error_class=type(exc).__name__,
            ),
        )
        raise PersistenceFailure("Could not save the complaint") from exc

    db.refresh(complaint)
    return complaint


def delete_complaint(db: Session, complaint_id: UUID, acting_user_id: UUID) -> None:
    """
    Delete a complaint with its history, responses, attachments and
    notifications. Undelivered events for it are dropped.

    Admins may delete any complaint; clients only their own while PENDING.
    """
    complaint = get_complaint_or_raise(db, complaint_id)
    actor = get_user_or_raise(db, acting_user_id)

    is_admin = actor.role == UserRole.ADMIN.value and actor.is_active
    owns_pending = (
        complaint.client_id == actor.id
        and complaint.status == ComplaintStatus.PENDING.value
    )
    if not (is_admin or owns_pending):
        raise Forbidden("Unauthorized to delete this complaint")

    title = complaint.title
    response_ids = select(Response.id).where(Response.complaint_id == complaint_id)
    statements = [
        delete(Attachment).where(
            or_(
                Attachment.complaint_id == complaint_id,
                Attachment.response_id.in_(response_ids),
            )
        ),
        delete(Response).where(Response.complaint_id == complaint_id),
        delete(ComplaintHistory).where(ComplaintHistory.complaint_id == complaint_id),
        delete(Notification).where(Notification.complaint_id == complaint_id),
        delete(Job).where(
            Job.ordering_key == f"complaint:{complaint_id}",
            Job.status == JobStatus.PENDING.value,
        ),
        delete(Complaint).where(Complaint.id == complaint_id),
    ]
    try:
        for stmt in statements:
            db.execute(stmt.execution_options(synchronize_session=False))
        activity_service.record(
            db,
            user_id=actor.id,
            action=ActivityAction.COMPLAINT_DELETED,
            entity_id=complaint_id,
            details={"title": title},
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(
            "Complaint deletion failed: %s",
            build_log_context(
                user_id=actor.id,
                complaint_id=complaint_id,
                error_class=type(exc).__name__,
            ),
        )
        raise PersistenceFailure("Could not delete the complaint") from exc

    db.expunge(complaint)
    logger.info(
        "Complaint deleted: %s",
        build_log_context(user_id=actor.id, complaint_id=complaint_id),
    )
