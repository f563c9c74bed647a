"""Complaint status lifecycle (validate + compare-and-swap + history + events)."""

import logging
from collections.abc import Iterator
from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from complaint_desk.core.structured_logging import build_log_context
from complaint_desk.db.enums import (
    ActivityAction,
    ComplaintStatus,
    NotificationType,
    ResolutionAction,
    STAFF_ROLES,
    UserRole,
)
from complaint_desk.db.models import Complaint, ComplaintHistory, Response, User
from complaint_desk.db.models._common import utcnow
from complaint_desk.services import activity_service, complaint_events
from complaint_desk.services.errors import (
    Conflict,
    Forbidden,
    InvalidTransition,
    NotFound,
    PersistenceFailure,
    ValidationError,
)

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[ComplaintStatus, frozenset[ComplaintStatus]] = {
    ComplaintStatus.PENDING: frozenset({ComplaintStatus.IN_PROGRESS, ComplaintStatus.WITHDRAWN}),
    ComplaintStatus.IN_PROGRESS: frozenset({ComplaintStatus.RESOLVED, ComplaintStatus.WITHDRAWN}),
    ComplaintStatus.RESOLVED: frozenset({ComplaintStatus.CLOSED}),
    ComplaintStatus.CLOSED: frozenset(),
    ComplaintStatus.WITHDRAWN: frozenset(),
}


def get_complaint_or_raise(db: Session, complaint_id: UUID) -> Complaint:
    complaint = db.get(Complaint, complaint_id)
    if not complaint:
        raise NotFound("Complaint", complaint_id)
    return complaint


def get_user_or_raise(db: Session, user_id: UUID) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFound("User", user_id)
    return user


def is_staff(user: User) -> bool:
    return UserRole.has_value(user.role) and UserRole(user.role) in STAFF_ROLES


def can_transition(from_status: ComplaintStatus, to_status: ComplaintStatus) -> bool:
    return to_status in ALLOWED_TRANSITIONS[from_status]


def validate_transition(from_status: ComplaintStatus, to_status: ComplaintStatus) -> None:
    """Raise InvalidTransition unless to_status is reachable from from_status."""
    if from_status.is_terminal:
        raise InvalidTransition(
            from_status.value,
            to_status.value,
            f"Complaint is {from_status.value} and accepts no further transitions",
        )
    if not can_transition(from_status, to_status):
        raise InvalidTransition(from_status.value, to_status.value)


def check_authority(complaint: Complaint, actor: User, to_status: ComplaintStatus) -> None:
    """
    The complaint's client may only withdraw it. Staff may make any forward
    move except withdrawing. Everyone else is refused.
    """
    if not actor.is_active:
        raise Forbidden("Inactive users cannot change complaints")

    if actor.id == complaint.client_id:
        if to_status != ComplaintStatus.WITHDRAWN:
            raise Forbidden("Clients can only withdraw their complaints")
        return

    if not is_staff(actor):
        raise Forbidden("Not authorized to change this complaint")
    if to_status == ComplaintStatus.WITHDRAWN:
        raise Forbidden("Only the client can withdraw a complaint")


def _current_status(db: Session, complaint_id: UUID) -> str | None:
    return db.execute(
        select(Complaint.status).where(Complaint.id == complaint_id)
    ).scalar_one_or_none()


def _apply(
    db: Session,
    complaint: Complaint,
    actor: User,
    from_status: ComplaintStatus,
    to_status: ComplaintStatus,
    *,
    history_message: str,
    action: ActivityAction,
    event_type: NotificationType,
    extra_values: dict | None = None,
    response_message: str | None = None,
) -> Complaint:
    """
    Compare-and-swap the status, then write history, activity, an optional
    response and the outbox event. Everything lands in one commit.
    """
    complaint_id = complaint.id
    now: datetime = utcnow()
    values = {"status": to_status.value, "updated_at": now, **(extra_values or {})}

    try:
        result = db.execute(
            update(Complaint)
            .where(Complaint.id == complaint_id, Complaint.status == from_status.value)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.rollback()
            raise Conflict(from_status.value, _current_status(db, complaint_id))

        db.add(
            ComplaintHistory(
                complaint_id=complaint_id,
                status=to_status.value,
                message=history_message,
                user_id=actor.id,
                created_at=now,
            )
        )
        if response_message:
            db.add(Response(complaint_id=complaint_id, user_id=actor.id, message=response_message))

        activity_service.log_status_changed(
            db,
            complaint_id=complaint_id,
            user_id=actor.id,
            from_status=from_status.value,
            to_status=to_status.value,
            action=action,
            message=history_message,
        )

        event = complaint_events.DomainEvent(
            type=event_type,
            actor_user_id=actor.id,
            complaint_id=complaint_id,
            complaint_title=complaint.title,
            client_id=complaint.client_id,
            assignee_id=values.get("assignee_id", complaint.assignee_id),
            project_id=complaint.project_id,
            from_status=from_status.value,
            to_status=to_status.value,
        )
        complaint_events.publish(db, event)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(
            "Complaint transition failed: %s",
            build_log_context(
                user_id=actor.id,
                complaint_id=complaint_id,
                from_status=from_status.value,
                to_status=to_status.value,
                error_class=type(exc).__name__,
            ),
        )
        raise PersistenceFailure("Could not save the status change") from exc

    db.refresh(complaint)
    logger.info(
        "Complaint status changed: %s",
        build_log_context(
            user_id=actor.id,
            complaint_id=complaint_id,
            from_status=from_status.value,
            to_status=to_status.value,
        ),
    )
    return complaint


def transition(
    db: Session,
    complaint_id: UUID,
    new_status: ComplaintStatus | str,
    acting_user_id: UUID,
    message: str | None = None,
    expected_status: ComplaintStatus | str | None = None,
) -> Complaint:
    """
    Move a complaint to a new status.

    The update only applies if the stored status still equals the status the
    decision was made against (expected_status when given, otherwise the
    status read here). If another writer got there first, Conflict is raised
    and nothing is written; callers re-read and retry.
    """
    to_status = ComplaintStatus(new_status)
    complaint = get_complaint_or_raise(db, complaint_id)
    actor = get_user_or_raise(db, acting_user_id)

    current = ComplaintStatus(complaint.status)
    if expected_status is not None and ComplaintStatus(expected_status) != current:
        raise Conflict(ComplaintStatus(expected_status).value, current.value)

    validate_transition(current, to_status)
    check_authority(complaint, actor, to_status)

    if to_status == ComplaintStatus.RESOLVED:
        action = ActivityAction.COMPLAINT_RESOLVED
        event_type = NotificationType.RESOLVED
    else:
        action = ActivityAction.COMPLAINT_STATUS_CHANGED
        event_type = NotificationType.STATUS_UPDATED

    return _apply(
        db,
        complaint,
        actor,
        current,
        to_status,
        history_message=message or f"Status changed from {current.value} to {to_status.value}",
        action=action,
        event_type=event_type,
    )


def list_history(db: Session, complaint_id: UUID) -> Iterator[ComplaintHistory]:
    """
    Yield the complaint's history rows, oldest first.

    Raises NotFound before yielding anything when the complaint is missing.
    Each call runs a fresh query.
    """
    get_complaint_or_raise(db, complaint_id)
    return _iter_history(db, complaint_id)


def _iter_history(db: Session, complaint_id: UUID) -> Iterator[ComplaintHistory]:
    stmt = (
        select(ComplaintHistory)
        .where(ComplaintHistory.complaint_id == complaint_id)
        .order_by(ComplaintHistory.created_at, ComplaintHistory.id)
    )
    yield from db.execute(stmt).scalars()


def resolve_complaint(
    db: Session,
    complaint_id: UUID,
    acting_user_id: UUID,
    resolution_comment: str,
) -> Complaint:
    """
    Resolve an in-progress complaint with a comment.

    The comment is stored as a response. An unassigned complaint is assigned
    to the resolver.
    """
    comment = (resolution_comment or "").strip()
    if not comment:
        raise ValidationError("Resolution comment is required")

    complaint = get_complaint_or_raise(db, complaint_id)
    actor = get_user_or_raise(db, acting_user_id)

    current = ComplaintStatus(complaint.status)
    validate_transition(current, ComplaintStatus.RESOLVED)
    check_authority(complaint, actor, ComplaintStatus.RESOLVED)

    extra_values = {}
    if complaint.assignee_id is None:
        extra_values["assignee_id"] = actor.id

    return _apply(
        db,
        complaint,
        actor,
        current,
        ComplaintStatus.RESOLVED,
        history_message=f"Complaint resolved: {comment}",
        action=ActivityAction.COMPLAINT_RESOLVED,
        event_type=NotificationType.RESOLVED,
        extra_values=extra_values,
        response_message=comment,
    )


def respond_to_resolution(
    db: Session,
    complaint_id: UUID,
    acting_user_id: UUID,
    action: ResolutionAction | str,
    feedback: str | None = None,
) -> Complaint:
    """
    Client verdict on a resolved complaint.

    APPROVE closes it, REJECT reopens it as IN_PROGRESS.
    """
    try:
        verdict = ResolutionAction(action)
    except ValueError:
        raise ValidationError("Invalid action. Must be APPROVE or REJECT") from None

    complaint = get_complaint_or_raise(db, complaint_id)
    actor = get_user_or_raise(db, acting_user_id)

    if actor.id != complaint.client_id:
        raise Forbidden("Only the client can respond to a resolution")

    current = ComplaintStatus(complaint.status)
    if current != ComplaintStatus.RESOLVED:
        target = ComplaintStatus.CLOSED if verdict == ResolutionAction.APPROVE else ComplaintStatus.IN_PROGRESS
        raise InvalidTransition(
            current.value,
            target.value,
            "Only resolved complaints can be approved or rejected",
        )

    feedback = (feedback or "").strip() or None
    if verdict == ResolutionAction.APPROVE:
        to_status = ComplaintStatus.CLOSED
        activity_action = ActivityAction.RESOLUTION_APPROVED
        history_message = f"Client approved resolution: {feedback or 'No additional feedback'}"
        response_message = "I approve this resolution." + (f" Comments: {feedback}" if feedback else "")
    else:
        to_status = ComplaintStatus.IN_PROGRESS
        activity_action = ActivityAction.RESOLUTION_REJECTED
        history_message = f"Client rejected resolution: {feedback or 'No additional feedback'}"
        response_message = "I reject this resolution. " + (
            f"Reason: {feedback}" if feedback else "Please revisit this issue."
        )

    return _apply(
        db,
        complaint,
        actor,
        current,
        to_status,
        history_message=history_message,
        action=activity_action,
        event_type=NotificationType.STATUS_UPDATED,
        response_message=response_message,
    )
