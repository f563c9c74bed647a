"""
Notification Service - handles in-app notifications.

Provides the dispatcher that turns domain events into notifications and CRUD
for a user's notification inbox.
"""

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from complaint_desk.core.structured_logging import build_log_context
from complaint_desk.db.enums import NotificationType, STAFF_ROLES, UserRole
from complaint_desk.db.models import Notification, Project, TeamMember, User
from complaint_desk.services.complaint_events import DomainEvent

logger = logging.getLogger(__name__)

STAFF_ROLE_VALUES = [role.value for role in STAFF_ROLES]


# =============================================================================
# Recipient resolution
# =============================================================================


def _submission_recipients(db: Session, event: DomainEvent) -> list[UUID]:
    """Staff of the project's team, or every active admin when there is no team."""
    project = db.get(Project, event.project_id) if event.project_id else None

    if project and project.team_id:
        rows = (
            db.query(User.id)
            .join(TeamMember, TeamMember.user_id == User.id)
            .filter(
                TeamMember.team_id == project.team_id,
                User.role.in_(STAFF_ROLE_VALUES),
                User.is_active.is_(True),
            )
            .order_by(User.created_at, User.id)
            .all()
        )
    else:
        rows = (
            db.query(User.id)
            .filter(
                User.role == UserRole.ADMIN.value,
                User.is_active.is_(True),
            )
            .order_by(User.created_at, User.id)
            .all()
        )
    return [row[0] for row in rows]


def resolve_recipients(db: Session, event: DomainEvent) -> list[UUID]:
    """
    Work out who should hear about an event.

    Order is stable and recipients are unique.
    """
    candidates: list[UUID | None]
    excluded: set[UUID | None] = {None}

    if event.type == NotificationType.COMPLAINT_SUBMITTED:
        candidates = list(_submission_recipients(db, event))
        excluded.update({event.client_id, event.actor_user_id})
    elif event.type in (
        NotificationType.STATUS_UPDATED,
        NotificationType.RESOLVED,
        NotificationType.NEW_RESPONSE,
    ):
        candidates = [event.client_id, event.assignee_id]
        excluded.add(event.actor_user_id)
    elif event.type == NotificationType.ASSIGNED:
        candidates = [event.assignee_id]
        if event.previous_assignee_id != event.assignee_id:
            candidates.append(event.previous_assignee_id)
    elif event.type in (NotificationType.TEAM_ADDED, NotificationType.TEAM_REMOVED):
        candidates = [event.subject_user_id]
    else:
        candidates = []

    recipients: list[UUID] = []
    for user_id in candidates:
        if user_id in excluded or user_id in recipients:
            continue
        recipients.append(user_id)
    return recipients


def build_message(event: DomainEvent, recipient_id: UUID) -> str:
    """Human-readable message for one recipient of an event."""
    title = event.complaint_title or "a complaint"

    if event.type == NotificationType.COMPLAINT_SUBMITTED:
        return f"New complaint submitted: {title}"
    if event.type == NotificationType.STATUS_UPDATED:
        return f'Complaint "{title}" status updated to {event.to_status}'
    if event.type == NotificationType.RESOLVED:
        return f'Your complaint "{title}" has been resolved.'
    if event.type == NotificationType.NEW_RESPONSE:
        return f'New response on complaint "{title}"'
    if event.type == NotificationType.ASSIGNED:
        if recipient_id == event.assignee_id:
            return f"You've been assigned to complaint: {title}"
        if event.assignee_id is None:
            return f'You have been unassigned from complaint "{title}"'
        return f'Complaint "{title}" has been reassigned from you'
    if event.type == NotificationType.TEAM_ADDED:
        return f"You've been added to the team: {event.team_name}"
    if event.type == NotificationType.TEAM_REMOVED:
        return f"You've been removed from the team: {event.team_name}"
    return title


def _metadata(event: DomainEvent) -> dict:
    data = {"event_id": str(event.event_id), "actor_user_id": str(event.actor_user_id)}
    if event.from_status:
        data["from_status"] = event.from_status
    if event.to_status:
        data["to_status"] = event.to_status
    if event.team_id:
        data["team_id"] = str(event.team_id)
    return data


# =============================================================================
# Dispatcher
# =============================================================================


def dedupe_key_for(event_id: UUID, recipient_id: UUID) -> str:
    return f"{event_id}:{recipient_id}"


def create_notification(
    db: Session,
    user_id: UUID,
    type: NotificationType,
    message: str,
    dedupe_key: str,
    complaint_id: UUID | None = None,
    meta: dict | None = None,
) -> Notification | None:
    """
    Create a notification.

    Returns None when a notification with the same dedupe_key already exists,
    including when a concurrent delivery wins the unique constraint.
    """
    existing = db.query(Notification.id).filter(Notification.dedupe_key == dedupe_key).first()
    if existing:
        return None  # Already notified

    notification = Notification(
        user_id=user_id,
        type=type.value,
        message=message,
        complaint_id=complaint_id,
        meta=meta,
        dedupe_key=dedupe_key,
    )
    db.add(notification)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return None
    db.refresh(notification)
    return notification


def dispatch(db: Session, event: DomainEvent) -> list[Notification]:
    """
    Create one notification per recipient of the event.

    Safe to call repeatedly for the same event: each (event, recipient) pair
    is stored at most once. Every recipient is committed separately, so a
    failure for one recipient is logged and does not affect the others.

    Returns the notifications created by this call.
    """
    created: list[Notification] = []
    for recipient_id in resolve_recipients(db, event):
        try:
            notification = create_notification(
                db,
                user_id=recipient_id,
                type=event.type,
                message=build_message(event, recipient_id),
                dedupe_key=dedupe_key_for(event.event_id, recipient_id),
                complaint_id=event.complaint_id,
                meta=_metadata(event),
            )
        except SQLAlchemyError as exc:
            db.rollback()
            logger.warning(
                "Notification delivery failed: %s",
                build_log_context(
                    event_id=event.event_id,
                    event_type=event.type.value,
                    recipient_id=recipient_id,
                    error_class=type(exc).__name__,
                ),
            )
            continue
        if notification is not None:
            created.append(notification)
    return created


# =============================================================================
# Inbox CRUD
# =============================================================================


def get_notifications(
    db: Session,
    user_id: UUID,
    unread_only: bool = False,
    limit: int = 20,
    offset: int = 0,
) -> list[Notification]:
    """Get notifications for user, newest first."""
    query = db.query(Notification).filter(Notification.user_id == user_id)

    if unread_only:
        query = query.filter(Notification.is_read.is_(False))

    return query.order_by(Notification.created_at.desc()).offset(offset).limit(limit).all()


def get_unread_count(db: Session, user_id: UUID) -> int:
    """Get count of unread notifications."""
    return db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.is_read.is_(False),
    ).count()


def mark_read(db: Session, notification_id: UUID, user_id: UUID) -> Notification | None:
    """Mark a notification as read (scoped to its owner)."""
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_id == user_id,
    ).first()

    if notification and not notification.is_read:
        notification.is_read = True
        db.commit()
        db.refresh(notification)

    return notification


def mark_all_read(db: Session, user_id: UUID) -> int:
    """Mark all notifications as read. Returns count updated."""
    count = db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.is_read.is_(False),
    ).update({"is_read": True}, synchronize_session=False)
    db.commit()
    return count


def delete_notification(db: Session, notification_id: UUID, user_id: UUID) -> bool:
    """Delete one of the user's notifications. Returns False if not found."""
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_id == user_id,
    ).first()
    if not notification:
        return False
    db.delete(notification)
    db.commit()
    return True


def delete_all_read(db: Session, user_id: UUID) -> int:
    """Delete the user's read notifications. Returns count deleted."""
    count = db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.is_read.is_(True),
    ).delete(synchronize_session=False)
    db.commit()
    return count
