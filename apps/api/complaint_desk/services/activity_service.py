"""Activity logging service - centralized audit trail for mutating actions."""

from uuid import UUID

from sqlalchemy.orm import Session

from complaint_desk.db.enums import ActivityAction
from complaint_desk.db.models import ActivityLog

PREVIEW_LENGTH = 200


def record(
    db: Session,
    user_id: UUID,
    action: ActivityAction,
    entity_id: UUID,
    details: dict | None = None,
) -> ActivityLog:
    """
    Append an activity log entry.

    Args:
        db: Database session
        user_id: User who performed the action
        action: Type of action (from ActivityAction enum)
        entity_id: The entity the action touched
        details: Action-specific details as JSON

    Returns:
        The created activity log entry
    """
    entry = ActivityLog(
        user_id=user_id,
        action=action.value,
        entity_id=entity_id,
        details=details,
    )
    db.add(entry)
    db.flush()  # Don't commit - let caller control transaction
    return entry


def log_status_changed(
    db: Session,
    complaint_id: UUID,
    user_id: UUID,
    from_status: str,
    to_status: str,
    action: ActivityAction = ActivityAction.COMPLAINT_STATUS_CHANGED,
    message: str | None = None,
) -> ActivityLog:
    """Log a complaint status transition."""
    details = {"from_status": from_status, "to_status": to_status}
    if message:
        details["message"] = message[:PREVIEW_LENGTH]
    return record(db, user_id, action, complaint_id, details)


def log_assigned(
    db: Session,
    complaint_id: UUID,
    user_id: UUID,
    to_user_id: UUID | None,
    from_user_id: UUID | None = None,
) -> ActivityLog:
    """Log complaint assignment (includes previous assignee if reassignment)."""
    if to_user_id is None:
        return record(
            db,
            user_id,
            ActivityAction.COMPLAINT_UNASSIGNED,
            complaint_id,
            {"from_user_id": str(from_user_id) if from_user_id else None},
        )

    details = {"to_user_id": str(to_user_id)}
    if from_user_id:
        details["from_user_id"] = str(from_user_id)
    return record(db, user_id, ActivityAction.COMPLAINT_ASSIGNED, complaint_id, details)


def log_response_added(
    db: Session,
    complaint_id: UUID,
    user_id: UUID,
    response_id: UUID,
    message: str,
) -> ActivityLog:
    """Log a response with a preview of its content."""
    return record(
        db,
        user_id,
        ActivityAction.RESPONSE_ADDED,
        complaint_id,
        {
            "response_id": str(response_id),
            "preview": message[:PREVIEW_LENGTH] if message else "",
        },
    )

