"""
Notifications Router - /me/notifications endpoints.

Provides notification listing, unread counts, read status and cleanup.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from complaint_desk.core.deps import get_current_session, get_db, require_csrf_header
from complaint_desk.schemas.auth import UserSession
from complaint_desk.services import notification_service


router = APIRouter()


# =============================================================================
# Schemas
# =============================================================================


class NotificationRead(BaseModel):
    """Notification response."""
    id: UUID
    type: str
    message: str
    is_read: bool
    complaint_id: UUID | None
    metadata: dict | None = None
    created_at: str


class NotificationListResponse(BaseModel):
    """Paginated notification list."""
    items: list[NotificationRead]
    unread_count: int


class UnreadCountResponse(BaseModel):
    """Unread count only (for polling)."""
    count: int


def _to_read(n) -> NotificationRead:
    return NotificationRead(
        id=n.id,
        type=n.type,
        message=n.message,
        is_read=n.is_read,
        complaint_id=n.complaint_id,
        metadata=n.meta,
        created_at=n.created_at.isoformat(),
    )


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/notifications", response_model=NotificationListResponse)
def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Get user's notifications."""
    notifications = notification_service.get_notifications(
        db=db,
        user_id=session.user_id,
        unread_only=unread_only,
        limit=limit,
        offset=offset,
    )
    unread_count = notification_service.get_unread_count(db=db, user_id=session.user_id)
    return NotificationListResponse(
        items=[_to_read(n) for n in notifications],
        unread_count=unread_count,
    )


@router.get("/notifications/count", response_model=UnreadCountResponse)
def get_unread_count(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Get unread notification count (for polling)."""
    count = notification_service.get_unread_count(db=db, user_id=session.user_id)
    return UnreadCountResponse(count=count)


@router.patch(
    "/notifications/{notification_id}/read",
    response_model=NotificationRead,
    dependencies=[Depends(require_csrf_header)],
)
def mark_notification_read(
    notification_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Mark a notification as read."""
    notification = notification_service.mark_read(
        db=db,
        notification_id=notification_id,
        user_id=session.user_id,
    )
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    return _to_read(notification)


@router.post(
    "/notifications/read-all",
    dependencies=[Depends(require_csrf_header)],
)
def mark_all_read(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Mark all notifications as read."""
    count = notification_service.mark_all_read(db=db, user_id=session.user_id)
    return {"marked_read": count}


@router.delete(
    "/notifications/read",
    dependencies=[Depends(require_csrf_header)],
)
def delete_read_notifications(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Delete all read notifications."""
    count = notification_service.delete_all_read(db=db, user_id=session.user_id)
    return {"deleted": count}


@router.delete(
    "/notifications/{notification_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_notification(
    notification_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Delete a notification."""
    deleted = notification_service.delete_notification(
        db=db,
        notification_id=notification_id,
        user_id=session.user_id,
    )
    if not deleted:
        raise HTTPException(status_code=404, detail="Notification not found")
