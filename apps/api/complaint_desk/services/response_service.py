"""Responses and attachments on complaints."""

import logging
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from complaint_desk.core.structured_logging import build_log_context
from complaint_desk.db.enums import NotificationType, TERMINAL_STATUSES
from complaint_desk.db.models import Attachment, Complaint, Response
from complaint_desk.schemas.complaint import AttachmentCreate
from complaint_desk.services import activity_service, complaint_events
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

TERMINAL_VALUES = {status.value for status in TERMINAL_STATUSES}


def add_attachment(
    db: Session,
    data: AttachmentCreate,
    *,
    complaint_id: UUID | None = None,
    response_id: UUID | None = None,
) -> Attachment:
    """
    Attach a stored file to exactly one owner (a complaint or a response).

    Flushes into the caller's transaction; the caller commits.
    """
    if (complaint_id is None) == (response_id is None):
        raise ValidationError("Attachment must belong to exactly one complaint or response")

    if complaint_id is not None and db.get(Complaint, complaint_id) is None:
        raise NotFound("Complaint", complaint_id)
    if response_id is not None and db.get(Response, response_id) is None:
        raise NotFound("Response", response_id)

    attachment = Attachment(
        file_name=data.file_name,
        file_type=data.file_type,
        file_path=data.file_path,
        file_size=data.file_size,
        complaint_id=complaint_id,
        response_id=response_id,
    )
    db.add(attachment)
    db.flush()
    return attachment


def add_response(
    db: Session,
    complaint_id: UUID,
    author_user_id: UUID,
    message: str,
    attachments: list[AttachmentCreate] | None = None,
) -> Response:
    """Reply on a complaint. Open to its client, its assignee and staff."""
    body = (message or "").strip()
    if not body:
        raise ValidationError("Response message is required")

    complaint = get_complaint_or_raise(db, complaint_id)
    author = get_user_or_raise(db, author_user_id)

    if not author.is_active or not (
        author.id in (complaint.client_id, complaint.assignee_id) or is_staff(author)
    ):
        raise Forbidden("Not authorized to respond to this complaint")
    if complaint.status in TERMINAL_VALUES:
        raise TerminalState(complaint.status)

    response = Response(complaint_id=complaint.id, user_id=author.id, message=body)
    try:
        db.add(response)
        db.flush()
        for attachment in attachments or []:
            add_attachment(db, attachment, response_id=response.id)

        activity_service.log_response_added(
            db,
            complaint_id=complaint.id,
            user_id=author.id,
            response_id=response.id,
            message=body,
        )
        complaint_events.publish(
            db,
            complaint_events.complaint_event(
                complaint,
                NotificationType.NEW_RESPONSE,
                actor_user_id=author.id,
            ),
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(
            "Response creation failed: %s",
            build_log_context(
                user_id=author.id,
                complaint_id=complaint_id,
                error_class=type(exc).__name__,
            ),
        )
        raise PersistenceFailure("Could not save the response") from exc

    db.refresh(response)
    return response


def list_responses(db: Session, complaint_id: UUID) -> list[Response]:
    get_complaint_or_raise(db, complaint_id)
    return (
        db.query(Response)
        .filter(Response.complaint_id == complaint_id)
        .order_by(Response.created_at)
        .all()
    )
