"""Tests for responses and attachments."""

import pytest

from complaint_desk.db.enums import ActivityAction, ComplaintStatus, NotificationType, UserRole
from complaint_desk.db.models import ActivityLog, Attachment, Notification
from complaint_desk.schemas.complaint import AttachmentCreate
from complaint_desk.services import response_service
from complaint_desk.services.errors import Forbidden, TerminalState, ValidationError

FILE = AttachmentCreate(
    file_name="screenshot.png",
    file_type="image/png",
    file_path="uploads/screenshot.png",
    file_size=2048,
)


def test_client_response_notifies_assignee(db, complaint, support, drain_jobs):
    complaint.assignee_id = support.id
    db.commit()

    response = response_service.add_response(
        db, complaint.id, complaint.client_id, "Still broken today", attachments=[FILE]
    )

    attachment = db.query(Attachment).one()
    assert attachment.response_id == response.id
    assert attachment.complaint_id is None

    entry = db.query(ActivityLog).filter(
        ActivityLog.action == ActivityAction.RESPONSE_ADDED.value
    ).one()
    assert entry.details["preview"] == "Still broken today"

    drain_jobs()
    notified = db.query(Notification).filter(
        Notification.type == NotificationType.NEW_RESPONSE.value
    ).all()
    assert [n.user_id for n in notified] == [support.id]


def test_other_client_cannot_respond(db, complaint, make_user):
    with pytest.raises(Forbidden):
        response_service.add_response(db, complaint.id, make_user(UserRole.CLIENT).id, "Me too")


def test_no_responses_on_closed_complaints(db, complaint, support):
    complaint.status = ComplaintStatus.CLOSED.value
    db.commit()

    with pytest.raises(TerminalState):
        response_service.add_response(db, complaint.id, support.id, "Any update?")


def test_empty_response_rejected(db, complaint, support):
    with pytest.raises(ValidationError):
        response_service.add_response(db, complaint.id, support.id, "  ")


def test_attachment_needs_exactly_one_owner(db, complaint):
    with pytest.raises(ValidationError):
        response_service.add_attachment(db, FILE)

    response = response_service.add_response(db, complaint.id, complaint.client_id, "Details")
    with pytest.raises(ValidationError):
        response_service.add_attachment(
            db, FILE, complaint_id=complaint.id, response_id=response.id
        )

    attachment = response_service.add_attachment(db, FILE, complaint_id=complaint.id)
    db.commit()
    assert attachment.complaint_id == complaint.id
