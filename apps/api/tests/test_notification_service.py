"""Tests for the notification dispatcher and inbox."""

import uuid

from sqlalchemy.exc import OperationalError

from complaint_desk.db.enums import ComplaintStatus, NotificationType, UserRole
from complaint_desk.db.models import Notification, Project
from complaint_desk.services import complaint_status_service, notification_service
from complaint_desk.services.complaint_events import DomainEvent, complaint_event


def _event(complaint, type, actor_id, **extra):
    return complaint_event(complaint, type, actor_user_id=actor_id, **extra)


def test_dispatch_twice_creates_one_notification_per_recipient(db, complaint, support):
    event = _event(complaint, NotificationType.STATUS_UPDATED, support.id, to_status="IN_PROGRESS")

    first = notification_service.dispatch(db, event)
    second = notification_service.dispatch(db, event)

    assert [n.user_id for n in first] == [complaint.client_id]
    assert second == []
    assert db.query(Notification).count() == 1


def test_status_update_excludes_actor(db, complaint, admin, support):
    complaint.assignee_id = support.id
    db.commit()

    recipients = notification_service.resolve_recipients(
        db, _event(complaint, NotificationType.STATUS_UPDATED, support.id)
    )
    assert recipients == [complaint.client_id]

    recipients = notification_service.resolve_recipients(
        db, _event(complaint, NotificationType.STATUS_UPDATED, admin.id)
    )
    assert recipients == [complaint.client_id, support.id]


def test_new_response_excludes_author(db, complaint, support):
    complaint.assignee_id = support.id
    db.commit()

    recipients = notification_service.resolve_recipients(
        db, _event(complaint, NotificationType.NEW_RESPONSE, complaint.client_id)
    )
    assert recipients == [support.id]


def test_submission_goes_to_team_staff_only(db, complaint, support, team, make_user):
    from complaint_desk.db.models import TeamMember

    client_member = make_user(UserRole.CLIENT)
    db.add(TeamMember(team_id=team.id, user_id=client_member.id))
    db.commit()

    recipients = notification_service.resolve_recipients(
        db, _event(complaint, NotificationType.COMPLAINT_SUBMITTED, complaint.client_id)
    )
    assert recipients == [support.id]


def test_submission_without_team_goes_to_active_admins(db, complaint, admin, make_user):
    make_user(UserRole.ADMIN, is_active=False)
    project = Project(name="Orphan")
    db.add(project)
    db.commit()

    event = _event(
        complaint,
        NotificationType.COMPLAINT_SUBMITTED,
        complaint.client_id,
        project_id=project.id,
    )
    assert notification_service.resolve_recipients(db, event) == [admin.id]


def test_team_events_target_subject_user(db, support, admin):
    event = DomainEvent(
        type=NotificationType.TEAM_ADDED,
        actor_user_id=admin.id,
        team_id=uuid.uuid4(),
        team_name="Platform",
        subject_user_id=support.id,
    )

    created = notification_service.dispatch(db, event)

    assert len(created) == 1
    assert created[0].user_id == support.id
    assert created[0].message == "You've been added to the team: Platform"


def test_dispatch_failure_for_one_recipient_does_not_block_others(db, complaint, admin, support, monkeypatch):
    complaint.assignee_id = support.id
    db.commit()

    real_create = notification_service.create_notification

    def flaky_create(db, user_id, **kwargs):
        if user_id == complaint.client_id:
            raise OperationalError("INSERT", {}, Exception("database is locked"))
        return real_create(db, user_id=user_id, **kwargs)

    monkeypatch.setattr(notification_service, "create_notification", flaky_create)

    event = _event(complaint, NotificationType.STATUS_UPDATED, admin.id)
    created = notification_service.dispatch(db, event)

    assert [n.user_id for n in created] == [support.id]

    # A later redelivery fills the gap without duplicating
    monkeypatch.setattr(notification_service, "create_notification", real_create)
    retried = notification_service.dispatch(db, event)
    assert [n.user_id for n in retried] == [complaint.client_id]
    assert db.query(Notification).count() == 2


def test_notifications_follow_history_order(db, complaint, support, drain_jobs):
    complaint_status_service.transition(db, complaint.id, ComplaintStatus.IN_PROGRESS, support.id)
    complaint_status_service.resolve_complaint(db, complaint.id, support.id, "Fixed")

    drain_jobs()
    types = [
        n.type
        for n in db.query(Notification)
        .filter(Notification.user_id == complaint.client_id)
        .order_by(Notification.created_at)
    ]
    assert types == [NotificationType.STATUS_UPDATED.value, NotificationType.RESOLVED.value]


# =============================================================================
# Inbox
# =============================================================================


def _seed(db, user_id, count=3):
    for i in range(count):
        notification_service.create_notification(
            db,
            user_id=user_id,
            type=NotificationType.STATUS_UPDATED,
            message=f"Update {i}",
            dedupe_key=f"seed:{user_id}:{i}",
        )


def test_unread_count_and_mark_read(db, client_user, support):
    _seed(db, client_user.id)
    _seed(db, support.id, count=1)

    assert notification_service.get_unread_count(db, client_user.id) == 3

    first = notification_service.get_notifications(db, client_user.id)[0]
    notification_service.mark_read(db, first.id, client_user.id)
    assert notification_service.get_unread_count(db, client_user.id) == 2
    assert len(notification_service.get_notifications(db, client_user.id, unread_only=True)) == 2

    # Cannot touch someone else's notification
    others = notification_service.get_notifications(db, support.id)
    assert notification_service.mark_read(db, others[0].id, client_user.id) is None


def test_mark_all_read_and_delete_read(db, client_user):
    _seed(db, client_user.id)

    assert notification_service.mark_all_read(db, client_user.id) == 3
    assert notification_service.get_unread_count(db, client_user.id) == 0
    assert notification_service.delete_all_read(db, client_user.id) == 3
    assert notification_service.get_notifications(db, client_user.id) == []


def test_delete_notification_scoped_to_owner(db, client_user, support):
    _seed(db, client_user.id, count=1)
    notification = notification_service.get_notifications(db, client_user.id)[0]

    assert notification_service.delete_notification(db, notification.id, support.id) is False
    assert notification_service.delete_notification(db, notification.id, client_user.id) is True
