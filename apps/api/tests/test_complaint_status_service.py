"""Tests for the complaint status lifecycle."""

import pytest
from sqlalchemy.exc import OperationalError

from complaint_desk.db.enums import ActivityAction, ComplaintStatus, JobStatus, ResolutionAction
from complaint_desk.db.models import ActivityLog, ComplaintHistory, Job, Response
from complaint_desk.services import assignment_service, complaint_status_service
from complaint_desk.services.errors import (
    Conflict,
    Forbidden,
    InvalidTransition,
    NotFound,
    PersistenceFailure,
    ValidationError,
)


def _history(db, complaint_id):
    return list(complaint_status_service.list_history(db, complaint_id))


def test_new_complaint_has_initial_pending_history(db, complaint, client_user):
    history = _history(db, complaint.id)

    assert complaint.status == ComplaintStatus.PENDING.value
    assert len(history) == 1
    assert history[0].status == ComplaintStatus.PENDING.value
    assert history[0].user_id == client_user.id


def test_client_can_withdraw_pending_complaint(db, complaint, client_user):
    updated = complaint_status_service.transition(
        db, complaint.id, ComplaintStatus.WITHDRAWN, client_user.id
    )

    assert updated.status == ComplaintStatus.WITHDRAWN.value
    history = _history(db, complaint.id)
    assert [h.status for h in history] == ["PENDING", "WITHDRAWN"]
    assert history[-1].message == "Status changed from PENDING to WITHDRAWN"
    assert history[-1].user_id == client_user.id


def test_staff_moves_forward_and_client_cannot(db, complaint, support, client_user):
    complaint_status_service.transition(
        db, complaint.id, ComplaintStatus.IN_PROGRESS, support.id, message="Looking into it"
    )

    with pytest.raises(Forbidden):
        complaint_status_service.transition(
            db, complaint.id, ComplaintStatus.RESOLVED, client_user.id
        )

    db.refresh(complaint)
    assert complaint.status == ComplaintStatus.IN_PROGRESS.value
    history = _history(db, complaint.id)
    assert len(history) == 2
    assert history[-1].message == "Looking into it"


def test_staff_cannot_withdraw(db, complaint, admin):
    with pytest.raises(Forbidden):
        complaint_status_service.transition(
            db, complaint.id, ComplaintStatus.WITHDRAWN, admin.id
        )


def test_other_client_is_forbidden(db, complaint, make_user):
    stranger = make_user()
    with pytest.raises(Forbidden):
        complaint_status_service.transition(
            db, complaint.id, ComplaintStatus.WITHDRAWN, stranger.id
        )


def test_unreachable_target_is_invalid(db, complaint, support):
    with pytest.raises(InvalidTransition):
        complaint_status_service.transition(
            db, complaint.id, ComplaintStatus.CLOSED, support.id
        )


@pytest.mark.parametrize("terminal", [ComplaintStatus.CLOSED, ComplaintStatus.WITHDRAWN])
@pytest.mark.parametrize("target", list(ComplaintStatus))
def test_terminal_complaints_reject_every_transition(db, complaint, admin, terminal, target):
    complaint.status = terminal.value
    db.commit()

    with pytest.raises(InvalidTransition):
        complaint_status_service.transition(db, complaint.id, target, admin.id)


def test_missing_complaint_or_actor(db, complaint, support):
    import uuid

    with pytest.raises(NotFound):
        complaint_status_service.transition(
            db, uuid.uuid4(), ComplaintStatus.IN_PROGRESS, support.id
        )
    with pytest.raises(NotFound):
        complaint_status_service.transition(
            db, complaint.id, ComplaintStatus.IN_PROGRESS, uuid.uuid4()
        )


def test_latest_history_matches_status_after_each_transition(db, complaint, support, client_user):
    steps = [
        (ComplaintStatus.IN_PROGRESS, support.id),
        (ComplaintStatus.RESOLVED, support.id),
        (ComplaintStatus.CLOSED, support.id),
    ]
    for status, actor_id in steps:
        updated = complaint_status_service.transition(db, complaint.id, status, actor_id)
        history = _history(db, complaint.id)
        assert len(history) >= 1
        assert history[-1].status == updated.status
        assert history[-1].created_at == updated.updated_at


def test_transition_records_activity_and_event(db, complaint, support):
    complaint_status_service.transition(db, complaint.id, ComplaintStatus.IN_PROGRESS, support.id)

    entry = (
        db.query(ActivityLog)
        .filter(
            ActivityLog.entity_id == complaint.id,
            ActivityLog.action == ActivityAction.COMPLAINT_STATUS_CHANGED.value,
        )
        .one()
    )
    assert entry.user_id == support.id
    assert entry.details["from_status"] == "PENDING"
    assert entry.details["to_status"] == "IN_PROGRESS"

    events = [job.payload for job in db.query(Job).filter(Job.status == JobStatus.PENDING.value)]
    assert {e["type"] for e in events} == {"COMPLAINT_SUBMITTED", "STATUS_UPDATED"}


def test_concurrent_transition_loses_with_conflict(db, other_db, complaint, support, admin):
    # Second request reads the complaint before the first one commits
    stale = other_db.get(type(complaint), complaint.id)
    assert stale.status == ComplaintStatus.PENDING.value

    complaint_status_service.transition(db, complaint.id, ComplaintStatus.IN_PROGRESS, support.id)

    with pytest.raises(Conflict) as exc_info:
        complaint_status_service.transition(
            other_db, complaint.id, ComplaintStatus.WITHDRAWN, stale.client_id
        )
    assert exc_info.value.expected == ComplaintStatus.PENDING.value
    assert exc_info.value.actual == ComplaintStatus.IN_PROGRESS.value

    # Exactly one of the two changes was recorded
    history = _history(db, complaint.id)
    assert [h.status for h in history] == ["PENDING", "IN_PROGRESS"]


def test_expected_status_mismatch_is_conflict(db, complaint, support):
    with pytest.raises(Conflict):
        complaint_status_service.transition(
            db,
            complaint.id,
            ComplaintStatus.RESOLVED,
            support.id,
            expected_status=ComplaintStatus.IN_PROGRESS,
        )
    assert len(_history(db, complaint.id)) == 1


def test_commit_failure_rolls_everything_back(db, complaint, support, monkeypatch):
    def failing_commit():
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db, "commit", failing_commit)

    with pytest.raises(PersistenceFailure):
        complaint_status_service.transition(
            db, complaint.id, ComplaintStatus.IN_PROGRESS, support.id
        )

    monkeypatch.undo()
    db.refresh(complaint)
    assert complaint.status == ComplaintStatus.PENDING.value
    assert len(_history(db, complaint.id)) == 1
    assert db.query(ActivityLog).filter(
        ActivityLog.action == ActivityAction.COMPLAINT_STATUS_CHANGED.value
    ).count() == 0


def test_list_history_is_restartable(db, complaint, support):
    complaint_status_service.transition(db, complaint.id, ComplaintStatus.IN_PROGRESS, support.id)

    first = [h.id for h in complaint_status_service.list_history(db, complaint.id)]
    second = [h.id for h in complaint_status_service.list_history(db, complaint.id)]
    assert first == second
    assert len(first) == 2


def test_list_history_missing_complaint(db):
    import uuid

    with pytest.raises(NotFound):
        complaint_status_service.list_history(db, uuid.uuid4())


# =============================================================================
# Resolve / respond to resolution
# =============================================================================


def test_resolve_requires_comment(db, complaint, support):
    complaint_status_service.transition(db, complaint.id, ComplaintStatus.IN_PROGRESS, support.id)

    with pytest.raises(ValidationError):
        complaint_status_service.resolve_complaint(db, complaint.id, support.id, "   ")


def test_resolve_stores_response_and_assigns_resolver(db, complaint, support):
    complaint_status_service.transition(db, complaint.id, ComplaintStatus.IN_PROGRESS, support.id)

    resolved = complaint_status_service.resolve_complaint(
        db, complaint.id, support.id, "Raised the gateway timeout"
    )

    assert resolved.status == ComplaintStatus.RESOLVED.value
    assert resolved.assignee_id == support.id
    response = db.query(Response).filter(Response.complaint_id == complaint.id).one()
    assert response.message == "Raised the gateway timeout"
    assert _history(db, complaint.id)[-1].message == "Complaint resolved: Raised the gateway timeout"


def test_resolve_keeps_existing_assignee(db, complaint, support, admin):
    assignment_service.assign(db, complaint.id, support.id, admin.id)
    complaint_status_service.transition(db, complaint.id, ComplaintStatus.IN_PROGRESS, support.id)

    resolved = complaint_status_service.resolve_complaint(db, complaint.id, admin.id, "Fixed")

    assert resolved.assignee_id == support.id


def test_resolve_from_pending_is_invalid(db, complaint, support):
    with pytest.raises(InvalidTransition):
        complaint_status_service.resolve_complaint(db, complaint.id, support.id, "Done")


def _resolved(db, complaint, support):
    complaint_status_service.transition(db, complaint.id, ComplaintStatus.IN_PROGRESS, support.id)
    complaint_status_service.resolve_complaint(db, complaint.id, support.id, "Fixed")


def test_client_approves_resolution(db, complaint, support, client_user):
    _resolved(db, complaint, support)

    closed = complaint_status_service.respond_to_resolution(
        db, complaint.id, client_user.id, ResolutionAction.APPROVE, feedback="Thanks"
    )

    assert closed.status == ComplaintStatus.CLOSED.value
    assert _history(db, complaint.id)[-1].message == "Client approved resolution: Thanks"


def test_client_rejects_resolution_reopens(db, complaint, support, client_user):
    _resolved(db, complaint, support)

    reopened = complaint_status_service.respond_to_resolution(
        db, complaint.id, client_user.id, "REJECT"
    )

    assert reopened.status == ComplaintStatus.IN_PROGRESS.value
    assert db.query(ActivityLog).filter(
        ActivityLog.action == ActivityAction.RESOLUTION_REJECTED.value
    ).count() == 1


def test_only_client_responds_to_resolution(db, complaint, support):
    _resolved(db, complaint, support)

    with pytest.raises(Forbidden):
        complaint_status_service.respond_to_resolution(
            db, complaint.id, support.id, ResolutionAction.APPROVE
        )


def test_respond_to_resolution_requires_resolved(db, complaint, client_user):
    with pytest.raises(InvalidTransition):
        complaint_status_service.respond_to_resolution(
            db, complaint.id, client_user.id, ResolutionAction.APPROVE
        )


def test_respond_to_resolution_rejects_unknown_action(db, complaint, client_user):
    with pytest.raises(ValidationError):
        complaint_status_service.respond_to_resolution(db, complaint.id, client_user.id, "MAYBE")


def test_history_rows_are_never_rewritten(db, complaint, support):
    first = _history(db, complaint.id)[0]
    first_id, first_status = first.id, first.status

    complaint_status_service.transition(db, complaint.id, ComplaintStatus.IN_PROGRESS, support.id)

    again = db.get(ComplaintHistory, first_id)
    assert again.status == first_status
