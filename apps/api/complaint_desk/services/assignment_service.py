"""Complaint assignment (assign/reassign/unassign + staff workload)."""

import logging
from uuid import UUID

from sqlalchemy import func, or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from complaint_desk.core.structured_logging import build_log_context
from complaint_desk.db.enums import (
    ActivityAction,
    ComplaintStatus,
    NotificationType,
    OPEN_STATUSES,
    ROLES_CAN_ASSIGN,
    ROLES_CAN_MANAGE,
    STAFF_ROLES,
    TERMINAL_STATUSES,
    UserRole,
)
from complaint_desk.db.models import Complaint, ComplaintHistory, User
from complaint_desk.db.models._common import utcnow
from complaint_desk.services import activity_service, complaint_events
from complaint_desk.services.complaint_status_service import (
    get_complaint_or_raise,
    get_user_or_raise,
)
from complaint_desk.services.errors import (
    Forbidden,
    InvalidRole,
    NotFound,
    PersistenceFailure,
    TerminalState,
    ValidationError,
)

logger = logging.getLogger(__name__)

TERMINAL_VALUES = [status.value for status in TERMINAL_STATUSES]
OPEN_VALUES = [status.value for status in OPEN_STATUSES]
STAFF_ROLE_VALUES = [role.value for role in STAFF_ROLES]


def _has_role(user: User, roles: frozenset[UserRole]) -> bool:
    return UserRole.has_value(user.role) and UserRole(user.role) in roles


def assign(
    db: Session,
    complaint_id: UUID,
    assignee_user_id: UUID | None,
    acting_user_id: UUID,
) -> Complaint:
    """
    Set (or clear, with None) the complaint's assignee.

    Status is never touched. The update is guarded on the complaint not being
    terminal, so a complaint closed concurrently raises TerminalState instead
    of being silently reassigned.
    """
    complaint = get_complaint_or_raise(db, complaint_id)
    actor = get_user_or_raise(db, acting_user_id)

    if not actor.is_active or not _has_role(actor, ROLES_CAN_ASSIGN):
        raise Forbidden("Not authorized to assign complaints")

    if assignee_user_id is not None:
        assignee = db.get(User, assignee_user_id)
        if not assignee:
            raise NotFound("User", assignee_user_id)
        if not _has_role(assignee, STAFF_ROLES):
            raise InvalidRole("Complaints can only be assigned to SUPPORT or ADMIN users")
        if not assignee.is_active:
            raise InvalidRole("Complaints cannot be assigned to inactive users")

    if complaint.status in TERMINAL_VALUES:
        raise TerminalState(complaint.status)

    previous_assignee_id = complaint.assignee_id

    try:
        result = db.execute(
            update(Complaint)
            .where(Complaint.id == complaint.id, Complaint.status.not_in(TERMINAL_VALUES))
            .values(assignee_id=assignee_user_id, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.rollback()
            db.refresh(complaint)
            raise TerminalState(complaint.status)

        activity_service.log_assigned(
            db,
            complaint_id=complaint.id,
            user_id=actor.id,
            to_user_id=assignee_user_id,
            from_user_id=previous_assignee_id,
        )
        complaint_events.publish(
            db,
            complaint_events.complaint_event(
                complaint,
                NotificationType.ASSIGNED,
                actor_user_id=actor.id,
                assignee_id=assignee_user_id,
                previous_assignee_id=previous_assignee_id,
            ),
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(
            "Complaint assignment failed: %s",
            build_log_context(
                user_id=actor.id,
                complaint_id=complaint_id,
                error_class=type(exc).__name__,
            ),
        )
        raise PersistenceFailure("Could not save the assignment") from exc

    db.refresh(complaint)
    logger.info(
        "Complaint assigned: %s",
        build_log_context(
            user_id=actor.id,
            complaint_id=complaint.id,
            assignee_id=assignee_user_id,
            previous_assignee_id=previous_assignee_id,
        ),
    )
    return complaint


def open_count_subquery(db: Session):
    """Subquery of (assignee_id, open_count) over PENDING and IN_PROGRESS complaints."""
    return (
        db.query(Complaint.assignee_id, func.count(Complaint.id).label("open_count"))
        .filter(Complaint.status.in_(OPEN_VALUES), Complaint.assignee_id.is_not(None))
        .group_by(Complaint.assignee_id)
        .subquery()
    )


def list_assignable_staff(
    db: Session,
    acting_user_id: UUID,
    search: str | None = None,
) -> list[dict]:
    """
    Active staff users with their number of open assigned complaints.

    Ordered by workload (lightest first), then name.
    """
    actor = get_user_or_raise(db, acting_user_id)
    if not _has_role(actor, STAFF_ROLES):
        raise Forbidden("Not authorized to view staff")

    open_count = open_count_subquery(db)

    query = (
        db.query(User, func.coalesce(open_count.c.open_count, 0))
        .outerjoin(open_count, open_count.c.assignee_id == User.id)
        .filter(User.role.in_(STAFF_ROLE_VALUES), User.is_active.is_(True))
    )
    if search:
        pattern = f"%{search.lower()}%"
        query = query.filter(
            or_(func.lower(User.name).like(pattern), func.lower(User.email).like(pattern))
        )

    rows = query.order_by(func.coalesce(open_count.c.open_count, 0), User.name).all()
    return [
        {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "role": user.role,
            "open_complaints": int(count),
        }
        for user, count in rows
    ]


def _claim_for(db: Session, complaint: Complaint, assignee: User, actor: User) -> bool:
    """
    Assign an unassigned PENDING complaint and start work on it, in one commit.

    The update is guarded on the complaint still being PENDING and
    unassigned; returns False (nothing written) when another writer got
    there first.
    """
    now = utcnow()
    result = db.execute(
        update(Complaint)
        .where(
            Complaint.id == complaint.id,
            Complaint.status == ComplaintStatus.PENDING.value,
            Complaint.assignee_id.is_(None),
        )
        .values(
            assignee_id=assignee.id,
            status=ComplaintStatus.IN_PROGRESS.value,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        return False

    message = f"Assigned to {assignee.name} by workload balancing"
    db.add(
        ComplaintHistory(
            complaint_id=complaint.id,
            status=ComplaintStatus.IN_PROGRESS.value,
            message=message,
            user_id=actor.id,
            created_at=now,
        )
    )
    activity_service.log_assigned(
        db,
        complaint_id=complaint.id,
        user_id=actor.id,
        to_user_id=assignee.id,
        from_user_id=None,
    )
    activity_service.log_status_changed(
        db,
        complaint_id=complaint.id,
        user_id=actor.id,
        from_status=ComplaintStatus.PENDING.value,
        to_status=ComplaintStatus.IN_PROGRESS.value,
        action=ActivityAction.COMPLAINT_STATUS_CHANGED,
        message=message,
    )
    complaint_events.publish(
        db,
        complaint_events.complaint_event(
            complaint,
            NotificationType.ASSIGNED,
            actor_user_id=actor.id,
            assignee_id=assignee.id,
        ),
    )
    complaint_events.publish(
        db,
        complaint_events.complaint_event(
            complaint,
            NotificationType.STATUS_UPDATED,
            actor_user_id=actor.id,
            assignee_id=assignee.id,
            from_status=ComplaintStatus.PENDING.value,
            to_status=ComplaintStatus.IN_PROGRESS.value,
        ),
    )
    db.commit()
    return True


def balance_workload(db: Session, acting_user_id: UUID) -> list[dict]:
    """
    Hand every unassigned PENDING complaint (oldest first) to the active
    support user with the fewest open complaints, moving it to IN_PROGRESS.

    Admin only. Complaints picked up concurrently are skipped. Returns the
    assignments that were made.
    """
    actor = get_user_or_raise(db, acting_user_id)
    if not actor.is_active or not _has_role(actor, ROLES_CAN_MANAGE):
        raise Forbidden("Only admins can balance workload")

    unassigned = (
        db.query(Complaint)
        .filter(
            Complaint.status == ComplaintStatus.PENDING.value,
            Complaint.assignee_id.is_(None),
        )
        .order_by(Complaint.created_at)
        .all()
    )
    if not unassigned:
        return []

    open_count = open_count_subquery(db)
    staff = (
        db.query(User, func.coalesce(open_count.c.open_count, 0))
        .outerjoin(open_count, open_count.c.assignee_id == User.id)
        .filter(User.role == UserRole.SUPPORT.value, User.is_active.is_(True))
        .all()
    )
    if not staff:
        raise ValidationError("No support staff available for assignment")

    loads = {user.id: int(count) for user, count in staff}
    users = {user.id: user for user, _ in staff}

    assignments = []
    for complaint in unassigned:
        assignee_id = min(loads, key=lambda user_id: (loads[user_id], users[user_id].name))
        try:
            claimed = _claim_for(db, complaint, users[assignee_id], actor)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error(
                "Workload balancing failed: %s",
                build_log_context(
                    user_id=actor.id,
                    complaint_id=complaint.id,
                    error_class=type(exc).__name__,
                ),
            )
            raise PersistenceFailure("Could not save the assignment") from exc
        if not claimed:
            logger.info(
                "Skipped complaint picked up concurrently: %s",
                build_log_context(user_id=actor.id, complaint_id=complaint.id),
            )
            continue
        loads[assignee_id] += 1
        assignments.append({"complaint_id": complaint.id, "assignee_id": assignee_id})

    logger.info(
        "Workload balanced: %s",
        build_log_context(user_id=actor.id, assigned=len(assignments)),
    )
    return assignments
