"""Stats service for the complaint dashboard.

Counts, trends and resolution times over the complaints visible to the
acting user (their own as a client, assigned ones as support, all as admin).
Purely query-driven aggregations.
"""

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from complaint_desk.db.enums import (
    OPEN_STATUSES,
    ROLES_CAN_MANAGE,
    ComplaintCategory,
    ComplaintPriority,
    ComplaintStatus,
    UserRole,
)
from complaint_desk.db.models import Complaint, ComplaintHistory, Project, User
from complaint_desk.services.assignment_service import open_count_subquery
from complaint_desk.services.complaint_service import scope_to_actor
from complaint_desk.services.complaint_status_service import get_user_or_raise
from complaint_desk.services.errors import Forbidden, ValidationError

RECENT_LIMIT = 5
OPEN_VALUES = [status.value for status in OPEN_STATUSES]

DIMENSIONS = {
    "status": (Complaint.status, ComplaintStatus),
    "category": (Complaint.category, ComplaintCategory),
    "priority": (Complaint.priority, ComplaintPriority),
}


def _scoped(db: Session, actor: User, *columns):
    return scope_to_actor(db.query(*columns) if columns else db.query(Complaint), actor)


# ============================================================================
# Summary
# ============================================================================

def get_dashboard_stats(db: Session, acting_user_id: UUID) -> dict[str, Any]:
    """Totals per status, open critical complaints and the latest complaints."""
    actor = get_user_or_raise(db, acting_user_id)

    by_status = get_distribution(db, acting_user_id, "status")
    critical_open = (
        _scoped(db, actor, func.count(Complaint.id))
        .filter(
            Complaint.priority == ComplaintPriority.CRITICAL.value,
            Complaint.status.in_(OPEN_VALUES),
        )
        .scalar()
    )
    recent = (
        _scoped(db, actor)
        .order_by(Complaint.created_at.desc())
        .limit(RECENT_LIMIT)
        .all()
    )
    return {
        "total": sum(by_status.values()),
        "by_status": by_status,
        "critical_open": critical_open or 0,
        "recent": recent,
    }


def get_distribution(db: Session, acting_user_id: UUID, dimension: str) -> dict[str, int]:
    """Complaint count for every status, category or priority (zeros included)."""
    if dimension not in DIMENSIONS:
        raise ValidationError(f"Unknown dimension '{dimension}'")
    column, enum = DIMENSIONS[dimension]
    actor = get_user_or_raise(db, acting_user_id)

    rows = (
        _scoped(db, actor, column, func.count(Complaint.id))
        .group_by(column)
        .all()
    )
    counts = {member.value: 0 for member in enum}
    for value, count in rows:
        counts[value] = count
    return counts


# ============================================================================
# Trend
# ============================================================================

def _month_key(value: datetime) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def get_complaints_trend(
    db: Session,
    acting_user_id: UUID,
    months: int = 6,
    now: datetime | None = None,
) -> list[dict[str, Any]]:
    """New complaints per calendar month, oldest month first, current month last."""
    if months < 1:
        raise ValidationError("months must be at least 1")
    actor = get_user_or_raise(db, acting_user_id)
    now = now or datetime.now(timezone.utc)

    year, month = now.year, now.month
    keys = []
    for _ in range(months):
        keys.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    keys.reverse()

    start_year, start_month = (int(part) for part in keys[0].split("-"))
    start = datetime(start_year, start_month, 1)

    counts = dict.fromkeys(keys, 0)
    created = _scoped(db, actor, Complaint.created_at).all()
    for (created_at,) in created:
        if created_at.replace(tzinfo=None) < start:
            continue
        key = _month_key(created_at)
        if key in counts:
            counts[key] += 1
    return [{"month": key, "count": counts[key]} for key in keys]


# ============================================================================
# Projects
# ============================================================================

def get_project_stats(
    db: Session,
    acting_user_id: UUID,
    limit: int = 5,
) -> list[dict[str, Any]]:
    """Projects with the most visible complaints, with a per-status breakdown."""
    actor = get_user_or_raise(db, acting_user_id)

    rows = (
        _scoped(db, actor, Complaint.project_id, Complaint.status, func.count(Complaint.id))
        .group_by(Complaint.project_id, Complaint.status)
        .all()
    )
    per_project: dict[UUID, dict[str, int]] = {}
    for project_id, status, count in rows:
        per_project.setdefault(project_id, {})[status] = count
    if not per_project:
        return []

    names = dict(
        db.query(Project.id, Project.name).filter(Project.id.in_(per_project)).all()
    )
    stats = [
        {
            "project_id": project_id,
            "project_name": names.get(project_id, "Unknown Project"),
            "complaint_count": sum(statuses.values()),
            "statuses": statuses,
        }
        for project_id, statuses in per_project.items()
    ]
    stats.sort(key=lambda item: (-item["complaint_count"], item["project_name"]))
    return stats[:limit]


# ============================================================================
# Resolution Time
# ============================================================================

def get_resolution_time_stats(db: Session, acting_user_id: UUID) -> dict[str, Any]:
    """
    Average days from submission to first resolution, overall and by priority.

    Covers complaints currently RESOLVED or CLOSED.
    """
    actor = get_user_or_raise(db, acting_user_id)

    first_resolved = (
        db.query(
            ComplaintHistory.complaint_id,
            func.min(ComplaintHistory.created_at).label("resolved_at"),
        )
        .filter(ComplaintHistory.status == ComplaintStatus.RESOLVED.value)
        .group_by(ComplaintHistory.complaint_id)
        .subquery()
    )
    rows = (
        _scoped(db, actor, Complaint.priority, Complaint.created_at, first_resolved.c.resolved_at)
        .join(first_resolved, first_resolved.c.complaint_id == Complaint.id)
        .filter(
            Complaint.status.in_(
                [ComplaintStatus.RESOLVED.value, ComplaintStatus.CLOSED.value]
            )
        )
        .all()
    )

    durations: dict[str, list[float]] = {member.value: [] for member in ComplaintPriority}
    for priority, created_at, resolved_at in rows:
        days = (resolved_at - created_at).total_seconds() / 86400
        durations.setdefault(priority, []).append(days)

    def _average(values: list[float]) -> float:
        return round(sum(values) / len(values), 1) if values else 0.0

    every = [days for values in durations.values() for days in values]
    return {
        "average_days": _average(every),
        "average_days_by_priority": {
            priority: _average(values) for priority, values in durations.items()
        },
        "total_resolved": len(every),
    }


# ============================================================================
# Workload
# ============================================================================

def get_workload_distribution(db: Session, acting_user_id: UUID) -> list[dict[str, Any]]:
    """Active support users with their open complaint count, busiest first. Admin only."""
    actor = get_user_or_raise(db, acting_user_id)
    if not UserRole.has_value(actor.role) or UserRole(actor.role) not in ROLES_CAN_MANAGE:
        raise Forbidden("Admin access required")

    open_count = open_count_subquery(db)
    rows = (
        db.query(User, func.coalesce(open_count.c.open_count, 0).label("open_count"))
        .outerjoin(open_count, open_count.c.assignee_id == User.id)
        .filter(User.role == UserRole.SUPPORT.value, User.is_active.is_(True))
        .order_by(func.coalesce(open_count.c.open_count, 0).desc(), User.name)
        .all()
    )
    return [
        {
            "user_id": user.id,
            "name": user.name,
            "email": user.email,
            "open_complaints": int(count),
        }
        for user, count in rows
    ]
