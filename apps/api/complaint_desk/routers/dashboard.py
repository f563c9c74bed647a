"""
Dashboard endpoints.

Complaint counts, trends and resolution times, scoped to what the current
user can see. Workload distribution is admin only.
"""

from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from complaint_desk.core.deps import get_current_session, get_db, require_roles
from complaint_desk.db.enums import ROLES_CAN_MANAGE
from complaint_desk.schemas.auth import UserSession
from complaint_desk.schemas.complaint import ComplaintRead
from complaint_desk.services import stats_service


router = APIRouter()


# =============================================================================
# Pydantic Schemas
# =============================================================================


class DashboardStats(BaseModel):
    total: int
    by_status: dict[str, int]
    critical_open: int
    recent: list[ComplaintRead]


class TrendPoint(BaseModel):
    month: str
    count: int


class ProjectStat(BaseModel):
    project_id: UUID
    project_name: str
    complaint_count: int
    statuses: dict[str, int]


class ResolutionTimeStats(BaseModel):
    average_days: float
    average_days_by_priority: dict[str, float]
    total_resolved: int


class WorkloadItem(BaseModel):
    user_id: UUID
    name: str
    email: str
    open_complaints: int


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/stats", response_model=DashboardStats)
def get_stats(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return stats_service.get_dashboard_stats(db, session.user_id)


@router.get("/distribution/{dimension}", response_model=dict[str, int])
def get_distribution(
    dimension: Literal["status", "category", "priority"],
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Complaint counts per status, category or priority."""
    return stats_service.get_distribution(db, session.user_id, dimension)


@router.get("/trend", response_model=list[TrendPoint])
def get_trend(
    months: int = Query(6, ge=1, le=24),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return stats_service.get_complaints_trend(db, session.user_id, months=months)


@router.get("/projects", response_model=list[ProjectStat])
def get_project_stats(
    limit: int = Query(5, ge=1, le=50),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return stats_service.get_project_stats(db, session.user_id, limit=limit)


@router.get("/resolution-time", response_model=ResolutionTimeStats)
def get_resolution_time(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return stats_service.get_resolution_time_stats(db, session.user_id)


@router.get("/workload", response_model=list[WorkloadItem])
def get_workload(
    session: UserSession = Depends(require_roles(ROLES_CAN_MANAGE)),
    db: Session = Depends(get_db),
):
    return stats_service.get_workload_distribution(db, session.user_id)
