"""
Complaints Router - /complaints endpoints.

Intake, role-scoped listing, edits, status lifecycle, assignment and responses.
Service errors are translated to HTTP responses by the app-level handler.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from complaint_desk.core.deps import (
    get_current_session,
    get_db,
    require_csrf_header,
    require_roles,
)
from complaint_desk.db.enums import ComplaintStatus, ROLES_CAN_MANAGE, STAFF_ROLES
from complaint_desk.schemas.auth import UserSession
from complaint_desk.schemas.complaint import (
    BalancedAssignment,
    ComplaintAssign,
    ComplaintCreate,
    ComplaintDetail,
    ComplaintHistoryRead,
    ComplaintRead,
    ComplaintResolve,
    ComplaintStatusChange,
    ComplaintUpdate,
    ResolutionResponse,
    ResponseCreate,
    ResponseRead,
)
from complaint_desk.schemas.user import AssignableStaffItem
from complaint_desk.services import (
    assignment_service,
    complaint_service,
    complaint_status_service,
    response_service,
)


router = APIRouter()


@router.post(
    "",
    response_model=ComplaintDetail,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_complaint(
    data: ComplaintCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Submit a complaint (clients only)."""
    return complaint_service.create_complaint(db, session.user_id, data)


@router.get("", response_model=list[ComplaintRead])
def list_complaints(
    status: ComplaintStatus | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """List complaints visible to the current user."""
    return complaint_service.list_complaints(
        db, session.user_id, status=status, limit=limit, offset=offset
    )


@router.get("/assignable-staff", response_model=list[AssignableStaffItem])
def list_assignable_staff(
    search: str | None = Query(None, max_length=100),
    session: UserSession = Depends(require_roles(STAFF_ROLES)),
    db: Session = Depends(get_db),
):
    """Staff users with their open complaint counts."""
    return assignment_service.list_assignable_staff(db, session.user_id, search=search)


@router.post(
    "/balance-workload",
    response_model=list[BalancedAssignment],
    dependencies=[Depends(require_csrf_header)],
)
def balance_workload(
    session: UserSession = Depends(require_roles(ROLES_CAN_MANAGE)),
    db: Session = Depends(get_db),
):
    """Hand unassigned pending complaints to the least busy support users."""
    return assignment_service.balance_workload(db, session.user_id)


@router.get("/{complaint_id}", response_model=ComplaintDetail)
def get_complaint(
    complaint_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return complaint_service.get_complaint(db, complaint_id, session.user_id)


@router.patch(
    "/{complaint_id}",
    response_model=ComplaintRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_complaint(
    complaint_id: UUID,
    data: ComplaintUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Edit title, description, category or priority."""
    return complaint_service.update_complaint(db, complaint_id, session.user_id, data)


@router.delete(
    "/{complaint_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_complaint(
    complaint_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    complaint_service.delete_complaint(db, complaint_id, session.user_id)


@router.patch(
    "/{complaint_id}/status",
    response_model=ComplaintRead,
    dependencies=[Depends(require_csrf_header)],
)
def change_status(
    complaint_id: UUID,
    data: ComplaintStatusChange,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """
    Change complaint status.

    Pass expected_status to fail with 409 instead of overwriting a change
    made since the client last read the complaint.
    """
    return complaint_status_service.transition(
        db,
        complaint_id,
        data.status,
        session.user_id,
        message=data.message,
        expected_status=data.expected_status,
    )


@router.post(
    "/{complaint_id}/assign",
    response_model=ComplaintRead,
    dependencies=[Depends(require_csrf_header)],
)
def assign_complaint(
    complaint_id: UUID,
    data: ComplaintAssign,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Assign, reassign or unassign (assignee_id=null) a complaint."""
    return assignment_service.assign(db, complaint_id, data.assignee_id, session.user_id)


@router.post(
    "/{complaint_id}/resolve",
    response_model=ComplaintRead,
    dependencies=[Depends(require_csrf_header)],
)
def resolve_complaint(
    complaint_id: UUID,
    data: ComplaintResolve,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return complaint_status_service.resolve_complaint(
        db, complaint_id, session.user_id, data.resolution_comment
    )


@router.post(
    "/{complaint_id}/resolution-response",
    response_model=ComplaintRead,
    dependencies=[Depends(require_csrf_header)],
)
def respond_to_resolution(
    complaint_id: UUID,
    data: ResolutionResponse,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Client approves (closes) or rejects (reopens) a resolution."""
    return complaint_status_service.respond_to_resolution(
        db, complaint_id, session.user_id, data.action, feedback=data.feedback
    )


@router.get("/{complaint_id}/history", response_model=list[ComplaintHistoryRead])
def get_history(
    complaint_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    complaint_service.get_complaint(db, complaint_id, session.user_id)
    return list(complaint_status_service.list_history(db, complaint_id))


@router.get("/{complaint_id}/responses", response_model=list[ResponseRead])
def list_responses(
    complaint_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    complaint_service.get_complaint(db, complaint_id, session.user_id)
    return response_service.list_responses(db, complaint_id)


@router.post(
    "/{complaint_id}/responses",
    response_model=ResponseRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def add_response(
    complaint_id: UUID,
    data: ResponseCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return response_service.add_response(
        db, complaint_id, session.user_id, data.message, attachments=data.attachments
    )
