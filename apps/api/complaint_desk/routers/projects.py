"""Projects Router - /projects endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from complaint_desk.core.deps import (
    get_current_session,
    get_db,
    require_csrf_header,
    require_roles,
)
from complaint_desk.db.enums import ROLES_CAN_MANAGE
from complaint_desk.schemas.auth import UserSession
from complaint_desk.schemas.team import ProjectCreate, ProjectRead
from complaint_desk.services import project_service


router = APIRouter()


@router.post(
    "",
    response_model=ProjectRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_project(
    data: ProjectCreate,
    session: UserSession = Depends(require_roles(ROLES_CAN_MANAGE)),
    db: Session = Depends(get_db),
):
    return project_service.create_project(db, session.user_id, data)


@router.get("", response_model=list[ProjectRead])
def list_projects(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return project_service.list_projects(db)


@router.get("/{project_id}", response_model=ProjectRead)
def get_project(
    project_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return project_service.get_project(db, project_id)
