"""Teams Router - /teams endpoints (admin only)."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from complaint_desk.core.deps import get_db, require_csrf_header, require_roles
from complaint_desk.db.enums import ROLES_CAN_MANAGE
from complaint_desk.schemas.auth import UserSession
from complaint_desk.schemas.team import (
    TeamCreate,
    TeamMemberCreate,
    TeamMemberRead,
    TeamRead,
    TeamUpdate,
)
from complaint_desk.services import team_service


router = APIRouter()


@router.post(
    "",
    response_model=TeamRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_team(
    data: TeamCreate,
    session: UserSession = Depends(require_roles(ROLES_CAN_MANAGE)),
    db: Session = Depends(get_db),
):
    return team_service.create_team(db, session.user_id, data)


@router.get("", response_model=list[TeamRead])
def list_teams(
    session: UserSession = Depends(require_roles(ROLES_CAN_MANAGE)),
    db: Session = Depends(get_db),
):
    return team_service.list_teams(db)


@router.get("/{team_id}", response_model=TeamRead)
def get_team(
    team_id: UUID,
    session: UserSession = Depends(require_roles(ROLES_CAN_MANAGE)),
    db: Session = Depends(get_db),
):
    return team_service.get_team(db, team_id)


@router.patch(
    "/{team_id}",
    response_model=TeamRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_team(
    team_id: UUID,
    data: TeamUpdate,
    session: UserSession = Depends(require_roles(ROLES_CAN_MANAGE)),
    db: Session = Depends(get_db),
):
    return team_service.update_team(db, team_id, session.user_id, data)


@router.delete(
    "/{team_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_team(
    team_id: UUID,
    session: UserSession = Depends(require_roles(ROLES_CAN_MANAGE)),
    db: Session = Depends(get_db),
):
    """Delete a team. 409 while it still owns projects."""
    team_service.delete_team(db, team_id, session.user_id)


@router.get("/{team_id}/members", response_model=list[TeamMemberRead])
def list_members(
    team_id: UUID,
    session: UserSession = Depends(require_roles(ROLES_CAN_MANAGE)),
    db: Session = Depends(get_db),
):
    return team_service.list_members(db, team_id)


@router.post(
    "/{team_id}/members",
    response_model=TeamMemberRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def add_member(
    team_id: UUID,
    data: TeamMemberCreate,
    session: UserSession = Depends(require_roles(ROLES_CAN_MANAGE)),
    db: Session = Depends(get_db),
):
    """Add a user to the team. 409 if they are already a member."""
    return team_service.add_member(db, team_id, data.user_id, session.user_id, role=data.role)


@router.delete(
    "/{team_id}/members/{user_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def remove_member(
    team_id: UUID,
    user_id: UUID,
    session: UserSession = Depends(require_roles(ROLES_CAN_MANAGE)),
    db: Session = Depends(get_db),
):
    team_service.remove_member(db, team_id, user_id, session.user_id)
