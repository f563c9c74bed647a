"""Users Router - /users endpoints (admin only)."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from complaint_desk.core.deps import get_db, require_csrf_header, require_roles
from complaint_desk.db.enums import ROLES_CAN_MANAGE, UserRole
from complaint_desk.schemas.auth import UserSession
from complaint_desk.schemas.user import UserCreate, UserRead, UserUpdate
from complaint_desk.services import user_service
from complaint_desk.services.errors import NotFound


router = APIRouter()


@router.post(
    "",
    response_model=UserRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_user(
    data: UserCreate,
    session: UserSession = Depends(require_roles(ROLES_CAN_MANAGE)),
    db: Session = Depends(get_db),
):
    return user_service.create_user(db, data, acting_user_id=session.user_id)


@router.get("", response_model=list[UserRead])
def list_users(
    role: UserRole | None = Query(None),
    session: UserSession = Depends(require_roles(ROLES_CAN_MANAGE)),
    db: Session = Depends(get_db),
):
    return user_service.list_users(db, session.user_id, role=role)


@router.get("/{user_id}", response_model=UserRead)
def get_user(
    user_id: UUID,
    session: UserSession = Depends(require_roles(ROLES_CAN_MANAGE)),
    db: Session = Depends(get_db),
):
    user = user_service.get_user(db, user_id)
    if not user:
        raise NotFound("User", user_id)
    return user


@router.patch(
    "/{user_id}",
    response_model=UserRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_user(
    user_id: UUID,
    data: UserUpdate,
    session: UserSession = Depends(require_roles(ROLES_CAN_MANAGE)),
    db: Session = Depends(get_db),
):
    """Change email, name or organization. The role cannot be changed."""
    return user_service.update_user(db, user_id, session.user_id, data)


@router.delete(
    "/{user_id}",
    response_model=UserRead,
    dependencies=[Depends(require_csrf_header)],
)
def deactivate_user(
    user_id: UUID,
    session: UserSession = Depends(require_roles(ROLES_CAN_MANAGE)),
    db: Session = Depends(get_db),
):
    """Deactivate an account. 409 while open complaints are assigned to it."""
    return user_service.deactivate_user(db, user_id, session.user_id)
