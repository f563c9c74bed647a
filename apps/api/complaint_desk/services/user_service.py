"""User service - account creation, lookup and admin maintenance."""

import logging
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from complaint_desk.core.structured_logging import build_log_context
from complaint_desk.db.enums import ActivityAction, OPEN_STATUSES, ROLES_CAN_MANAGE, UserRole
from complaint_desk.db.models import Complaint, TeamMember, User
from complaint_desk.schemas.user import UserCreate, UserUpdate
from complaint_desk.services import activity_service
from complaint_desk.services.errors import (
    AlreadyExists,
    Forbidden,
    InUse,
    NotFound,
    ValidationError,
)

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: UUID) -> User | None:
    return db.get(User, user_id)


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()


def require_manager(db: Session, user_id: UUID) -> User:
    """Load the acting user and require an active admin."""
    user = db.get(User, user_id)
    if not user:
        raise NotFound("User", user_id)
    if not user.is_active or not (
        UserRole.has_value(user.role) and UserRole(user.role) in ROLES_CAN_MANAGE
    ):
        raise Forbidden("Admin access required")
    return user


def create_user(db: Session, data: UserCreate, acting_user_id: UUID | None = None) -> User:
    """
    Create a user. The role is fixed here and never changed afterwards.

    acting_user_id is None for bootstrap paths (CLI); otherwise the actor
    must be an admin.
    """
    if acting_user_id is not None:
        require_manager(db, acting_user_id)

    email = data.email.strip().lower()
    if get_user_by_email(db, email):
        raise AlreadyExists(f"User with email {email} already exists")

    user = User(
        email=email,
        name=data.name.strip(),
        organization=data.organization,
        role=data.role.value,
    )
    db.add(user)
    try:
        db.flush()
        activity_service.record(
            db,
            user_id=acting_user_id or user.id,
            action=ActivityAction.USER_CREATED,
            entity_id=user.id,
            details={"role": user.role},
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AlreadyExists(f"User with email {email} already exists") from None

    db.refresh(user)
    logger.info(
        "User created: %s",
        build_log_context(user_id=user.id, role=user.role, actor_id=acting_user_id),
    )
    return user



def list_users(db: Session, acting_user_id: UUID, role: UserRole | None = None) -> list[User]:
    """List users, optionally filtered by role. Admin only."""
    require_manager(db, acting_user_id)
    query = db.query(User)
    if role:
        query = query.filter(User.role == role.value)
    return query.order_by(User.name).all()


def update_user(db: Session, user_id: UUID, acting_user_id: UUID, data: UserUpdate) -> User:
    """Change a user's email, name or organization. Admin only."""
    actor = require_manager(db, acting_user_id)
    user = get_user(db, user_id)
    if not user:
        raise NotFound("User", user_id)

    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No changes provided")

    if changes.get("email") is not None:
        email = changes["email"].strip().lower()
        existing = get_user_by_email(db, email)
        if existing and existing.id != user.id:
            raise AlreadyExists(f"User with email {email} already exists")
        user.email = email
    if changes.get("name") is not None:
        user.name = changes["name"].strip()
    if "organization" in changes:
        user.organization = changes["organization"]

    activity_service.record(
        db,
        user_id=actor.id,
        action=ActivityAction.USER_UPDATED,
        entity_id=user.id,
        details={"fields": sorted(changes)},
    )
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AlreadyExists(f"User with email {user.email} already exists") from None

    db.refresh(user)
    return user


def deactivate_user(db: Session, user_id: UUID, acting_user_id: UUID) -> User:
    """
    Disable a user account. Admin only.

    Accounts are kept because complaints, history and the activity log refer
    to them. Existing sessions are revoked and team memberships dropped.
    Raises InUse while open complaints are still assigned to the user.
    """
    actor = require_manager(db, acting_user_id)
    if user_id == actor.id:
        raise ValidationError("Cannot deactivate your own account")
    user = get_user(db, user_id)
    if not user:
        raise NotFound("User", user_id)

    open_assigned = (
        db.query(Complaint)
        .filter(
            Complaint.assignee_id == user.id,
            Complaint.status.in_([status.value for status in OPEN_STATUSES]),
        )
        .count()
    )
    if open_assigned:
        raise InUse(f"User still has {open_assigned} open assigned complaint(s)")

    user.is_active = False
    user.token_version += 1
    db.query(TeamMember).filter(TeamMember.user_id == user.id).delete(
        synchronize_session=False
    )
    activity_service.record(
        db,
        user_id=actor.id,
        action=ActivityAction.USER_DEACTIVATED,
        entity_id=user.id,
    )
    db.commit()
    db.refresh(user)
    logger.info(
        "User deactivated: %s",
        build_log_context(user_id=actor.id, target_user_id=user.id),
    )
    return user
