"""Team service - teams and membership (with TEAM_ADDED/TEAM_REMOVED events)."""

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from complaint_desk.core.structured_logging import build_log_context
from complaint_desk.db.enums import ActivityAction, NotificationType
from complaint_desk.db.models import Project, Team, TeamMember, User
from complaint_desk.schemas.team import TeamCreate, TeamUpdate
from complaint_desk.services import activity_service, complaint_events
from complaint_desk.services.errors import AlreadyMember, InUse, NotFound, ValidationError
from complaint_desk.services.user_service import require_manager

logger = logging.getLogger(__name__)

DEFAULT_MEMBER_ROLE = "MEMBER"


def get_team(db: Session, team_id: UUID) -> Team:
    team = db.get(Team, team_id)
    if not team:
        raise NotFound("Team", team_id)
    return team


def get_membership(db: Session, team_id: UUID, user_id: UUID) -> TeamMember | None:
    return db.query(TeamMember).filter(
        TeamMember.team_id == team_id,
        TeamMember.user_id == user_id,
    ).first()


def _add_member(
    db: Session,
    team: Team,
    user_id: UUID,
    role: str,
    actor_id: UUID,
) -> TeamMember:
    """Stage a membership, its activity entry and TEAM_ADDED event. No commit."""
    if db.get(User, user_id) is None:
        raise NotFound("User", user_id)
    if get_membership(db, team.id, user_id):
        raise AlreadyMember(f"User {user_id} is already a member of this team")

    member = TeamMember(team_id=team.id, user_id=user_id, role=role or DEFAULT_MEMBER_ROLE)
    db.add(member)
    db.flush()

    activity_service.record(
        db,
        user_id=actor_id,
        action=ActivityAction.TEAM_MEMBER_ADDED,
        entity_id=team.id,
        details={"member_user_id": str(user_id), "role": member.role},
    )
    complaint_events.publish(
        db,
        complaint_events.team_event(
            team,
            NotificationType.TEAM_ADDED,
            actor_user_id=actor_id,
            subject_user_id=user_id,
        ),
    )
    return member


def create_team(db: Session, acting_user_id: UUID, data: TeamCreate) -> Team:
    """Create a team with its initial members. Admin only."""
    actor = require_manager(db, acting_user_id)

    team = Team(name=data.name.strip(), description=data.description)
    db.add(team)
    db.flush()
    activity_service.record(
        db,
        user_id=actor.id,
        action=ActivityAction.TEAM_CREATED,
        entity_id=team.id,
        details={"member_count": len(data.members)},
    )
    try:
        for member in data.members:
            _add_member(db, team, member.user_id, member.role, actor.id)
        db.commit()
    except (AlreadyMember, NotFound):
        db.rollback()
        raise

    db.refresh(team)
    return team


def list_teams(db: Session) -> list[Team]:
    return db.query(Team).order_by(Team.name).all()


def update_team(db: Session, team_id: UUID, acting_user_id: UUID, data: TeamUpdate) -> Team:
    """Rename a team or change its description. Admin only."""
    actor = require_manager(db, acting_user_id)
    team = get_team(db, team_id)

    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No changes provided")
    if changes.get("name") is not None:
        team.name = changes["name"].strip()
    if "description" in changes:
        team.description = changes["description"]

    activity_service.record(
        db,
        user_id=actor.id,
        action=ActivityAction.TEAM_UPDATED,
        entity_id=team.id,
        details={"fields": sorted(changes)},
    )
    db.commit()
    db.refresh(team)
    return team


def delete_team(db: Session, team_id: UUID, acting_user_id: UUID) -> None:
    """
    Delete a team and its memberships. Admin only.

    Raises InUse while projects still belong to the team.
    """
    actor = require_manager(db, acting_user_id)
    team = get_team(db, team_id)

    project_count = db.query(Project).filter(Project.team_id == team.id).count()
    if project_count:
        raise InUse(f"Team still owns {project_count} project(s)")

    activity_service.record(
        db,
        user_id=actor.id,
        action=ActivityAction.TEAM_DELETED,
        entity_id=team.id,
        details={"name": team.name, "member_count": len(team.members)},
    )
    db.delete(team)
    db.commit()
    logger.info(
        "Team deleted: %s",
        build_log_context(user_id=actor.id, team_id=team_id),
    )


def add_member(
    db: Session,
    team_id: UUID,
    user_id: UUID,
    acting_user_id: UUID,
    role: str = DEFAULT_MEMBER_ROLE,
) -> TeamMember:
    """Add a user to a team. Raises AlreadyMember for duplicates."""
    actor = require_manager(db, acting_user_id)
    team = get_team(db, team_id)

    member = _add_member(db, team, user_id, role, actor.id)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent add of the same user
        db.rollback()
        raise AlreadyMember(f"User {user_id} is already a member of this team") from None

    db.refresh(member)
    logger.info(
        "Team member added: %s",
        build_log_context(user_id=actor.id, team_id=team.id, member_user_id=user_id),
    )
    return member


def remove_member(db: Session, team_id: UUID, user_id: UUID, acting_user_id: UUID) -> None:
    """Remove a user from a team. Raises NotFound when they are not a member."""
    actor = require_manager(db, acting_user_id)
    team = get_team(db, team_id)

    member = get_membership(db, team.id, user_id)
    if not member:
        raise NotFound("Team member", user_id)

    db.delete(member)
    activity_service.record(
        db,
        user_id=actor.id,
        action=ActivityAction.TEAM_MEMBER_REMOVED,
        entity_id=team.id,
        details={"member_user_id": str(user_id)},
    )
    complaint_events.publish(
        db,
        complaint_events.team_event(
            team,
            NotificationType.TEAM_REMOVED,
            actor_user_id=actor.id,
            subject_user_id=user_id,
        ),
    )
    db.commit()
    logger.info(
        "Team member removed: %s",
        build_log_context(user_id=actor.id, team_id=team.id, member_user_id=user_id),
    )


def list_members(db: Session, team_id: UUID) -> list[TeamMember]:
    get_team(db, team_id)
    return (
        db.query(TeamMember)
        .filter(TeamMember.team_id == team_id)
        .order_by(TeamMember.joined_at)
        .all()
    )
