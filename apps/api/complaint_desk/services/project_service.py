"""Project service - projects complaints are filed against."""

from uuid import UUID

from sqlalchemy.orm import Session

from complaint_desk.db.enums import ActivityAction
from complaint_desk.db.models import Project, Team
from complaint_desk.schemas.team import ProjectCreate
from complaint_desk.services import activity_service
from complaint_desk.services.errors import NotFound
from complaint_desk.services.user_service import require_manager


def create_project(db: Session, acting_user_id: UUID, data: ProjectCreate) -> Project:
    """Create a project, optionally owned by a team. Admin only."""
    actor = require_manager(db, acting_user_id)

    if data.team_id is not None and db.get(Team, data.team_id) is None:
        raise NotFound("Team", data.team_id)

    project = Project(
        name=data.name.strip(),
        description=data.description,
        team_id=data.team_id,
    )
    db.add(project)
    db.flush()
    activity_service.record(
        db,
        user_id=actor.id,
        action=ActivityAction.PROJECT_CREATED,
        entity_id=project.id,
        details={"team_id": str(data.team_id) if data.team_id else None},
    )
    db.commit()
    db.refresh(project)
    return project


def get_project(db: Session, project_id: UUID) -> Project:
    project = db.get(Project, project_id)
    if not project:
        raise NotFound("Project", project_id)
    return project


def list_projects(db: Session) -> list[Project]:
    return db.query(Project).order_by(Project.name).all()
