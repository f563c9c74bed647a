"""
Test configuration and fixtures.

Provides:
- A throwaway SQLite database (tables emptied after each test)
- User / team / project / complaint fixtures
- JWT token minting and HTTPX AsyncClient factory for API tests
"""
import asyncio
import os
import tempfile
import uuid
from dataclasses import dataclass
from typing import Callable, Generator

# Must be set before complaint_desk settings are imported
_DB_FILE = os.path.join(tempfile.gettempdir(), f"complaint_desk_test_{os.getpid()}.db")
os.environ["DATABASE_URL"] = os.environ.get("TEST_DATABASE_URL", f"sqlite:///{_DB_FILE}")
os.environ["TESTING"] = "1"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session

from complaint_desk.core.deps import COOKIE_NAME, get_db
from complaint_desk.core.security import create_session_token
from complaint_desk.db.base import Base
from complaint_desk.db.enums import ComplaintCategory, UserRole
from complaint_desk.db.models import Complaint, Project, Team, TeamMember, User
from complaint_desk.db.session import SessionLocal, engine
from complaint_desk.main import app
from complaint_desk.schemas.complaint import ComplaintCreate
from complaint_desk.services import complaint_service


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="session", autouse=True)
def _schema() -> Generator[None, None, None]:
    """Create all tables once for the test session."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if os.path.exists(_DB_FILE):
        os.remove(_DB_FILE)


def _truncate_all() -> None:
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Database session for a test.

    Services commit for real, so rows are deleted after the test instead of
    rolling back a wrapping transaction.
    """
    session = SessionLocal()
    yield session
    session.close()
    _truncate_all()


@pytest.fixture(scope="function")
def other_db(db: Session) -> Generator[Session, None, None]:
    """A second, independent session (simulates a concurrent request)."""
    session = SessionLocal()
    yield session
    session.close()


# =============================================================================
# Domain Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def make_user(db: Session) -> Callable[..., User]:
    def _make(role: UserRole = UserRole.CLIENT, name: str | None = None, **kwargs) -> User:
        suffix = uuid.uuid4().hex[:8]
        user = User(
            email=f"{role.value.lower()}-{suffix}@test.com",
            name=name or f"{role.value.title()} {suffix}",
            role=role.value,
            **kwargs,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture(scope="function")
def admin(make_user) -> User:
    return make_user(UserRole.ADMIN, name="Ada Admin")


@pytest.fixture(scope="function")
def support(make_user) -> User:
    return make_user(UserRole.SUPPORT, name="Sam Support")


@pytest.fixture(scope="function")
def client_user(make_user) -> User:
    return make_user(UserRole.CLIENT, name="Cleo Client", organization="Acme")


@pytest.fixture(scope="function")
def team(db: Session, support: User) -> Team:
    """Team with the support user as a member."""
    team = Team(name="Platform")
    db.add(team)
    db.flush()
    db.add(TeamMember(team_id=team.id, user_id=support.id, role="LEAD"))
    db.commit()
    db.refresh(team)
    return team


@pytest.fixture(scope="function")
def project(db: Session, team: Team) -> Project:
    project = Project(name="Checkout", team_id=team.id)
    db.add(project)
    db.commit()
    db.refresh(project)
    return project


@pytest.fixture(scope="function")
def complaint(db: Session, client_user: User, project: Project) -> Complaint:
    """A freshly submitted (PENDING) complaint."""
    return complaint_service.create_complaint(
        db,
        client_user.id,
        ComplaintCreate(
            project_id=project.id,
            title="Payment page times out",
            description="Checkout spins forever after entering card details.",
            category=ComplaintCategory.BUG,
        ),
    )


@pytest.fixture(scope="function")
def drain_jobs(db: Session) -> Callable[[], int]:
    """Run the worker over every pending job. Returns the number completed."""
    from complaint_desk import worker

    def _drain() -> int:
        return asyncio.run(worker.run_once(db, limit=1000))

    return _drain


# =============================================================================
# Auth / Client Fixtures
# =============================================================================

@dataclass
class TestAuth:
    """Test authentication context."""
    user: User
    token: str
    cookie_name: str = COOKIE_NAME


def auth_for(user: User) -> TestAuth:
    token = create_session_token(
        user_id=user.id,
        role=user.role,
        token_version=user.token_version,
    )
    return TestAuth(user=user, token=token)


@pytest.fixture(scope="function")
def api(db: Session) -> Generator[Callable[..., AsyncClient], None, None]:
    """
    Factory for AsyncClients bound to the test session.

    api(user) returns a client with the session cookie and CSRF header;
    api() returns an unauthenticated client.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    def _client(user: User | None = None, csrf: bool = True) -> AsyncClient:
        cookies = {}
        if user is not None:
            auth = auth_for(user)
            cookies[auth.cookie_name] = auth.token
        headers = {"X-Requested-With": "XMLHttpRequest"} if csrf else {}
        return AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            cookies=cookies,
            headers=headers,
        )

    yield _client

    app.dependency_overrides.clear()
