"""
Shared fixtures.

Tests run against a throwaway SQLite file per test (not :memory:, because
the read aggregator opens its own sessions from worker threads).
"""

from typing import Optional
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

from leadership_canvas.api.dependencies import get_database
from leadership_canvas.config.settings import Settings
from leadership_canvas.core.canvas.access import RoleGate
from leadership_canvas.core.canvas.models import Identity, User, UserRole
from leadership_canvas.infrastructure.auth.sessions import SessionTokenCodec
from leadership_canvas.infrastructure.database.client import Database
from leadership_canvas.infrastructure.database.repositories import (
    CanvasReadRepository,
    RoleLookupRepository,
)
from leadership_canvas.infrastructure.database.tables import SettingsRow, UserRow
from leadership_canvas.main import create_app


TEST_JWT_SECRET = "test-session-secret-that-is-long-enough"
TEST_AUTOMATION_SECRET = "weekly-nudge-secret"


class StaticAccessor:
    """A SessionAccessor that always answers with the same identity."""

    def __init__(self, identity: Optional[Identity]) -> None:
        self._identity = identity

    def current_identity(self) -> Optional[Identity]:
        return self._identity


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'canvas.db'}",
        session_jwt_secret=TEST_JWT_SECRET,
        automation_api_secret=TEST_AUTOMATION_SECRET,
        nudge_webhook_url=None,
        database_auto_create=True,
    )


@pytest.fixture
def database(settings):
    db = Database.from_settings(settings)
    db.init_schema()
    yield db
    db.dispose()


@pytest.fixture
def session(database):
    with database.session() as s:
        yield s


@pytest.fixture
def make_user(session):
    """Insert a user (and their settings row) directly, bypassing setup."""

    def _make_user(
        name: str = "Alex Client",
        role: UserRole = UserRole.CLIENT,
        phone: Optional[str] = "+15551234567",
        email: Optional[str] = None,
        receive_weekly_nudge: bool = False,
    ) -> User:
        user_id = uuid4()
        user = User(
            id=user_id,
            role=role,
            name=name,
            email=email or f"{user_id.hex[:8]}@example.com",
            phone=phone,
        )
        session.add(UserRow.from_domain(user))
        session.flush()
        session.add(SettingsRow(user_id=user_id, receive_weekly_nudge=receive_weekly_nudge))
        session.commit()
        return user

    return _make_user


@pytest.fixture
def client_user(make_user) -> User:
    return make_user(name="Alex Client")


@pytest.fixture
def other_client(make_user) -> User:
    return make_user(name="Blair Client")


@pytest.fixture
def coach_user(make_user) -> User:
    return make_user(name="Casey Coach", role=UserRole.COACH, phone=None)


@pytest.fixture
def role_gate(session) -> RoleGate:
    return RoleGate(RoleLookupRepository(session))


def as_identity(user: User) -> Identity:
    return Identity(user_id=user.id, email=user.email)


@pytest.fixture
def accessor_for():
    """Build a SessionAccessor signed in as a user, or anonymous for None."""

    def _accessor_for(user: Optional[User]) -> StaticAccessor:
        return StaticAccessor(as_identity(user) if user is not None else None)

    return _accessor_for


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def codec(settings) -> SessionTokenCodec:
    return SessionTokenCodec.from_settings(settings)


@pytest.fixture
def auth_headers(codec):
    """Build an Authorization header for a user id."""

    def _auth_headers(user_id: UUID, email: Optional[str] = None) -> dict[str, str]:
        return {"Authorization": f"Bearer {codec.issue(user_id, email)}"}

    return _auth_headers


@pytest.fixture
def app(settings, database):
    application = create_app(settings)
    application.dependency_overrides[get_database] = lambda: database
    return application


@pytest.fixture
def api(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def reader(database):
    """Reads through fresh sessions, so assertions never see stale state."""
    return CanvasReadRepository(database.session_factory)
