"""Shared test fixtures and configuration.

Points configuration at throwaway locations before any app imports, and
gives every test its own SQLite database file.
"""

import os
import tempfile

# Patch env vars BEFORE any app imports
_scratch = tempfile.mkdtemp(prefix="coaching-tests-")
os.environ["ENVIRONMENT"] = "testing"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["DATABASE_URL"] = f"sqlite:///{_scratch}/default.db"
os.environ["UPLOAD_DIR"] = os.path.join(_scratch, "uploads")
os.environ["LOG_FILE"] = os.path.join(_scratch, "logs", "test.log")
os.environ["EMAIL_SERVICE_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-with-at-least-32-characters"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.core.config import settings
from app.core.dependencies import get_db
from app.db.base import Base
from app.db.session import build_engine
import app.models  # noqa: F401
from app.models.user import UserRole
from app.schemas.auth_schemas import UserCreate
from app.services.auth_service import create_token_for_user, create_user
from app.services.coach_service import get_coach_by_email


@pytest.fixture
def session_factory(tmp_path):
    """Session factory bound to a fresh SQLite file."""
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    """Keep stored files inside the test's tmp dir."""
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(path))
    return path


@pytest.fixture
def client(session_factory):
    from app.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _make_user(db, name, email, role, password="secret123"):
    return create_user(db, UserCreate(name=name, email=email, password=password, role=role))


@pytest.fixture
def admin(db):
    return _make_user(db, "Admin", "admin@example.com", UserRole.ADMIN)


@pytest.fixture
def coach_user(db):
    """A COACH account; signing up as COACH also creates its coach profile."""
    return _make_user(db, "Coach Carter", "coach@example.com", UserRole.COACH)


@pytest.fixture
def coach(db, coach_user):
    return get_coach_by_email(db, coach_user.email)


@pytest.fixture
def user(db):
    return _make_user(db, "Regular User", "user@example.com", UserRole.USER)


@pytest.fixture
def other_user(db):
    return _make_user(db, "Other User", "other@example.com", UserRole.USER)


def bearer(user):
    return {"Authorization": f"Bearer {create_token_for_user(user)}"}


@pytest.fixture
def auth_headers():
    """Build bearer headers for any user."""
    return bearer


@pytest.fixture
def admin_headers(admin):
    return bearer(admin)


@pytest.fixture
def coach_headers(coach_user):
    return bearer(coach_user)


@pytest.fixture
def user_headers(user):
    return bearer(user)
