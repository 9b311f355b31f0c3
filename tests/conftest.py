"""Pytest configuration.

Every test gets its own in-memory SQLite database. The environment is set
before any application module is imported so that config picks it up.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["ADMIN_TOKEN"] = "test-admin-token"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from core.database import build_engine, get_db, init_db
from models.profile import ProfileModel
from utils import user_manager as user_manager_module
from utils.course_manager import CourseManager
from utils.user_manager import UserManager


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    monkeypatch.setattr(user_manager_module, "BCRYPT_ROUNDS", 4)


@pytest.fixture
def engine():
    test_engine = build_engine("sqlite://")
    init_db(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    """Create a user (and its profile); returns the user ID."""

    def _make_user(username: str, role: str = "user", full_name=None) -> str:
        user = UserManager(db).create_user(
            username=username,
            password="password123",
            full_name=full_name,
            role=role,
        )
        return user.user_id

    return _make_user


@pytest.fixture
def make_course(db):
    """Upload a course as ``uploader_id``; returns the course ID."""

    def _make_course(uploader_id: str, title: str = "Intro to SQL", **kwargs) -> str:
        kwargs.setdefault("content_type", "video")
        kwargs.setdefault("content_url", "https://videos.example.com/intro.mp4")
        course = CourseManager(db).create_course(
            uploader_id=uploader_id, actor_id=uploader_id, title=title, **kwargs
        )
        return course.id

    return _make_course


@pytest.fixture
def stats_of(db):
    """Read a profile's counters straight from the database."""

    def _stats_of(user_id: str) -> dict:
        db.expire_all()
        profile = db.query(ProfileModel).filter(ProfileModel.user_id == user_id).one()
        return {
            "enrolled": profile.enrolled,
            "completed": profile.completed,
            "uploads": profile.uploads,
        }

    return _stats_of


@pytest.fixture
def client(session_factory):
    from app import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
