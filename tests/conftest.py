"""
Shared fixtures. The app is pointed at an in-memory SQLite database before
anything from ``app`` is imported.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["EXPIRED_ATTEMPT_SWEEP_ENABLED"] = "false"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ATTEMPT_GRACE_PERIOD_SECONDS"] = "30"

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app.core.database import Base, SessionLocal, engine
from app.core.security import jwt_manager
from app.models import MockTest, User


class FakeClock:
    """Deterministic clock for attempt services."""

    def __init__(self, start=None):
        self.now = start or datetime(2026, 1, 5, 9, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def client(db_session):
    from main import app

    return TestClient(app)


def make_user(db, full_name, email, status="student"):
    user = User(full_name=full_name, email=email, status=status, is_active=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def student(db_session):
    return make_user(db_session, "Test Student", "student@example.com")


@pytest.fixture
def other_student(db_session):
    return make_user(db_session, "Other Student", "other@example.com")


@pytest.fixture
def mentor(db_session):
    return make_user(db_session, "Test Mentor", "mentor@example.com", "mentor")


def sample_questions():
    return [
        {
            "question": "2 + 2 = ?",
            "options": ["4", "5", "6", "7"],
            "correct_answer": 0,
            "explanation": "Basic addition",
            "points": 1,
        },
        {
            "question": "Capital of France?",
            "options": ["Berlin", "Paris", "Rome", "Madrid"],
            "correct_answer": 1,
            "explanation": "Paris is the capital",
            "points": 2,
        },
    ]


@pytest.fixture
def mock_test(db_session, mentor):
    test = MockTest(
        title="Sample Mock Test",
        description="Two questions",
        course_id=7,
        created_by=mentor.id,
        time_limit=30,
        passing_score=50,
        is_active=True,
        questions=sample_questions(),
    )
    db_session.add(test)
    db_session.commit()
    db_session.refresh(test)
    return test


def auth_headers_for(user):
    token = jwt_manager.create_access_token(user.id, user.status)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def student_headers(student):
    return auth_headers_for(student)


@pytest.fixture
def mentor_headers(mentor):
    return auth_headers_for(mentor)
