# app/models/mock_test_attempt.py
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from app.core.database import Base, JSONType

STATUS_IN_PROGRESS = "in_progress"
STATUS_SUBMITTED = "submitted"

TRIGGER_MANUAL = "manual"
TRIGGER_DEADLINE = "deadline"
TRIGGER_SWEEPER = "sweeper"


class MockTestAttempt(Base):
    __tablename__ = "mock_test_attempts"

    # One attempt per user per test, ever. NotStarted is never stored and
    # attempts are never deleted, so this is the replay guard.
    __table_args__ = (
        UniqueConstraint("user_id", "mock_test_id", name="uq_mock_test_attempt_user"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Relationships
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    mock_test_id = Column(
        Integer, ForeignKey("mock_tests.id"), nullable=False, index=True
    )

    status = Column(
        String(20), nullable=False, default=STATUS_IN_PROGRESS, index=True
    )  # in_progress, submitted

    # Questions as they were when the attempt started
    questions_snapshot = Column(JSONType, nullable=False)
    total_questions = Column(Integer, nullable=False)
    passing_score = Column(Integer, nullable=False)

    # User's answers: [0, null, 2, ...] (null = unanswered)
    answers = Column(JSONType, nullable=False)

    # Time tracking
    started_at = Column(DateTime(timezone=True), nullable=False)
    deadline_at = Column(DateTime(timezone=True), nullable=False)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    time_spent = Column(Float, nullable=True)  # Client reported, minutes
    elapsed_seconds = Column(Integer, nullable=True)  # Server measured
    is_late = Column(Boolean, nullable=False, default=False)
    submission_trigger = Column(String(20), nullable=True)

    # Result (null until submitted)
    score = Column(Integer, nullable=True)
    max_score = Column(Integer, nullable=True)
    percentage = Column(Integer, nullable=True)
    passed = Column(Boolean, nullable=True)
    correct_answers = Column(Integer, nullable=True)
    results = Column(JSONType, nullable=True)  # Per question breakdown

    # Timestamps
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    @property
    def is_submitted(self) -> bool:
        return self.status == STATUS_SUBMITTED

    def summary(self) -> dict:
        return {
            "score": self.score,
            "max_score": self.max_score,
            "percentage": self.percentage,
            "submitted_at": self.submitted_at,
        }

    def __repr__(self):
        return (
            f"<MockTestAttempt(id={self.id}, user_id={self.user_id}, "
            f"mock_test_id={self.mock_test_id}, status='{self.status}')>"
        )
