# app/models/mock_test.py
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from app.core.database import Base, JSONType


class MockTest(Base):
    __tablename__ = "mock_tests"

    id = Column(Integer, primary_key=True, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # Course catalog lives elsewhere; kept as a plain reference
    course_id = Column(Integer, nullable=True, index=True)
    category = Column(String(100), nullable=True, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Test settings
    time_limit = Column(Integer, nullable=False, default=30)  # Minutes
    passing_score = Column(
        Integer, nullable=False, default=70
    )  # Passing score percentage (e.g., 70 for 70%)
    is_active = Column(Boolean, nullable=False, default=True)

    # Stored as JSON array:
    # [{"question": "...", "options": [...], "correct_answer": 0, "explanation": "...", "points": 1}]
    questions = Column(JSONType, nullable=False)

    # Timestamps
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    @property
    def total_questions(self) -> int:
        return len(self.questions or [])

    @property
    def total_points(self) -> int:
        return sum(q.get("points", 1) for q in self.questions or [])

    def __repr__(self):
        return f"<MockTest(id={self.id}, title='{self.title}', questions={self.total_questions})>"
