# app/services/mock_test.py
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.decorator import db_exception
from app.core.exceptions import NotFound, PermissionDenied
from app.models.mock_test import MockTest
from app.models.user import User
from app.schemas.mock_test import MockTestCreate, MockTestUpdate

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "time_limit", "passing_score", "is_active")


class MockTestService:
    """Test catalog: public reads and the owning mentor's writes."""

    def __init__(self, db: Session):
        self.db = db

    @db_exception
    def create_test(self, mentor: User, test_in: MockTestCreate) -> MockTest:
        mock_test = MockTest(
            title=test_in.title,
            description=test_in.description or "",
            course_id=test_in.course_id,
            category=test_in.category,
            created_by=mentor.id,
            time_limit=test_in.time_limit,
            passing_score=test_in.passing_score,
            is_active=test_in.is_active,
            questions=[q.model_dump() for q in test_in.questions],
        )

        self.db.add(mock_test)
        self.db.commit()
        self.db.refresh(mock_test)

        logger.info(
            f"Mock test {mock_test.id} created by user {mentor.id} "
            f"with {mock_test.total_questions} questions"
        )
        return mock_test

    def get_test(self, mock_test_id: int) -> Optional[MockTest]:
        return self.db.query(MockTest).filter(MockTest.id == mock_test_id).first()

    def get_test_or_404(self, mock_test_id: int) -> MockTest:
        mock_test = self.get_test(mock_test_id)
        if not mock_test:
            raise NotFound("Mock test not found")
        return mock_test

    def get_owned_test(self, mock_test_id: int, owner: User) -> MockTest:
        """Only the creating mentor (or an admin) may see answer keys and results."""
        mock_test = self.get_test_or_404(mock_test_id)
        if mock_test.created_by != owner.id and owner.status != "admin":
            raise PermissionDenied("Not authorized to access this mock test")
        return mock_test

    def list_active_tests(
        self, course_id: Optional[int] = None, category: Optional[str] = None
    ) -> List[MockTest]:
        query = self.db.query(MockTest).filter(MockTest.is_active.is_(True))
        if course_id:
            query = query.filter(MockTest.course_id == course_id)
        if category:
            query = query.filter(MockTest.category == category)
        return query.order_by(MockTest.created_at.desc(), MockTest.id.desc()).all()

    def list_owned_tests(self, owner: User) -> List[MockTest]:
        return (
            self.db.query(MockTest)
            .filter(MockTest.created_by == owner.id)
            .order_by(MockTest.created_at.desc(), MockTest.id.desc())
            .all()
        )

    @db_exception
    def update_test(
        self, mock_test_id: int, owner: User, test_in: MockTestUpdate
    ) -> MockTest:
        """
        Apply the fields the owner sent. Attempts already started keep
        scoring against the questions they were started with.
        """
        mock_test = self.get_owned_test(mock_test_id, owner)

        update_data = test_in.model_dump(exclude_unset=True, exclude={"questions"})
        # Non-nullable columns ignore an explicit null
        for field, value in update_data.items():
            if value is None and field in REQUIRED_FIELDS:
                continue
            setattr(mock_test, field, value)

        if test_in.questions:
            mock_test.questions = [q.model_dump() for q in test_in.questions]

        self.db.commit()
        self.db.refresh(mock_test)

        logger.info(f"Mock test {mock_test.id} updated by user {owner.id}")
        return mock_test

    @db_exception
    def deactivate_test(self, mock_test_id: int, owner: User) -> MockTest:
        """Hide a test from the catalog. Its attempts and results are kept."""
        mock_test = self.get_owned_test(mock_test_id, owner)
        mock_test.is_active = False

        self.db.commit()
        self.db.refresh(mock_test)

        logger.info(f"Mock test {mock_test.id} deactivated by user {owner.id}")
        return mock_test


def build_attempt_view(mock_test: MockTest, questions: Optional[list] = None) -> dict:
    """
    Test as shown to a taker. Correct answers and explanations are stripped.

    ``questions`` lets a resumed attempt show the snapshot it was started with.
    """
    questions = mock_test.questions if questions is None else questions
    return {
        "id": mock_test.id,
        "title": mock_test.title,
        "description": mock_test.description,
        "course_id": mock_test.course_id,
        "category": mock_test.category,
        "time_limit": mock_test.time_limit,
        "passing_score": mock_test.passing_score,
        "questions": [
            {
                "question_number": index + 1,
                "question": question["question"],
                "options": question["options"],
                "points": question.get("points", 1),
            }
            for index, question in enumerate(questions)
        ],
        "total_questions": len(questions),
        "total_points": sum(q.get("points", 1) for q in questions),
    }
