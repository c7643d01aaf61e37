# app/services/mock_test_results.py
from sqlalchemy import and_
from sqlalchemy.orm import Session

from app.models.mock_test_attempt import STATUS_SUBMITTED, MockTestAttempt
from app.models.user import User
from app.schemas.mock_test import MockTestStatistics
from app.services.scoring import round_half_up


class ResultsAggregator:
    """Read-only rollup of submitted attempts for a test's owner"""

    def __init__(self, db: Session):
        self.db = db

    def aggregate(self, mock_test_id: int) -> MockTestStatistics:
        rows = (
            self.db.query(MockTestAttempt, User)
            .join(User, User.id == MockTestAttempt.user_id)
            .filter(
                and_(
                    MockTestAttempt.mock_test_id == mock_test_id,
                    MockTestAttempt.status == STATUS_SUBMITTED,
                )
            )
            .order_by(MockTestAttempt.submitted_at.desc(), MockTestAttempt.id.desc())
            .all()
        )

        if not rows:
            return MockTestStatistics()

        percentages = [attempt.percentage for attempt, _ in rows]
        passed_count = sum(1 for attempt, _ in rows if attempt.passed)
        total_attempts = len(rows)

        return MockTestStatistics(
            total_attempts=total_attempts,
            average_score=round_half_up(sum(percentages) / total_attempts),
            pass_rate=round_half_up(passed_count / total_attempts * 100),
            highest_score=max(percentages),
            lowest_score=min(percentages),
            attempts=[
                {
                    "id": attempt.id,
                    "student": {
                        "id": user.id,
                        "full_name": user.full_name,
                        "email": user.email,
                    },
                    "score": attempt.score,
                    "max_score": attempt.max_score,
                    "percentage": attempt.percentage,
                    "passed": attempt.passed,
                    "time_spent": attempt.time_spent,
                    "is_late": attempt.is_late,
                    "submitted_at": attempt.submitted_at,
                }
                for attempt, user in rows
            ],
        )
