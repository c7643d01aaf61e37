# app/services/mock_test_attempt.py
import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence, Tuple

from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.decorator import db_exception
from app.core.exceptions import (
    AlreadyAttempted,
    InvalidState,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from app.models.mock_test import MockTest
from app.models.mock_test_attempt import (
    STATUS_IN_PROGRESS,
    STATUS_SUBMITTED,
    TRIGGER_DEADLINE,
    TRIGGER_MANUAL,
    TRIGGER_SWEEPER,
    MockTestAttempt,
)
from app.services.deadline import (
    compute_deadline,
    elapsed_seconds,
    is_expired,
    is_late,
    remaining_seconds,
    utc_now,
)
from app.services.scoring import UNANSWERED, score_answers
from app.utils.answer_collector import blank_answers, normalize_answers

logger = logging.getLogger(__name__)


class MockTestAttemptService:
    """
    Attempt lifecycle: NotStarted --start--> InProgress --submit--> Submitted.

    Submitted is terminal. An in-progress attempt can be resumed but never
    recreated, and expiry only ever triggers a submit.
    """

    def __init__(
        self,
        db: Session,
        clock: Callable[[], datetime] = utc_now,
        grace_seconds: Optional[int] = None,
    ):
        self.db = db
        self.clock = clock
        self.grace_seconds = grace_seconds

    # ==================== Queries ====================

    def get_attempt(self, user_id: int, mock_test_id: int) -> Optional[MockTestAttempt]:
        return (
            self.db.query(MockTestAttempt)
            .filter(
                and_(
                    MockTestAttempt.user_id == user_id,
                    MockTestAttempt.mock_test_id == mock_test_id,
                )
            )
            .first()
        )

    def has_attempted(self, user_id: int, mock_test_id: int) -> bool:
        """Whether the user already has a submitted attempt for this test"""
        attempt = self.get_attempt(user_id, mock_test_id)
        return attempt is not None and attempt.is_submitted

    def get_user_results(self, user_id: int) -> List[Tuple[MockTestAttempt, MockTest]]:
        """Submitted attempts of one user with their tests, newest first"""
        return (
            self.db.query(MockTestAttempt, MockTest)
            .join(MockTest, MockTest.id == MockTestAttempt.mock_test_id)
            .filter(
                and_(
                    MockTestAttempt.user_id == user_id,
                    MockTestAttempt.status == STATUS_SUBMITTED,
                )
            )
            .order_by(MockTestAttempt.submitted_at.desc(), MockTestAttempt.id.desc())
            .all()
        )

    # ==================== Start ====================

    @db_exception
    def start_attempt(
        self, user_id: int, mock_test_id: int
    ) -> Tuple[MockTest, MockTestAttempt, bool]:
        """
        Start or resume the user's attempt.

        Returns (test, attempt, resumed). Raises NotFound for an unknown,
        inactive or empty test and AlreadyAttempted once the attempt is
        submitted.
        """
        mock_test = self.db.query(MockTest).filter(MockTest.id == mock_test_id).first()

        if not mock_test or not mock_test.is_active:
            raise NotFound("Mock test not found")

        if not mock_test.questions:
            raise NotFound("Mock test has no questions")

        existing = self.get_attempt(user_id, mock_test_id)
        if existing:
            return self._resume(mock_test, existing)

        started_at = self.clock()
        questions = list(mock_test.questions)
        attempt = MockTestAttempt(
            user_id=user_id,
            mock_test_id=mock_test_id,
            status=STATUS_IN_PROGRESS,
            questions_snapshot=questions,
            total_questions=len(questions),
            passing_score=mock_test.passing_score,
            answers=blank_answers(len(questions)),
            started_at=started_at,
            deadline_at=compute_deadline(started_at, mock_test.time_limit),
            is_late=False,
        )

        self.db.add(attempt)
        try:
            self.db.commit()
        except IntegrityError:
            # A concurrent start won the unique (user_id, mock_test_id) slot
            self.db.rollback()
            existing = self.get_attempt(user_id, mock_test_id)
            if existing is None:
                raise
            logger.info(
                f"Concurrent start for user {user_id} on mock test {mock_test_id}, "
                f"reusing attempt {existing.id}"
            )
            return self._resume(mock_test, existing)

        self.db.refresh(attempt)
        logger.info(
            f"Attempt {attempt.id} started: user {user_id}, mock test {mock_test_id}, "
            f"deadline {attempt.deadline_at.isoformat()}"
        )
        return mock_test, attempt, False

    def _resume(
        self, mock_test: MockTest, attempt: MockTestAttempt
    ) -> Tuple[MockTest, MockTestAttempt, bool]:
        if attempt.is_submitted:
            logger.warning(
                f"User {attempt.user_id} tried to restart mock test {mock_test.id}"
            )
            raise AlreadyAttempted(previous_attempt=attempt.summary())

        if is_expired(attempt, self.clock(), self.grace_seconds):
            # Expiry is only a trigger: finish with whatever was stored
            logger.info(f"Attempt {attempt.id} expired before resume, finalizing")
            attempt, _ = self._submit_or_replay(
                attempt, attempt.answers, None, TRIGGER_DEADLINE
            )
            raise AlreadyAttempted(
                "The time limit for this test has expired",
                previous_attempt=attempt.summary(),
            )

        return mock_test, attempt, True

    # ==================== Submit ====================

    @db_exception
    def submit_attempt(
        self,
        attempt_id: int,
        user_id: int,
        answers: Sequence[Optional[int]],
        time_spent: Optional[float] = None,
        trigger: str = TRIGGER_MANUAL,
    ) -> MockTestAttempt:
        """
        Score and close an attempt. Retrying after success returns the stored
        result without rescoring.
        """
        attempt = (
            self.db.query(MockTestAttempt)
            .filter(
                and_(
                    MockTestAttempt.id == attempt_id,
                    MockTestAttempt.user_id == user_id,
                )
            )
            .first()
        )

        if not attempt:
            raise NotFound("Attempt not found")

        attempt, _ = self._submit_or_replay(attempt, answers, time_spent, trigger)
        return attempt

    def submit_for_test(
        self,
        user_id: int,
        mock_test_id: int,
        answers: Sequence[Optional[int]],
        time_spent: Optional[float] = None,
        trigger: str = TRIGGER_MANUAL,
    ) -> MockTestAttempt:
        attempt = self.get_attempt(user_id, mock_test_id)
        if not attempt:
            raise NotFound("No attempt found for this test. Start the test first.")
        return self.submit_attempt(attempt.id, user_id, answers, time_spent, trigger)

    def _submit_or_replay(
        self, attempt, answers, time_spent, trigger
    ) -> Tuple[MockTestAttempt, bool]:
        """Returns (attempt, replayed); replayed means it was already submitted."""
        try:
            return (
                self._transition_to_submitted(attempt, answers, time_spent, trigger),
                False,
            )
        except InvalidState as e:
            logger.info(f"Attempt {attempt.id} already submitted, returning stored result")
            return e.attempt, True

    def _transition_to_submitted(
        self,
        attempt: MockTestAttempt,
        answers: Sequence[Optional[int]],
        time_spent: Optional[float],
        trigger: str,
    ) -> MockTestAttempt:
        if attempt.is_submitted:
            raise InvalidState("Attempt already submitted", attempt=attempt)

        # Deadline and sweeper finalization still close attempts on hidden tests
        if trigger == TRIGGER_MANUAL and not attempt.mock_test.is_active:
            raise PermissionDenied("This test is not currently active")

        answers = normalize_answers(answers)
        self._validate_answers(attempt, answers)

        submitted_at = self.clock()
        result = score_answers(attempt.questions_snapshot, answers, attempt.passing_score)
        late = is_late(attempt, submitted_at, self.grace_seconds)

        # Compare-and-set on status: only one submit can win
        updated = (
            self.db.query(MockTestAttempt)
            .filter(
                and_(
                    MockTestAttempt.id == attempt.id,
                    MockTestAttempt.status == STATUS_IN_PROGRESS,
                )
            )
            .update(
                {
                    MockTestAttempt.status: STATUS_SUBMITTED,
                    MockTestAttempt.answers: answers,
                    MockTestAttempt.submitted_at: submitted_at,
                    MockTestAttempt.time_spent: time_spent,
                    MockTestAttempt.elapsed_seconds: elapsed_seconds(
                        attempt, submitted_at
                    ),
                    MockTestAttempt.is_late: late,
                    MockTestAttempt.submission_trigger: trigger,
                    MockTestAttempt.score: result.score,
                    MockTestAttempt.max_score: result.max_score,
                    MockTestAttempt.percentage: result.percentage,
                    MockTestAttempt.passed: result.passed,
                    MockTestAttempt.correct_answers: result.correct_answers,
                    MockTestAttempt.results: result.questions,
                },
                synchronize_session=False,
            )
        )

        if updated == 0:
            self.db.rollback()
            self.db.refresh(attempt)
            raise InvalidState("Attempt already submitted", attempt=attempt)

        self.db.commit()
        self.db.refresh(attempt)

        if late:
            logger.warning(
                f"Attempt {attempt.id} submitted late "
                f"({attempt.elapsed_seconds}s elapsed, trigger={trigger})"
            )
        logger.info(
            f"Attempt {attempt.id} submitted: {result.score}/{result.max_score} "
            f"({result.percentage}%), passed={result.passed}"
        )
        return attempt

    def _validate_answers(
        self, attempt: MockTestAttempt, answers: Sequence[Optional[int]]
    ) -> None:
        total_questions = attempt.total_questions
        if len(answers) != total_questions:
            raise ValidationError(
                f"Expected {total_questions} answers, got {len(answers)}"
            )

        for index, (answer, question) in enumerate(
            zip(answers, attempt.questions_snapshot)
        ):
            if answer is UNANSWERED:
                continue
            if isinstance(answer, bool) or not isinstance(answer, int):
                raise ValidationError(f"Invalid answer for question {index + 1}")
            if not 0 <= answer < len(question["options"]):
                raise ValidationError(
                    f"Invalid option index {answer} for question {index + 1}"
                )

    # ==================== Expiry sweep ====================

    def finalize_expired_attempts(self) -> int:
        """Submit every in-progress attempt past its deadline plus grace."""
        now = self.clock()
        candidates = (
            self.db.query(MockTestAttempt)
            .filter(
                and_(
                    MockTestAttempt.status == STATUS_IN_PROGRESS,
                    MockTestAttempt.deadline_at < now,
                )
            )
            .all()
        )

        finalized = 0
        for attempt in candidates:
            if not is_expired(attempt, now, self.grace_seconds):
                continue
            _, replayed = self._submit_or_replay(
                attempt, attempt.answers, None, TRIGGER_SWEEPER
            )
            if not replayed:
                finalized += 1

        if finalized:
            logger.info(f"Finalized {finalized} expired attempt(s)")
        return finalized


def serialize_attempt(attempt: MockTestAttempt, now: Optional[datetime] = None) -> dict:
    """Attempt state for its owner. Never includes the answer key."""
    return {
        "id": attempt.id,
        "user_id": attempt.user_id,
        "mock_test_id": attempt.mock_test_id,
        "status": attempt.status,
        "total_questions": attempt.total_questions,
        "answers": attempt.answers,
        "started_at": attempt.started_at,
        "deadline_at": attempt.deadline_at,
        "submitted_at": attempt.submitted_at,
        "remaining_seconds": remaining_seconds(attempt, now),
    }


def serialize_result(attempt: MockTestAttempt, mock_test: MockTest) -> dict:
    """Scored result for the submitting user, answer key included."""
    return {
        "attempt_id": attempt.id,
        "test_id": mock_test.id,
        "test_title": mock_test.title,
        "score": attempt.score,
        "max_score": attempt.max_score,
        "percentage": attempt.percentage,
        "passed": attempt.passed,
        "passing_score": attempt.passing_score,
        "time_spent": attempt.time_spent,
        "is_late": attempt.is_late,
        "total_questions": attempt.total_questions,
        "correct_answers": attempt.correct_answers,
        "submitted_at": attempt.submitted_at,
        "questions": attempt.results or [],
    }
