# app/services/scoring.py
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional, Sequence

# Marks a question the user did not answer. Never equal to a valid index.
UNANSWERED = None


def round_half_up(value: float) -> int:
    """Round .5 away from zero, unlike the builtin banker's rounding."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass
class ScoreResult:
    score: int
    max_score: int
    percentage: int
    passed: bool
    correct_answers: int
    questions: List[Dict[str, Any]] = field(default_factory=list)


def score_answers(
    questions: Sequence[Dict[str, Any]],
    answers: Sequence[Optional[int]],
    passing_score: int,
) -> ScoreResult:
    """
    Score a dense answer list against the questions it was collected for.

    Pure: no I/O, no mutation. ``answers`` must already be aligned 1:1 with
    ``questions``; callers validate the length first.
    """
    score = 0
    max_score = 0
    correct_answers = 0
    results = []

    for index, question in enumerate(questions):
        points = question.get("points")
        if points is None:
            points = 1
        max_score += points

        user_answer = answers[index] if index < len(answers) else UNANSWERED
        correct_answer = question["correct_answer"]
        is_correct = user_answer is not UNANSWERED and user_answer == correct_answer
        earned_points = points if is_correct else 0

        if is_correct:
            score += points
            correct_answers += 1

        results.append(
            {
                "question_number": index + 1,
                "question": question["question"],
                "options": question["options"],
                "user_answer": user_answer,
                "correct_answer": correct_answer,
                "is_correct": is_correct,
                "points": points,
                "earned_points": earned_points,
                "explanation": question.get("explanation"),
            }
        )

    # A test worth zero points is degenerate but valid
    percentage = round_half_up(score / max_score * 100) if max_score > 0 else 0

    return ScoreResult(
        score=score,
        max_score=max_score,
        percentage=percentage,
        passed=percentage >= passing_score,
        correct_answers=correct_answers,
        questions=results,
    )
