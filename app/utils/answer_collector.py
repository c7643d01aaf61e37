"""
In-progress answer collection.

Answers are held sparsely while a test is being taken and turned into a
dense list, aligned with the questions, at submit time.
"""

from typing import Dict, Iterable, List, Optional

from app.core.exceptions import ValidationError
from app.services.scoring import UNANSWERED

# Wire value some clients send for an unanswered question
UNANSWERED_WIRE_VALUE = -1


class AnswerCollector:
    def __init__(self, question_count: int, selected: Optional[Dict[int, int]] = None):
        self.question_count = question_count
        self._selected: Dict[int, int] = {}
        for question_index, option_index in (selected or {}).items():
            self.select(question_index, option_index)

    def select(self, question_index: int, option_index: Optional[int]) -> None:
        if not 0 <= question_index < self.question_count:
            raise ValidationError(f"Invalid question index: {question_index}")
        if option_index is UNANSWERED or option_index == UNANSWERED_WIRE_VALUE:
            self.clear(question_index)
            return
        self._selected[question_index] = option_index

    def clear(self, question_index: int) -> None:
        self._selected.pop(question_index, None)

    @property
    def answered_count(self) -> int:
        return len(self._selected)

    def to_answers(self) -> List[Optional[int]]:
        """Dense answers, one slot per question; missing slots are UNANSWERED."""
        return [self._selected.get(i, UNANSWERED) for i in range(self.question_count)]


def normalize_answers(raw: Iterable[Optional[int]]) -> List[Optional[int]]:
    """Map the wire form (-1 or null) to UNANSWERED."""
    return [
        UNANSWERED if value is None or value == UNANSWERED_WIRE_VALUE else value
        for value in raw
    ]


def blank_answers(question_count: int) -> List[Optional[int]]:
    return AnswerCollector(question_count).to_answers()
