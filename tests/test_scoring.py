from app.services.scoring import UNANSWERED, round_half_up, score_answers

QUESTIONS = [
    {"question": "q1", "options": ["a", "b"], "correct_answer": 0, "points": 1},
    {"question": "q2", "options": ["a", "b"], "correct_answer": 1, "points": 2},
]


def test_all_correct_scores_full_marks():
    result = score_answers(QUESTIONS, [0, 1], passing_score=50)

    assert result.score == 3
    assert result.max_score == 3
    assert result.percentage == 100
    assert result.passed is True
    assert result.correct_answers == 2


def test_first_unanswered_rounds_percentage_half_up():
    result = score_answers(QUESTIONS, [UNANSWERED, 1], passing_score=50)

    assert result.score == 2
    assert result.max_score == 3
    assert result.percentage == 67
    assert result.passed is True
    assert result.questions[0]["is_correct"] is False
    assert result.questions[0]["user_answer"] is None


def test_all_unanswered_scores_zero_and_fails():
    result = score_answers(QUESTIONS, [UNANSWERED, UNANSWERED], passing_score=50)

    assert result.score == 0
    assert result.percentage == 0
    assert result.passed is False


def test_zero_point_test_has_zero_percentage():
    questions = [{"question": "q", "options": ["a", "b"], "correct_answer": 0, "points": 0}]

    result = score_answers(questions, [0], passing_score=0)

    assert result.max_score == 0
    assert result.percentage == 0
    assert result.passed is True


def test_score_is_sum_of_earned_points():
    questions = [
        {"question": f"q{i}", "options": ["a", "b", "c"], "correct_answer": i % 3, "points": i + 1}
        for i in range(6)
    ]
    answers = [0, 1, 0, UNANSWERED, 1, 2]

    result = score_answers(questions, answers, passing_score=70)

    assert result.score == sum(q["earned_points"] for q in result.questions)
    assert result.max_score == sum(q["points"] for q in result.questions)


def test_missing_points_defaults_to_one():
    questions = [{"question": "q", "options": ["a", "b"], "correct_answer": 1}]

    result = score_answers(questions, [1], passing_score=100)

    assert result.max_score == 1
    assert result.passed is True


def test_per_question_breakdown_reveals_key_and_explanation():
    questions = [dict(QUESTIONS[0], explanation="because")]

    result = score_answers(questions, [1], passing_score=0)

    assert result.questions[0] == {
        "question_number": 1,
        "question": "q1",
        "options": ["a", "b"],
        "user_answer": 1,
        "correct_answer": 0,
        "is_correct": False,
        "points": 1,
        "earned_points": 0,
        "explanation": "because",
    }


def test_round_half_up():
    assert round_half_up(66.5) == 67
    assert round_half_up(2.5) == 3
    assert round_half_up(66.49) == 66
    assert round_half_up(0) == 0
