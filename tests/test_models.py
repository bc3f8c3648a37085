"""Model validation tests: question kinds, test series snapshot, attempt immutability."""

import pytest
from pydantic import ValidationError

from conftest import make_integer, make_mcq, make_series
from mocktest_cbt.models.answer_model import IntegerAnswer, OptionAnswer, flatten_answers
from mocktest_cbt.models.attempt_model import TestAttempt
from mocktest_cbt.models.question_model import Question, TestSeries


def test_question_accepts_wire_names():
    q = Question.model_validate({
        "id": "q1",
        "question": "2+2?",
        "questionImage": "",
        "options": [{"id": i, "text": t} for i, t in enumerate(["3", "4", "5", "6"])],
        "correctOption": 1,
        "marks": 4,
        "negativeMarks": 1,
    })
    assert q.correct_option == 1
    assert q.negative_marks == 1
    assert q.question_image is None
    assert not q.is_integer


def test_mcq_needs_four_options():
    with pytest.raises(ValidationError):
        Question(id="q1", question="?", options=[{"id": 0, "text": "a"}, {"id": 1, "text": "b"}],
                 correct_option=0, marks=4)


def test_mcq_correct_option_in_range():
    with pytest.raises(ValidationError):
        make_mcq("q1", correct=4)


def test_integer_question_requires_correct_value():
    with pytest.raises(ValidationError):
        Question(id="q1", question="?", type="integer", marks=4)
    assert make_integer("q1", correct_value=-3).correct_value == -3


def test_marks_bounds():
    with pytest.raises(ValidationError):
        make_mcq("q1", marks=0)
    with pytest.raises(ValidationError):
        make_mcq("q1", negative=-1)


def test_question_is_immutable():
    q = make_mcq("q1")
    with pytest.raises(ValidationError):
        q.marks = 10


def test_duplicate_question_ids_rejected():
    with pytest.raises(ValidationError):
        make_series([make_mcq("q1"), make_mcq("q1")])


def test_total_marks_is_a_snapshot():
    series = TestSeries(
        id="t1", name="Snapshot", duration=5, total_marks=100,
        questions=[make_mcq("q1", marks=4)],
    )
    assert series.total_marks == 100
    assert series.duration_seconds == 300
    assert series.get_question("q1").marks == 4
    assert series.get_question("missing") is None


def test_answer_union_from_dict():
    attempt = TestAttempt(
        user_id="u1", user_name="U", test_series_id="t1", test_name="T",
        answers={"q1": {"kind": "option", "index": 2}, "q2": {"kind": "integer", "value": -5}},
        score=0, total_marks=8, correct_answers=1, wrong_answers=1, unanswered=0,
        time_taken=10, completed_at=1,
    )
    assert attempt.answers["q1"] == OptionAnswer(index=2)
    assert attempt.answers["q2"] == IntegerAnswer(value=-5)
    assert flatten_answers(attempt.answers) == {"q1": 2, "q2": -5}
    assert attempt.question_count == 2


def test_attempt_counts_must_match_answers():
    with pytest.raises(ValidationError):
        TestAttempt(
            user_id="u1", user_name="U", test_series_id="t1", test_name="T",
            answers={}, score=4, total_marks=8, correct_answers=1, wrong_answers=0,
            unanswered=1, time_taken=10, completed_at=1,
        )


def test_attempt_is_immutable():
    attempt = TestAttempt(
        user_id="u1", user_name="U", test_series_id="t1", test_name="T",
        score=0, total_marks=8, correct_answers=0, wrong_answers=0, unanswered=2,
        time_taken=0, completed_at=1,
    )
    with pytest.raises(ValidationError):
        attempt.score = 8
