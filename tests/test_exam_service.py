"""Scoring engine tests: partition invariant, negative marking, integer questions."""

import pytest

from conftest import make_integer, make_mcq
from mocktest_cbt.models.answer_model import IntegerAnswer, OptionAnswer
from mocktest_cbt.services.exam_service import (
    Outcome,
    ScoreResult,
    calculate_percentage,
    format_duration,
    format_time,
    get_wrong_questions,
    question_outcomes,
    score_answers,
)


QUESTIONS = [make_mcq("q1", correct=0), make_mcq("q2", correct=2), make_integer("q3", correct_value=42)]


def test_one_correct_one_unanswered():
    questions = [make_mcq("q1"), make_mcq("q2")]
    result = score_answers(questions, {"q1": OptionAnswer(index=0)})
    assert result == ScoreResult(score=4, correct_count=1, wrong_count=0, unanswered_count=1)


def test_two_wrong_answers_go_negative():
    questions = [make_mcq("q1"), make_mcq("q2")]
    answers = {"q1": OptionAnswer(index=1), "q2": OptionAnswer(index=3)}
    result = score_answers(questions, answers)
    assert result == ScoreResult(score=-2, correct_count=0, wrong_count=2, unanswered_count=0)


def test_integer_answer_scored_against_correct_value():
    questions = [make_integer("q1", correct_value=42)]
    assert score_answers(questions, {"q1": IntegerAnswer(value=42)}).correct_count == 1
    assert score_answers(questions, {"q1": IntegerAnswer(value=-42)}).wrong_count == 1
    assert score_answers(questions, {}).unanswered_count == 1


def test_negative_marks_default_zero():
    questions = [make_mcq("q1", negative=0)]
    result = score_answers(questions, {"q1": OptionAnswer(index=3)})
    assert result.score == 0
    assert result.wrong_count == 1


def test_answer_kind_mismatch_counts_wrong():
    questions = [make_mcq("q1", correct=2), make_integer("q2", correct_value=2)]
    answers = {"q1": IntegerAnswer(value=2), "q2": OptionAnswer(index=2)}
    result = score_answers(questions, answers)
    assert result.correct_count == 0
    assert result.wrong_count == 2


@pytest.mark.parametrize(
    "answers",
    [
        {},
        {"q1": OptionAnswer(index=0)},
        {"q1": OptionAnswer(index=1), "q2": OptionAnswer(index=2)},
        {"q2": OptionAnswer(index=0), "q3": IntegerAnswer(value=7)},
        {"q1": OptionAnswer(index=0), "q2": OptionAnswer(index=2), "q3": IntegerAnswer(value=42)},
    ],
)
def test_counts_partition_question_set(answers):
    result = score_answers(QUESTIONS, answers)
    assert result.correct_count + result.wrong_count + result.unanswered_count == len(QUESTIONS)


def test_scoring_is_idempotent():
    answers = {"q1": OptionAnswer(index=0), "q3": IntegerAnswer(value=1)}
    first = score_answers(QUESTIONS, answers)
    second = score_answers(QUESTIONS, answers)
    assert first == second
    assert answers == {"q1": OptionAnswer(index=0), "q3": IntegerAnswer(value=1)}


def test_answers_for_unknown_questions_are_ignored():
    result = score_answers([make_mcq("q1")], {"zz": OptionAnswer(index=0)})
    assert result == ScoreResult(0, 0, 0, 1)


def test_question_outcomes_follow_test_order():
    answers = {"q3": IntegerAnswer(value=42), "q1": OptionAnswer(index=3)}
    outcomes = question_outcomes(QUESTIONS, answers)
    assert [o.question.id for o in outcomes] == ["q1", "q2", "q3"]
    assert [o.outcome for o in outcomes] == [Outcome.WRONG, Outcome.UNANSWERED, Outcome.CORRECT]
    assert [o.marks_delta for o in outcomes] == [-1, 0, 4]


def test_wrong_questions_exclude_unanswered():
    answers = {"q1": OptionAnswer(index=3)}
    assert [q.id for q in get_wrong_questions(QUESTIONS, answers)] == ["q1"]


def test_percentage():
    assert calculate_percentage(4, 8) == 50.0
    assert calculate_percentage(-2, 8) == -25.0
    assert calculate_percentage(1, 3) == 33.33
    assert calculate_percentage(5, 0) == 0.0


def test_time_formatting():
    assert format_time(600) == "00:10:00"
    assert format_time(3725) == "01:02:05"
    assert format_time(-5) == "00:00:00"
    assert format_duration(605) == "10m 5s"
