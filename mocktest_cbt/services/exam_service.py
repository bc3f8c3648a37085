"""
services/exam_service.py

시험 채점 및 결과 분석 비즈니스 로직.
순수 Python 함수로 구성. UI 코드, 전역 상태 변경 없음.
"""

from enum import Enum
from typing import List, NamedTuple, Optional

from mocktest_cbt.models.answer_model import Answer, AnswerMap, IntegerAnswer, OptionAnswer
from mocktest_cbt.models.question_model import Question


class ScoreResult(NamedTuple):
    score: int
    correct_count: int
    wrong_count: int
    unanswered_count: int


class Outcome(str, Enum):
    CORRECT = "correct"
    WRONG = "wrong"
    UNANSWERED = "unanswered"


class QuestionOutcome(NamedTuple):
    question: Question
    answer: Optional[Answer]
    outcome: Outcome
    marks_delta: int


def is_correct(question: Question, answer: Answer) -> bool:
    """
    정답 판정.

    - 객관식: OptionAnswer.index == question.correct_option
    - 정수형: IntegerAnswer.value == question.correct_value
    문제 유형과 답안 종류가 다르면 정답으로 인정하지 않는다.
    """
    if question.is_integer:
        return isinstance(answer, IntegerAnswer) and answer.value == question.correct_value
    return isinstance(answer, OptionAnswer) and answer.index == question.correct_option


def grade_question(question: Question, answers: AnswerMap) -> QuestionOutcome:
    """문제 한 개의 채점 결과와 점수 변화량."""
    answer = answers.get(question.id)
    if answer is None:
        return QuestionOutcome(question, None, Outcome.UNANSWERED, 0)
    if is_correct(question, answer):
        return QuestionOutcome(question, answer, Outcome.CORRECT, question.marks)
    return QuestionOutcome(question, answer, Outcome.WRONG, -question.negative_marks)


def question_outcomes(
    questions: List[Question],
    answers: AnswerMap,
) -> List[QuestionOutcome]:
    """문제 순서대로 채점 결과 리스트를 반환한다 (해설 보기 화면용)."""
    return [grade_question(q, answers) for q in questions]


def score_answers(
    questions: List[Question],
    answers: AnswerMap,
) -> ScoreResult:
    """
    사용자 답안을 채점한다.

    판정 기준:
    - 답안지에 키가 없는 문제: 미응답, 점수 변화 없음
    - 정답: +marks
    - 오답: -negative_marks (기본 0)

    점수는 0 미만으로 내려갈 수 있다 (하한 없음).
    정답 + 오답 + 미응답 수는 항상 len(questions)와 같다.

    Args:
        questions: 채점 대상 Question 리스트 (시험 순서).
        answers:   사용자 답안지. {question.id: Answer}

    Returns:
        ScoreResult(score, correct_count, wrong_count, unanswered_count)
    """
    score = 0
    counts = {Outcome.CORRECT: 0, Outcome.WRONG: 0, Outcome.UNANSWERED: 0}

    for result in question_outcomes(questions, answers):
        score += result.marks_delta
        counts[result.outcome] += 1

    return ScoreResult(
        score=score,
        correct_count=counts[Outcome.CORRECT],
        wrong_count=counts[Outcome.WRONG],
        unanswered_count=counts[Outcome.UNANSWERED],
    )


def get_wrong_questions(
    questions: List[Question],
    answers: AnswerMap,
) -> List[Question]:
    """
    오답 문제 리스트를 반환한다 (오답 노트용).
    미응답 문제는 오답이 아니므로 포함하지 않는다. 원본 순서 유지.
    """
    return [
        r.question
        for r in question_outcomes(questions, answers)
        if r.outcome is Outcome.WRONG
    ]


def calculate_percentage(score: int, total_marks: int) -> float:
    """
    총점 대비 백분율 (소수점 둘째 자리 반올림).
    total_marks가 0 이하이면 0.0 반환.
    """
    if total_marks <= 0:
        return 0.0
    return round(score / total_marks * 100, 2)


def format_time(seconds: int) -> str:
    """남은 시간 표시용 HH:MM:SS."""
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_duration(seconds: int) -> str:
    """결과 화면 소요 시간 표시 (예: 12m 5s)."""
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes}m {secs}s"
