"""
api/sample_tests.py — 업로드 없이 바로 풀어볼 수 있는 샘플 시험
"""

from mocktest_cbt.models.question_model import Question, QuestionType
from mocktest_cbt.services.series_importer import build_test_series


def _mcq(qid: str, text: str, options: list[str], correct: int) -> Question:
    return Question(
        id=qid,
        question=text,
        options=[{"id": i, "text": t} for i, t in enumerate(options)],
        correct_option=correct,
        marks=4,
        negative_marks=1,
    )


SAMPLE_QUESTIONS: list[Question] = [
    _mcq("q1", "x^2 을 x에 대해 미분하면?", ["2x", "x", "x^2", "2"], 0),
    _mcq("q2", "2x + 5 = 13 일 때 x는?", ["3", "4", "5", "6"], 1),
    _mcq("q3", "프랑스의 수도는?", ["London", "Paris", "Berlin", "Rome"], 1),
    Question(
        id="q4",
        question="1부터 10까지의 합에서 13을 뺀 값은?",
        type=QuestionType.INTEGER,
        correct_value=42,
        marks=4,
        negative_marks=0,
    ),
]

SAMPLE_TEST = build_test_series(
    name="샘플 모의고사",
    questions=SAMPLE_QUESTIONS,
    duration=10,
    batch_id="sample",
    test_id="sample",
)
