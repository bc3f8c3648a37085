"""
services/series_importer.py

관리자 업로드(CSV / JSON) → TestSeries 변환 서비스.
Public API:
  - parse_csv(text) -> List[Question]        : CSV 업로드 파싱
  - parse_json(text) -> List[Question]       : JSON 업로드 파싱
  - build_test_series(...) -> TestSeries     : 검증 + 총점 스냅샷 계산

CSV 형식 (헤더 1행 + 데이터 행):
  id,question,option1,option2,option3,option4,correctOption,marks,negativeMarks
  negativeMarks 열은 생략 가능 (기본 0), id가 비어 있으면 q{행번호}.
"""

import csv
import io
import json
import logging
import time
import uuid
from typing import List, Optional

from pydantic import ValidationError

from config import DEFAULT_DURATION_MINUTES
from mocktest_cbt.models.question_model import Question, QuestionType, TestSeries
from mocktest_cbt.services.errors import TestImportError

logger = logging.getLogger(__name__)

_MIN_CSV_COLUMNS = 8


# ══════════════════════════════════════════════════════════════════════════════
# Public API
# ══════════════════════════════════════════════════════════════════════════════

def parse_csv(text: str) -> List[Question]:
    """CSV 텍스트 → Question 리스트. 형식 오류는 행 번호와 함께 TestImportError."""
    rows = [row for row in csv.reader(io.StringIO(text.strip()))]
    if len(rows) < 2:
        raise TestImportError("CSV에는 헤더와 최소 1개의 데이터 행이 필요합니다.")

    questions: List[Question] = []
    for line_no, row in enumerate(rows[1:], start=2):
        parts = [p.strip() for p in row]
        if not any(parts):
            continue
        if len(parts) < _MIN_CSV_COLUMNS:
            raise TestImportError(f"{line_no}행이 불완전합니다. 최소 {_MIN_CSV_COLUMNS}개 열이 필요합니다.")

        qid, text_, opt1, opt2, opt3, opt4, correct, marks = parts[:_MIN_CSV_COLUMNS]
        negative = parts[_MIN_CSV_COLUMNS] if len(parts) > _MIN_CSV_COLUMNS else ""

        try:
            questions.append(Question(
                id=qid or f"q{line_no - 1}",
                question=text_,
                options=[{"id": i, "text": t} for i, t in enumerate((opt1, opt2, opt3, opt4))],
                correct_option=_to_int(correct, line_no, "correctOption"),
                marks=_to_int(marks, line_no, "marks"),
                negative_marks=_to_int(negative, line_no, "negativeMarks") if negative else 0,
            ))
        except ValidationError as e:
            raise TestImportError(f"{line_no}행: 문제 생성 실패: {_first_error(e)}") from e

    logger.info(f"parse_csv: {len(questions)}개 문제 파싱 완료")
    return questions


def parse_json(text: str) -> List[Question]:
    """
    JSON 배열 또는 {"questions": [...]} 객체 → Question 리스트.
    정수형 문제에 correctValue가 없고 correctOption만 있으면 그 값을 정답 정수로 사용한다.
    """
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise TestImportError(f"JSON 형식이 올바르지 않습니다: {e.msg} (line {e.lineno})") from e
    if isinstance(raw, dict) and "questions" in raw:
        raw = raw["questions"]
    if not isinstance(raw, list):
        raise TestImportError("JSON 최상위는 문제 배열이어야 합니다.")

    questions: List[Question] = []
    for idx, item in enumerate(raw):
        if not isinstance(item, dict):
            raise TestImportError(f"item[{idx}]: 문제 객체가 아닙니다.")
        item = _normalize_integer_item(dict(item), idx)
        try:
            questions.append(Question.model_validate(item))
        except ValidationError as e:
            raise TestImportError(f"item[{idx}]: 문제 생성 실패: {_first_error(e)}") from e

    logger.info(f"parse_json: {len(questions)}개 문제 파싱 완료")
    return questions


def build_test_series(
    name: str,
    questions: List[Question],
    duration: int = DEFAULT_DURATION_MINUTES,
    batch_id: str = "",
    test_id: Optional[str] = None,
) -> TestSeries:
    """
    문제 리스트로 TestSeries를 만든다.
    total_marks는 이 시점의 배점 합계를 저장한 스냅샷이다.
    """
    if not questions:
        raise TestImportError("문제가 최소 1개 이상 필요합니다.")
    total_marks = sum(q.marks for q in questions)
    try:
        return TestSeries(
            id=test_id or uuid.uuid4().hex,
            batch_id=batch_id,
            name=name,
            duration=duration,
            total_marks=total_marks,
            questions=questions,
            created_at=int(time.time() * 1000),
        )
    except ValidationError as e:
        raise TestImportError(f"시험 생성 실패: {_first_error(e)}") from e


# ══════════════════════════════════════════════════════════════════════════════
# 내부 헬퍼
# ══════════════════════════════════════════════════════════════════════════════

def _to_int(value: str, line_no: int, column: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise TestImportError(f"{line_no}행: {column} 값이 정수가 아닙니다 ({value!r}).") from None


def _normalize_integer_item(item: dict, idx: int) -> dict:
    if item.get("type") != QuestionType.INTEGER.value:
        return item
    if item.get("correctValue") is None and item.get("correct_value") is None:
        legacy = item.pop("correctOption", None)
        if legacy is not None:
            logger.warning(f"item[{idx}]: 정수형 문제의 correctOption({legacy})을 정답 정수로 사용")
            item["correctValue"] = legacy
    else:
        item.pop("correctOption", None)
    if not item.get("options"):
        item.pop("options", None)
    return item


def _first_error(e: ValidationError) -> str:
    err = e.errors()[0]
    loc = ".".join(str(p) for p in err.get("loc", ()))
    return f"{loc}: {err.get('msg')}" if loc else str(err.get("msg"))
