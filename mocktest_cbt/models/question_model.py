"""
models/question_model.py

문제(Question)와 시험 세트(TestSeries) 모델.
객관식은 보기 4개와 정답 번호, 정수형은 정답 정수를 가진다. 생성 후 변경되지 않는다.
"""

from enum import Enum
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

OPTION_COUNT = 4


class QuestionType(str, Enum):
    MCQ = "mcq"
    INTEGER = "integer"


class Option(BaseModel):
    """보기 하나. id는 보기 위치(0~3)이며 답안 키로 쓰인다."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=0, le=OPTION_COUNT - 1, description="보기 위치 (0-based)")
    text: str = Field("", description="보기 내용 (숫자 텍스트일 수도 있음)")
    image: Optional[str] = Field(None, description="보기 이미지 URL")


class Question(BaseModel):
    """
    테스트 시리즈 문제 모델
    Pydantic v2 적용. 시험 생성 후에는 변경되지 않는다 (frozen).

    업로드 JSON의 camelCase 필드명(correctOption, negativeMarks 등)도 그대로 받는다.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(
        ...,
        min_length=1,
        description="문제 식별자 (시험 내 고유)"
    )
    question: str = Field(
        ...,
        min_length=1,
        description="발문/문제 내용"
    )
    question_image: Optional[str] = Field(
        None,
        alias="questionImage",
        description="문제 이미지 URL"
    )
    type: QuestionType = Field(
        QuestionType.MCQ,
        description="mcq: 4지선다, integer: 정수 입력형"
    )
    options: List[Option] = Field(
        default_factory=list,
        description="보기 리스트 (정수형 문제는 빈 리스트)"
    )
    correct_option: Optional[int] = Field(
        None,
        alias="correctOption",
        description="정답 보기 위치 (객관식 전용)"
    )
    correct_value: Optional[int] = Field(
        None,
        alias="correctValue",
        description="정답 정수값 (정수형 전용)"
    )
    marks: int = Field(
        ...,
        ge=1,
        description="정답 배점"
    )
    negative_marks: int = Field(
        0,
        ge=0,
        alias="negativeMarks",
        description="오답 감점 (기본 0)"
    )

    @field_validator("question_image", mode="before")
    @classmethod
    def blank_image_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def validate_answer_key(self) -> "Question":
        """
        검증 로직: 문제 유형별로 정답 키가 올바르게 지정되어 있어야 한다.
        - mcq: 보기 4개, 보기 id는 위치와 일치, correct_option은 0~3
        - integer: 보기 없음, correct_value 필수
        """
        if self.type is QuestionType.MCQ:
            if len(self.options) != OPTION_COUNT:
                raise ValueError(f"객관식 문제 {self.id}: 보기는 {OPTION_COUNT}개여야 합니다 ({len(self.options)}개).")
            if [o.id for o in self.options] != list(range(OPTION_COUNT)):
                raise ValueError(f"객관식 문제 {self.id}: 보기 id는 0~{OPTION_COUNT - 1} 순서여야 합니다.")
            if self.correct_option is None or not 0 <= self.correct_option < OPTION_COUNT:
                raise ValueError(f"객관식 문제 {self.id}: 정답 보기({self.correct_option})가 범위를 벗어났습니다.")
        else:
            if self.options:
                raise ValueError(f"정수형 문제 {self.id}: 보기를 가질 수 없습니다.")
            if self.correct_value is None:
                raise ValueError(f"정수형 문제 {self.id}: 정답 정수값(correctValue)이 없습니다.")
        return self

    @property
    def is_integer(self) -> bool:
        return self.type is QuestionType.INTEGER


class TestSeries(BaseModel):
    """
    하나의 시간제한 시험. 문제 순서가 곧 출제/이동 순서다.

    total_marks는 생성 시점의 스냅샷이다. 문제 데이터로부터 다시 계산하지 않는다.
    """

    __test__ = False  # pytest 수집 제외

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1)
    batch_id: str = Field("", alias="batchId")
    name: str = Field(..., min_length=1)
    duration: int = Field(..., ge=1, description="제한 시간 (분)")
    total_marks: int = Field(..., ge=0, alias="totalMarks")
    questions: List[Question] = Field(...)
    created_at: int = Field(0, alias="createdAt", description="생성 시각 (epoch ms)")

    @field_validator("questions")
    @classmethod
    def validate_questions(cls, v: List[Question]) -> List[Question]:
        if not v:
            raise ValueError("문제가 최소 1개 이상 필요합니다.")
        ids = [q.id for q in v]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ValueError(f"문제 id가 중복되었습니다: {duplicates}")
        return v

    @property
    def duration_seconds(self) -> int:
        return self.duration * 60

    def get_question(self, question_id: str) -> Optional[Question]:
        for q in self.questions:
            if q.id == question_id:
                return q
        return None
