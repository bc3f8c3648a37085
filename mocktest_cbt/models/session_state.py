"""
models/session_state.py

시험 진행 상태를 담는 OMR 카드 모델.
Pydantic BaseModel 기반. 직렬화/역직렬화 및 타입 안전성 확보.
UI 코드 없음. 상태 전이는 services/session_controller.py 가 담당한다.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from mocktest_cbt.models.answer_model import AnswerMap


class SubmissionState(str, Enum):
    IN_PROGRESS = "in_progress"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"


class SubmitTrigger(str, Enum):
    USER = "user"
    TIMEOUT = "timeout"


class ExamState(BaseModel):
    """
    사용자의 시험 세션 전체 상태를 표현하는 모델.

    Attributes:
        current_question_index: 현재 풀고 있는 문제의 인덱스 (0-based).
        answers:                사용자 답안지. {question.id: Answer}
        time_remaining_seconds: 남은 시간 (초). 0 미만으로 내려가지 않는다.
        submission_state:       in_progress → submitting → submitted.
        attempt_id:             제출 완료 후 저장된 응시 기록 id.
    """

    current_question_index: int = Field(
        default=0,
        ge=0,
        description="현재 풀고 있는 문제 인덱스 (0-based)"
    )
    answers: AnswerMap = Field(
        default_factory=dict,
        description="사용자 답안지. key: question.id, value: OptionAnswer | IntegerAnswer"
    )
    time_remaining_seconds: int = Field(
        ...,
        ge=0,
        description="남은 시간 (초)"
    )
    submission_state: SubmissionState = Field(
        default=SubmissionState.IN_PROGRESS,
        description="제출 진행 상태"
    )
    attempt_id: Optional[str] = Field(
        default=None,
        description="저장된 응시 기록 id (제출 완료 시)"
    )

    @property
    def is_submitted(self) -> bool:
        return self.submission_state is SubmissionState.SUBMITTED


class SubmitConfirmation(BaseModel):
    """사용자 제출 전 확인 문구에 들어갈 응답 현황."""

    answered: int
    unanswered: int
    total: int

    @property
    def message(self) -> str:
        if self.unanswered > 0:
            return (
                f"{self.total}문제 중 {self.answered}문제에 답했습니다.\n"
                f"미응답 문제가 {self.unanswered}개 있습니다.\n\n"
                "그래도 제출하시겠습니까?"
            )
        return f"{self.total}문제 모두 답했습니다.\n\n제출하시겠습니까?"
