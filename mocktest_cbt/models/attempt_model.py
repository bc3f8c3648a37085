"""
models/attempt_model.py

응시 기록(TestAttempt) 모델. 제출 1회당 정확히 한 번 생성되고 이후 변경되지 않는다.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from mocktest_cbt.models.answer_model import AnswerMap


class UserIdentity(BaseModel):
    """외부 인증 제공자가 넘겨주는 사용자 정보."""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., min_length=1)
    name: str = "Anonymous"
    email: str = ""


class TestAttempt(BaseModel):
    __test__ = False  # pytest 수집 제외

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    user_id: str
    user_name: str
    user_email: str = ""
    test_series_id: str
    batch_id: str = ""
    test_name: str
    answers: AnswerMap = Field(default_factory=dict)
    score: int
    total_marks: int
    correct_answers: int = Field(..., ge=0)
    wrong_answers: int = Field(..., ge=0)
    unanswered: int = Field(..., ge=0)
    time_taken: int = Field(..., ge=0, description="소요 시간 (초)")
    completed_at: int = Field(..., description="완료 시각 (epoch ms)")

    @model_validator(mode="after")
    def validate_counts(self) -> "TestAttempt":
        answered = self.correct_answers + self.wrong_answers
        if answered != len(self.answers):
            raise ValueError(
                f"정답+오답 수({answered})가 응답 수({len(self.answers)})와 일치하지 않습니다."
            )
        return self

    @property
    def question_count(self) -> int:
        return self.correct_answers + self.wrong_answers + self.unanswered
