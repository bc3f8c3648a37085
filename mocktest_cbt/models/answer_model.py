"""
models/answer_model.py

답안 값 모델. 객관식 보기 위치와 정수형 입력값을 태그(kind)로 구분한다.
보기 번호와 정수 답은 서로 비교되지 않는다.
"""

from typing import Annotated, Dict, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class OptionAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["option"] = "option"
    index: int = Field(..., ge=0, le=3)


class IntegerAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["integer"] = "integer"
    value: int


Answer = Annotated[Union[OptionAnswer, IntegerAnswer], Field(discriminator="kind")]

# 답안지: {question.id: Answer}. 키가 있으면 응답, 없으면 미응답.
AnswerMap = Dict[str, Answer]


def answer_value(answer: Answer) -> int:
    """태그를 벗긴 원시 값 (보기 위치 또는 정수)."""
    if isinstance(answer, OptionAnswer):
        return answer.index
    return answer.value


def flatten_answers(answers: AnswerMap) -> Dict[str, int]:
    """{question.id: int} 형태로 변환 (화면 표시/외부 저장 포맷)."""
    return {qid: answer_value(a) for qid, a in answers.items()}
