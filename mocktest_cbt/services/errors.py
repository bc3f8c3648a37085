"""
services/errors.py

시험 엔진 예외. API 계층(api/routes.py)에서 HTTPException으로 변환된다.
"""


class ExamError(Exception):
    """시험 엔진 공통 예외."""


class InvalidAnswerError(ExamError, ValueError):
    """형식이 잘못된 답안 입력. 답안지는 변경되지 않는다."""


class ExamClosedError(ExamError):
    """제출 중이거나 제출이 끝난 시험에 대한 변경 요청."""


class MissingIdentityError(ExamError):
    """제출 시점에 로그인 사용자 정보가 없음. 저장 호출 전에 중단된다."""


class AttemptPersistError(ExamError, RuntimeError):
    """응시 기록 저장 실패. 시험은 진행 상태로 되돌아가며 다시 제출할 수 있다."""


class TestImportError(ExamError, ValueError):
    """시험 업로드(CSV/JSON) 파싱 실패."""

    __test__ = False
