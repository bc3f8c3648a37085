"""
services/session_controller.py

응시 1회의 진행 상태를 관리하는 컨트롤러.

상태 전이:
  in_progress --(시간 종료 | 사용자 제출)--> submitting --(저장 성공)--> submitted
  submitting --(저장 실패)--> in_progress  (사용자가 다시 제출)

외부 의존성(저장소, 로그인 사용자, 타이머, 시계)은 모두 생성자로 주입받는다.
"""

import logging
import re
import time
from typing import Callable, Optional, Union

from config import TIME_WARNING_SECONDS
from mocktest_cbt.models.answer_model import Answer, IntegerAnswer, OptionAnswer, flatten_answers
from mocktest_cbt.models.attempt_model import TestAttempt, UserIdentity
from mocktest_cbt.models.question_model import Question, TestSeries
from mocktest_cbt.models.session_state import (
    ExamState,
    SubmissionState,
    SubmitConfirmation,
    SubmitTrigger,
)
from mocktest_cbt.services.errors import (
    AttemptPersistError,
    ExamClosedError,
    InvalidAnswerError,
    MissingIdentityError,
)
from mocktest_cbt.services.exam_service import format_time, score_answers
from mocktest_cbt.services.repository import AttemptRepository
from mocktest_cbt.services.ticker import AsyncioTicker, Ticker

logger = logging.getLogger(__name__)

IdentityProvider = Callable[[], Optional[UserIdentity]]
AnswerInput = Union[int, str, None, OptionAnswer, IntegerAnswer]

_INTEGER_RE = re.compile(r"^[+-]?\d+$")


class TestSessionController:
    __test__ = False  # pytest 수집 제외

    def __init__(
        self,
        test_series: TestSeries,
        repository: AttemptRepository,
        identity_provider: IdentityProvider,
        ticker: Optional[Ticker] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.test_series = test_series
        self.state = ExamState(time_remaining_seconds=test_series.duration_seconds)
        self.last_error: Optional[str] = None
        self._repository = repository
        self._identity_provider = identity_provider
        self._ticker = ticker if ticker is not None else AsyncioTicker()
        self._clock = clock

    # ── 조회 ─────────────────────────────────────────────────────────────────

    @property
    def total(self) -> int:
        return len(self.test_series.questions)

    @property
    def current_question(self) -> Question:
        return self.test_series.questions[self.state.current_question_index]

    @property
    def answered_count(self) -> int:
        return len(self.state.answers)

    @property
    def submission_state(self) -> SubmissionState:
        return self.state.submission_state

    @property
    def timer_running(self) -> bool:
        return self._ticker.running

    def snapshot(self) -> dict:
        remaining = self.state.time_remaining_seconds
        return {
            "test_id": self.test_series.id,
            "test_name": self.test_series.name,
            "current_question_index": self.state.current_question_index,
            "answers": flatten_answers(self.state.answers),
            "answered_count": self.answered_count,
            "total": self.total,
            "question_ids": [q.id for q in self.test_series.questions],
            "time_remaining_seconds": remaining,
            "time_display": format_time(remaining),
            "time_warning": remaining < TIME_WARNING_SECONDS,
            "timer_running": self.timer_running,
            "submission_state": self.state.submission_state.value,
            "attempt_id": self.state.attempt_id,
            "last_error": self.last_error,
        }

    # ── 타이머 ───────────────────────────────────────────────────────────────

    def start(self) -> None:
        """남은 시간이 있고 진행 중일 때만 타이머를 시작한다."""
        if self.state.submission_state is SubmissionState.IN_PROGRESS and self.state.time_remaining_seconds > 0:
            self._ticker.start(self.tick)

    def abandon(self) -> None:
        """사용자가 시험 화면을 떠남. 타이머 정리."""
        self._ticker.cancel()
        logger.info(f"시험 이탈: {self.test_series.id} (상태: {self.state.submission_state.value})")

    async def tick(self) -> None:
        """
        1초 경과. 진행 중일 때만 남은 시간을 줄인다 (하한 0).
        1 → 0이 되는 순간에만 자동 제출하고, 이미 0인 상태의 tick은 무시한다.
        """
        if self.state.submission_state is not SubmissionState.IN_PROGRESS:
            return
        if self.state.time_remaining_seconds == 0:
            return

        self.state.time_remaining_seconds -= 1
        if self.state.time_remaining_seconds == 0:
            logger.info(f"시험 시간 종료: {self.test_series.id}, 자동 제출")
            self._ticker.cancel()
            await self.request_submit(SubmitTrigger.TIMEOUT)

    # ── 이동 ─────────────────────────────────────────────────────────────────

    def navigate(self, direction: int) -> int:
        """이전(-1)/다음(+1) 문제. 양 끝에서는 이동하지 않는다 (순환 없음)."""
        step = (direction > 0) - (direction < 0)
        return self.go_to(self.state.current_question_index + step)

    def go_to(self, index: int) -> int:
        """문제 번호판에서 바로 이동. 범위 밖 인덱스는 보정."""
        if self.state.is_submitted:
            raise ExamClosedError("이미 제출된 시험입니다.")
        idx = max(0, min(index, self.total - 1))
        self.state.current_question_index = idx
        return idx

    # ── 답안 ─────────────────────────────────────────────────────────────────

    def select_answer(self, question_id: str, value: AnswerInput) -> Optional[Answer]:
        """
        답안 기록.

        - 객관식: value는 보기 위치 (0~3)
        - 정수형: value는 임의의 정수 또는 정수 문자열 (음수 허용)
        - None 또는 빈 문자열: 해당 문제의 답을 지운다 (미응답 처리)

        잘못된 입력은 InvalidAnswerError. 답안지는 바뀌지 않는다.

        Returns:
            기록된 Answer, 지운 경우 None.
        """
        self._ensure_in_progress()
        question = self.test_series.get_question(question_id)
        if question is None:
            raise InvalidAnswerError(f"문제 {question_id}을(를) 찾을 수 없습니다.")

        answer = _to_answer(question, value)
        if answer is None:
            self.state.answers.pop(question_id, None)
        else:
            self.state.answers[question_id] = answer
        return answer

    def clear_answer(self, question_id: str) -> None:
        self.select_answer(question_id, None)

    # ── 제출 ─────────────────────────────────────────────────────────────────

    async def request_submit(
        self,
        trigger: SubmitTrigger = SubmitTrigger.USER,
    ) -> Optional[SubmitConfirmation]:
        """
        제출 요청.

        사용자 제출: 응답 현황(SubmitConfirmation)을 돌려주고 제출하지 않는다.
                     확인 후 confirm_submit()을 호출한다.
        시간 종료:   확인 없이 바로 제출한다.
        """
        if trigger is SubmitTrigger.TIMEOUT:
            await self.submit(trigger)
            return None

        self._ensure_in_progress()
        return SubmitConfirmation(
            answered=self.answered_count,
            unanswered=self.total - self.answered_count,
            total=self.total,
        )

    async def confirm_submit(self) -> Optional[str]:
        return await self.submit(SubmitTrigger.USER)

    async def submit(self, trigger: SubmitTrigger = SubmitTrigger.USER) -> Optional[str]:
        """
        채점 후 응시 기록을 저장한다. 응시 1회당 최대 한 번만 실행된다.

        Returns:
            저장된 응시 기록 id. 이미 제출 중이거나 제출된 경우 None.

        Raises:
            MissingIdentityError: 로그인 사용자 없음 (상태 변화 없음).
            AttemptPersistError:  저장 실패 (in_progress로 복귀, 답안 유지).
        """
        if self.state.submission_state is not SubmissionState.IN_PROGRESS:
            logger.info(f"중복 제출 무시: {self.test_series.id} ({self.state.submission_state.value})")
            return None

        identity = self._identity_provider()
        if identity is None:
            self.last_error = "로그인 정보가 없어 제출할 수 없습니다."
            raise MissingIdentityError(self.last_error)

        self.state.submission_state = SubmissionState.SUBMITTING
        self._ticker.cancel()

        time_taken = self.test_series.duration_seconds - self.state.time_remaining_seconds
        result = score_answers(self.test_series.questions, self.state.answers)
        attempt = TestAttempt(
            user_id=identity.user_id,
            user_name=identity.name or "Anonymous",
            user_email=identity.email,
            test_series_id=self.test_series.id,
            batch_id=self.test_series.batch_id,
            test_name=self.test_series.name,
            answers=dict(self.state.answers),
            score=result.score,
            total_marks=self.test_series.total_marks,
            correct_answers=result.correct_count,
            wrong_answers=result.wrong_count,
            unanswered=result.unanswered_count,
            time_taken=time_taken,
            completed_at=int(self._clock() * 1000),
        )

        try:
            attempt_id = await self._repository.save_attempt(attempt)
        except Exception as e:
            logger.error(f"응시 기록 저장 실패: {self.test_series.id}: {e}")
            self.state.submission_state = SubmissionState.IN_PROGRESS
            self.last_error = f"제출에 실패했습니다: {e}"
            self.start()
            raise AttemptPersistError(self.last_error) from e

        self.state.attempt_id = attempt_id
        self.state.submission_state = SubmissionState.SUBMITTED
        self.last_error = None
        logger.info(
            f"제출 완료 ({trigger.value}): {self.test_series.id} user={identity.user_id} "
            f"score={result.score}/{self.test_series.total_marks} time={time_taken}s"
        )

        try:
            await self._repository.update_progress(identity.user_id, self.test_series.batch_id, self.test_series.id)
        except Exception as e:
            # 응시 기록은 이미 저장됨. 진도만 누락
            logger.warning(f"진도 갱신 실패: {identity.user_id}/{self.test_series.batch_id}: {e}")

        return attempt_id

    def _ensure_in_progress(self) -> None:
        if self.state.submission_state is not SubmissionState.IN_PROGRESS:
            raise ExamClosedError("제출 중이거나 이미 제출된 시험입니다.")


def _to_answer(question: Question, value: AnswerInput) -> Optional[Answer]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        raise InvalidAnswerError(f"문제 {question.id}: 잘못된 답안 형식입니다.")

    if question.is_integer:
        if isinstance(value, IntegerAnswer):
            return value
        if isinstance(value, int):
            return IntegerAnswer(value=value)
        if isinstance(value, str) and _INTEGER_RE.match(value.strip()):
            try:
                return IntegerAnswer(value=int(value.strip()))
            except ValueError as e:
                # 너무 긴 숫자 문자열 (int 변환 자릿수 제한 초과)
                raise InvalidAnswerError(
                    f"문제 {question.id}: 입력한 정수가 너무 깁니다."
                ) from e
        raise InvalidAnswerError(f"문제 {question.id}: 정수만 입력할 수 있습니다 ({value!r}).")

    if isinstance(value, OptionAnswer):
        index = value.index
    elif isinstance(value, int):
        index = value
    else:
        raise InvalidAnswerError(f"문제 {question.id}: 보기 번호가 필요합니다 ({value!r}).")
    if not 0 <= index < len(question.options):
        raise InvalidAnswerError(f"문제 {question.id}: 보기 번호({index})가 범위를 벗어났습니다.")
    return OptionAnswer(index=index)
