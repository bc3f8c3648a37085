"""
services/repository.py — 시험/응시 기록 저장소

컨트롤러는 AttemptRepository 프로토콜에만 의존한다.
InMemoryRepository는 외부 문서 DB 대신 쓰는 인메모리 구현 (프로세스 재시작 시 초기화).
"""

import logging
import threading
import time
import uuid
from typing import Dict, List, Optional, Protocol

from pydantic import BaseModel, Field

from mocktest_cbt.models.attempt_model import TestAttempt
from mocktest_cbt.models.question_model import TestSeries

logger = logging.getLogger(__name__)


class UserProgress(BaseModel):
    user_id: str
    batch_id: str
    completed_tests: List[str] = Field(default_factory=list)
    last_accessed_at: int = 0


class AttemptRepository(Protocol):
    async def save_attempt(self, attempt: TestAttempt) -> str: ...

    async def update_progress(self, user_id: str, batch_id: str, test_series_id: str) -> None: ...


def _now_ms() -> int:
    return int(time.time() * 1000)


class InMemoryRepository:
    """시험 시리즈, 응시 기록, 진도 기록을 딕셔너리에 보관."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tests: Dict[str, TestSeries] = {}
        self._attempts: Dict[str, TestAttempt] = {}
        self._progress: Dict[str, UserProgress] = {}

    # ── 시험 시리즈 ──────────────────────────────────────────────────────────

    def add_test_series(self, test_series: TestSeries) -> str:
        with self._lock:
            self._tests[test_series.id] = test_series
        logger.info(f"시험 등록: {test_series.id} ({len(test_series.questions)}문제)")
        return test_series.id

    def get_test_series(self, test_series_id: str) -> Optional[TestSeries]:
        with self._lock:
            return self._tests.get(test_series_id)

    def list_test_series(self, batch_id: Optional[str] = None) -> List[TestSeries]:
        with self._lock:
            tests = list(self._tests.values())
        if batch_id is not None:
            tests = [t for t in tests if t.batch_id == batch_id]
        return sorted(tests, key=lambda t: t.created_at, reverse=True)

    # ── 응시 기록 ────────────────────────────────────────────────────────────

    async def save_attempt(self, attempt: TestAttempt) -> str:
        attempt_id = uuid.uuid4().hex
        with self._lock:
            self._attempts[attempt_id] = attempt.model_copy(update={"id": attempt_id})
        return attempt_id

    def get_attempt(self, attempt_id: str) -> Optional[TestAttempt]:
        with self._lock:
            return self._attempts.get(attempt_id)

    def get_user_attempts(self, user_id: str) -> List[TestAttempt]:
        """사용자의 응시 기록 (최신순)."""
        with self._lock:
            attempts = [a for a in self._attempts.values() if a.user_id == user_id]
        return sorted(attempts, key=lambda a: a.completed_at, reverse=True)

    def get_test_attempts(self, test_series_id: str) -> List[TestAttempt]:
        """시험별 응시 기록 (최신순)."""
        with self._lock:
            attempts = [a for a in self._attempts.values() if a.test_series_id == test_series_id]
        return sorted(attempts, key=lambda a: a.completed_at, reverse=True)

    # ── 진도 ─────────────────────────────────────────────────────────────────

    async def update_progress(self, user_id: str, batch_id: str, test_series_id: str) -> None:
        key = f"{user_id}_{batch_id}"
        with self._lock:
            progress = self._progress.get(key)
            if progress is None:
                progress = UserProgress(user_id=user_id, batch_id=batch_id)
                self._progress[key] = progress
            if test_series_id not in progress.completed_tests:
                progress.completed_tests.append(test_series_id)
            progress.last_accessed_at = _now_ms()

    def get_user_progress(self, user_id: str) -> List[UserProgress]:
        with self._lock:
            return [p for p in self._progress.values() if p.user_id == user_id]
