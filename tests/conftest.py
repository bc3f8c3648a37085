"""Shared pytest fixtures for engine and API tests."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from mocktest_cbt.models.attempt_model import UserIdentity
from mocktest_cbt.models.question_model import Question, QuestionType, TestSeries
from mocktest_cbt.services.repository import InMemoryRepository
from mocktest_cbt.services.session_controller import TestSessionController


# ── Helpers ────────────────────────────────────────────────────────────────────


def make_mcq(qid: str, correct: int = 0, marks: int = 4, negative: int = 1) -> Question:
    return Question(
        id=qid,
        question=f"Question {qid}",
        options=[{"id": i, "text": f"opt{i}"} for i in range(4)],
        correct_option=correct,
        marks=marks,
        negative_marks=negative,
    )


def make_integer(qid: str, correct_value: int = 42, marks: int = 4, negative: int = 0) -> Question:
    return Question(
        id=qid,
        question=f"Integer {qid}",
        type=QuestionType.INTEGER,
        correct_value=correct_value,
        marks=marks,
        negative_marks=negative,
    )


def make_series(questions, duration: int = 10, test_id: str = "t1") -> TestSeries:
    return TestSeries(
        id=test_id,
        batch_id="b1",
        name="Unit Test",
        duration=duration,
        total_marks=sum(q.marks for q in questions),
        questions=questions,
        created_at=1_700_000_000_000,
    )


class ManualTicker:
    """Ticker fake: records start/cancel, never fires by itself."""

    def __init__(self):
        self.callback = None
        self.started = 0
        self.cancelled = 0

    @property
    def running(self) -> bool:
        return self.callback is not None

    def start(self, callback) -> None:
        if self.callback is None:
            self.callback = callback
            self.started += 1

    def cancel(self) -> None:
        if self.callback is not None:
            self.callback = None
            self.cancelled += 1


class CountingRepository(InMemoryRepository):
    """InMemoryRepository that counts saves and can simulate a slow store."""

    def __init__(self, delay: float = 0.0):
        super().__init__()
        self.delay = delay
        self.save_calls = 0

    async def save_attempt(self, attempt):
        self.save_calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        return await super().save_attempt(attempt)


# ── Fixtures ───────────────────────────────────────────────────────────────────


@pytest.fixture
def identity() -> UserIdentity:
    return UserIdentity(user_id="u1", name="Student One", email="one@ex.com")


@pytest.fixture
def ticker() -> ManualTicker:
    return ManualTicker()


@pytest.fixture
def repository() -> CountingRepository:
    return CountingRepository()


@pytest.fixture
def two_questions():
    """Two option questions, 4 marks / 1 negative each, correct option 0."""
    return make_series([make_mcq("q1"), make_mcq("q2")])


@pytest.fixture
def make_controller(repository, ticker, identity):
    """Factory for controllers wired to the fake ticker, counting repository and a fixed clock."""

    def _make(test_series, repo=None, user=identity, clock=lambda: 1_700_000_123.5):
        return TestSessionController(
            test_series,
            repo if repo is not None else repository,
            identity_provider=lambda: user,
            ticker=ticker,
            clock=clock,
        )

    return _make


@pytest.fixture
def client():
    """FastAPI test client with a fresh in-memory repository; the event loop lives for the whole test."""
    app = create_app(CountingRepository())
    with TestClient(app) as test_client:
        yield test_client
