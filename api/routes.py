"""
api/routes.py — FastAPI 엔드포인트
"""

import logging
import os
from typing import Optional, Union

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile
from pydantic import BaseModel

from config import DEFAULT_DURATION_MINUTES, MAX_UPLOAD_SIZE
from api.sample_tests import SAMPLE_TEST
import api.session as session

from mocktest_cbt.models.answer_model import answer_value
from mocktest_cbt.models.attempt_model import TestAttempt, UserIdentity
from mocktest_cbt.models.question_model import Question, TestSeries
from mocktest_cbt.models.session_state import SubmitTrigger
from mocktest_cbt.services.errors import (
    AttemptPersistError,
    ExamClosedError,
    InvalidAnswerError,
    MissingIdentityError,
    TestImportError,
)
from mocktest_cbt.services.exam_service import (
    calculate_percentage, format_duration, get_wrong_questions, question_outcomes,
)
from mocktest_cbt.services.repository import InMemoryRepository
from mocktest_cbt.services.series_importer import build_test_series, parse_csv, parse_json
from mocktest_cbt.services.session_controller import TestSessionController

logger = logging.getLogger(__name__)

router = APIRouter()

# ── Pydantic request bodies ──────────────────────────────────────────────────

class IdentityBody(BaseModel):
    user_id: str
    name: str = "Anonymous"
    email: str = ""

class SaveAnswerBody(BaseModel):
    question_id: str
    answer: Optional[Union[int, str]] = None

class NavigateBody(BaseModel):
    direction: int = 1

class GoToBody(BaseModel):
    index: int = 0

class SubmitBody(BaseModel):
    confirm: bool = False


# ── 헬퍼 ─────────────────────────────────────────────────────────────────────

def _sid(request: Request) -> str:
    return request.state.session_id


def _repository(request: Request) -> InMemoryRepository:
    return request.app.state.repository


def _controller(sid: str) -> TestSessionController:
    controller: TestSessionController = session.get(sid, "controller")
    if controller is None:
        raise HTTPException(status_code=404, detail="시험 세션이 없습니다.")
    return controller


def _question_to_dict(q: Question, with_key: bool = False) -> dict:
    d = {
        "id": q.id,
        "question": q.question,
        "question_image": q.question_image,
        "type": q.type.value,
        "options": [o.model_dump() for o in q.options],
        "marks": q.marks,
        "negative_marks": q.negative_marks,
    }
    if with_key:
        d["correct_answer"] = q.correct_value if q.is_integer else q.correct_option
    return d


def _test_to_dict(t: TestSeries) -> dict:
    return {
        "id": t.id,
        "batch_id": t.batch_id,
        "name": t.name,
        "duration": t.duration,
        "total_marks": t.total_marks,
        "question_count": len(t.questions),
        "created_at": t.created_at,
    }


def _start(sid: str, test_series: TestSeries, repository: InMemoryRepository) -> dict:
    previous: Optional[TestSessionController] = session.get(sid, "controller")
    if previous is not None:
        previous.abandon()

    controller = TestSessionController(
        test_series,
        repository,
        identity_provider=lambda: session.get(sid, "identity"),
    )
    controller.start()
    session.put(sid, "controller", controller)
    logger.info(f"시험 시작: {test_series.id} (session {sid[:8]})")
    return {"total": controller.total, "duration": test_series.duration, "ok": True}


# ── 엔드포인트 ───────────────────────────────────────────────────────────────

@router.post("/api/identity")
async def set_identity(body: IdentityBody, request: Request):
    user_id = body.user_id.strip()
    if not user_id:
        raise HTTPException(status_code=400, detail="사용자 ID가 비어 있습니다.")
    identity = UserIdentity(user_id=user_id, name=body.name.strip() or "Anonymous", email=body.email.strip())
    session.put(_sid(request), "identity", identity)
    return {"ok": True, "user_id": identity.user_id}


@router.post("/api/upload-test")
async def upload_test(
    request: Request,
    file: UploadFile = File(...),
    name: str = Form(...),
    duration: int = Form(DEFAULT_DURATION_MINUTES),
    batch_id: str = Form(""),
):
    file_bytes = await file.read()
    if len(file_bytes) > MAX_UPLOAD_SIZE:
        raise HTTPException(status_code=413, detail="파일이 너무 큽니다 (최대 5MB).")
    try:
        text = file_bytes.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=422, detail="UTF-8 텍스트 파일만 업로드할 수 있습니다.")

    ext = os.path.splitext(file.filename or "")[1].lower()
    try:
        questions = parse_json(text) if ext == ".json" else parse_csv(text)
        test_series = build_test_series(name.strip(), questions, duration=duration, batch_id=batch_id)
    except TestImportError as e:
        raise HTTPException(status_code=422, detail=str(e))

    _repository(request).add_test_series(test_series)
    return {"ok": True, **_test_to_dict(test_series)}


@router.get("/api/tests")
async def list_tests(request: Request, batch_id: Optional[str] = None):
    return [_test_to_dict(t) for t in _repository(request).list_test_series(batch_id)]


@router.post("/api/start-test/{test_id}")
async def start_test(test_id: str, request: Request):
    repository = _repository(request)
    test_series = repository.get_test_series(test_id)
    if test_series is None:
        raise HTTPException(status_code=404, detail="시험을 찾을 수 없습니다.")
    return _start(_sid(request), test_series, repository)


@router.post("/api/start-sample-test")
async def start_sample_test(request: Request):
    return _start(_sid(request), SAMPLE_TEST, _repository(request))


@router.get("/api/question/{index}")
async def get_question(index: int, request: Request):
    controller = _controller(_sid(request))
    questions = controller.test_series.questions
    if not (0 <= index < len(questions)):
        raise HTTPException(status_code=404, detail="문제를 찾을 수 없습니다.")

    q = questions[index]
    saved = controller.state.answers.get(q.id)
    d = _question_to_dict(q, with_key=controller.state.is_submitted)
    d.update({
        "saved_answer": answer_value(saved) if saved is not None else None,
        "index": index,
        "total": len(questions),
    })
    return d


@router.get("/api/exam-state")
async def get_exam_state(request: Request):
    return _controller(_sid(request)).snapshot()


@router.post("/api/save-answer")
async def save_answer(body: SaveAnswerBody, request: Request):
    controller = _controller(_sid(request))
    try:
        controller.select_answer(body.question_id, body.answer)
    except InvalidAnswerError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ExamClosedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"ok": True, "answered_count": controller.answered_count}


@router.post("/api/navigate")
async def navigate(body: NavigateBody, request: Request):
    controller = _controller(_sid(request))
    try:
        idx = controller.navigate(body.direction)
    except ExamClosedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"index": idx, "ok": True}


@router.post("/api/go-to")
async def go_to(body: GoToBody, request: Request):
    controller = _controller(_sid(request))
    try:
        idx = controller.go_to(body.index)
    except ExamClosedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"index": idx, "ok": True}


@router.post("/api/submit-request")
async def submit_request(request: Request):
    controller = _controller(_sid(request))
    try:
        confirmation = await controller.request_submit(SubmitTrigger.USER)
    except ExamClosedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {**confirmation.model_dump(), "message": confirmation.message}


@router.post("/api/submit-exam")
async def submit_exam(body: SubmitBody, request: Request):
    if not body.confirm:
        raise HTTPException(status_code=400, detail="제출 확인이 필요합니다.")
    controller = _controller(_sid(request))
    try:
        attempt_id = await controller.confirm_submit()
    except MissingIdentityError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except AttemptPersistError as e:
        raise HTTPException(status_code=503, detail=f"{e} 다시 제출해 주세요.")

    if attempt_id is None:
        # 이미 제출 중이거나 제출 완료
        raise HTTPException(status_code=409, detail="이미 제출된 시험입니다.")
    return {"attempt_id": attempt_id, "ok": True}


@router.post("/api/abandon")
async def abandon_exam(request: Request):
    sid = _sid(request)
    controller = _controller(sid)
    controller.abandon()
    session.put(sid, "controller", None)
    return {"ok": True}


@router.get("/api/results/{attempt_id}")
async def get_results(attempt_id: str, request: Request):
    repository = _repository(request)
    identity: Optional[UserIdentity] = session.get(_sid(request), "identity")
    attempt = repository.get_attempt(attempt_id)
    if attempt is None or identity is None or attempt.user_id != identity.user_id:
        raise HTTPException(status_code=404, detail="결과 정보가 없습니다.")

    data = _attempt_to_dict(attempt)

    test_series = repository.get_test_series(attempt.test_series_id)
    solutions = []
    data["wrong_question_ids"] = []
    if test_series is not None:
        for r in question_outcomes(test_series.questions, attempt.answers):
            d = _question_to_dict(r.question, with_key=True)
            d.update({
                "user_answer": answer_value(r.answer) if r.answer is not None else None,
                "outcome": r.outcome.value,
                "marks_delta": r.marks_delta,
            })
            solutions.append(d)
        data["wrong_question_ids"] = [
            q.id for q in get_wrong_questions(test_series.questions, attempt.answers)
        ]
    data["solutions"] = solutions
    return data


@router.get("/api/tests/{test_id}/attempts")
async def list_test_attempts(test_id: str, request: Request):
    """관리자 결과 조회: 해당 시험의 전체 응시 기록 (최신순)."""
    repository = _repository(request)
    if repository.get_test_series(test_id) is None:
        raise HTTPException(status_code=404, detail="시험을 찾을 수 없습니다.")
    results = []
    for attempt in repository.get_test_attempts(test_id):
        d = _attempt_to_dict(attempt)
        d.update({"user_name": attempt.user_name, "user_email": attempt.user_email})
        results.append(d)
    return results


@router.get("/api/my-attempts")
async def my_attempts(request: Request):
    identity: Optional[UserIdentity] = session.get(_sid(request), "identity")
    if identity is None:
        raise HTTPException(status_code=401, detail="로그인 정보가 없습니다.")
    return [_attempt_to_dict(a) for a in _repository(request).get_user_attempts(identity.user_id)]


@router.post("/api/reset")
async def reset_session(request: Request):
    session.reset(_sid(request))
    return {"ok": True}


def _attempt_to_dict(attempt: TestAttempt) -> dict:
    return {
        "id": attempt.id,
        "test_series_id": attempt.test_series_id,
        "batch_id": attempt.batch_id,
        "test_name": attempt.test_name,
        "score": attempt.score,
        "total_marks": attempt.total_marks,
        "percentage": calculate_percentage(attempt.score, attempt.total_marks),
        "correct_count": attempt.correct_answers,
        "wrong_count": attempt.wrong_answers,
        "unanswered_count": attempt.unanswered,
        "time_taken": attempt.time_taken,
        "time_display": format_duration(attempt.time_taken),
        "completed_at": attempt.completed_at,
    }
