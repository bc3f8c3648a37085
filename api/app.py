"""
api/app.py — FastAPI 앱 인스턴스 + 세션 미들웨어 + static 파일 서빙
"""

import os
import threading
import time
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.responses import FileResponse

from config import SESSION_CLEANUP_INTERVAL, SESSION_TTL, STATIC_DIR
from api.routes import router
from api.sample_tests import SAMPLE_TEST
import api.session as session
from mocktest_cbt.services.repository import InMemoryRepository

SESSION_COOKIE = "cbt_session"



def create_app(repository: Optional[InMemoryRepository] = None) -> FastAPI:
    app = FastAPI(title="Mock Test CBT", docs_url=None, redoc_url=None)

    # 시험/응시 기록 저장소 (외부 DB 대신 인메모리)
    app.state.repository = repository if repository is not None else InMemoryRepository()
    if app.state.repository.get_test_series(SAMPLE_TEST.id) is None:
        app.state.repository.add_test_series(SAMPLE_TEST)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 세션 미들웨어: 쿠키에서 세션 ID를 읽고, 없으면 새로 발급
    @app.middleware("http")
    async def session_middleware(request: Request, call_next):
        sid = request.cookies.get(SESSION_COOKIE)
        if not sid or session.get_session(sid) is None:
            sid = session.create_session()

        request.state.session_id = sid
        response: Response = await call_next(request)
        response.set_cookie(
            key=SESSION_COOKIE,
            value=sid,
            httponly=True,
            samesite="lax",
            max_age=SESSION_TTL,
        )
        return response

    app.include_router(router)

    # static 파일 마운트
    if os.path.isdir(STATIC_DIR):
        app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    # 루트 → index.html
    @app.get("/")
    async def serve_index():
        index_path = os.path.join(STATIC_DIR, "index.html")
        if os.path.exists(index_path):
            return FileResponse(index_path)
        return {"error": "index.html not found"}

    # 만료 세션 주기적 정리 (진행 중이던 시험 타이머도 함께 정리)
    def _cleanup_loop():
        while True:
            time.sleep(SESSION_CLEANUP_INTERVAL)
            session.cleanup_expired()

    t = threading.Thread(target=_cleanup_loop, daemon=True)
    t.start()

    return app
