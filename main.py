"""
main.py — 모의고사 CBT 서버 진입점
"""

import logging
import sys

from config import DEFAULT_HOST, DEFAULT_PORT, LOG_FILE, LOG_LEVEL

# ── 로깅 설정 ────────────────────────────────────────────────────────────────
_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

try:
    logging.basicConfig(
        level=LOG_LEVEL,
        format=_LOG_FORMAT,
        handlers=[
            logging.FileHandler(LOG_FILE, encoding="utf-8"),
            logging.StreamHandler(sys.stdout),
        ],
    )
except PermissionError:
    # 로그 파일 점유 시 콘솔 출력만 사용
    logging.basicConfig(level=LOG_LEVEL, format=_LOG_FORMAT)

logger = logging.getLogger(__name__)


def run(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> None:
    import uvicorn
    from api.app import create_app

    logger.info(f"Uvicorn 서버 시작 - http://{host}:{port}")
    uvicorn.run(create_app(), host=host, port=port, log_level="warning")


if __name__ == "__main__":
    logger.info("=== Mock Test CBT Started ===")
    try:
        run()
    except KeyboardInterrupt:
        logger.info("사용자에 의해 종료되었습니다.")
