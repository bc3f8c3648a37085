import os

# 기본 디렉토리 설정
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# 경로 설정
STATIC_DIR = os.path.join(BASE_DIR, "static")
LOG_FILE = os.getenv("LOG_FILE", os.path.join(BASE_DIR, "launch.log"))

# 서버 설정
DEFAULT_HOST = os.getenv("HOST", "127.0.0.1")
DEFAULT_PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# 세션 설정
SESSION_TTL = int(os.getenv("SESSION_TTL", "14400"))   # 4시간
SESSION_CLEANUP_INTERVAL = 300                          # 만료 세션 정리 주기 (초)

# 시험 설정
TICK_INTERVAL_SECONDS = float(os.getenv("TICK_INTERVAL_SECONDS", "1.0"))
TIME_WARNING_SECONDS = 600      # 남은 시간 10분 미만이면 경고 표시
DEFAULT_DURATION_MINUTES = 180  # 업로드 시 제한 시간 기본값

# 업로드 설정
MAX_UPLOAD_SIZE = 5 * 1024 * 1024  # 5 MB
