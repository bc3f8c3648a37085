"""
services/ticker.py

시험 타이머용 주기 이벤트. 컨트롤러가 소유하고, 제출/시간 종료/이탈 시 직접 취소한다.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Protocol

from config import TICK_INTERVAL_SECONDS

logger = logging.getLogger(__name__)

TickCallback = Callable[[], Awaitable[None]]


class Ticker(Protocol):
    @property
    def running(self) -> bool: ...

    def start(self, callback: TickCallback) -> None: ...

    def cancel(self) -> None: ...


class AsyncioTicker:
    """
    실행 중인 asyncio 이벤트 루프 위에서 interval 초마다 callback을 await 한다.

    cancel()은 callback 내부에서 호출되어도 안전하다: 진행 중인 callback은 끝까지
    실행되고 그 다음 주기부터 멈춘다. cancel() 후 start()를 다시 부르면 새 주기가 시작된다.
    """

    def __init__(self, interval: float = TICK_INTERVAL_SECONDS):
        self.interval = interval
        self._task: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._generation = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, callback: TickCallback) -> None:
        if self.running:
            return
        self._generation += 1
        self._loop = asyncio.get_running_loop()
        self._task = self._loop.create_task(self._run(callback, self._generation))

    def cancel(self) -> None:
        self._generation += 1
        task, self._task = self._task, None
        if task is None or task.done():
            return
        try:
            running_loop = asyncio.get_running_loop()
        except RuntimeError:
            running_loop = None

        if running_loop is not self._loop:
            # 다른 스레드에서 호출됨 (만료 세션 정리 등)
            if not self._loop.is_closed():
                self._loop.call_soon_threadsafe(task.cancel)
        elif task is not asyncio.current_task():
            task.cancel()

    async def _run(self, callback: TickCallback, generation: int) -> None:
        while generation == self._generation:
            await asyncio.sleep(self.interval)
            if generation != self._generation:
                return
            try:
                await callback()
            except Exception:
                logger.exception("타이머 콜백 처리 중 오류")
