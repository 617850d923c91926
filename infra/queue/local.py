import asyncio
import logging
from collections import deque
from typing import Any, Deque, Dict, Optional

from infra.queue.base import JobQueue, RetryPolicy, WorkerLimits

logger = logging.getLogger(__name__)

COMPLETED_HISTORY = 1000


class StartRateLimiter:
    """Spaces job starts at least 1/max_per_second apart."""

    def __init__(self, max_per_second: float):
        self.interval = 1.0 / max_per_second if max_per_second > 0 else 0.0
        self._lock = asyncio.Lock()
        self._next_start = 0.0

    async def acquire(self) -> None:
        if not self.interval:
            return
        async with self._lock:
            loop = asyncio.get_running_loop()
            now = loop.time()
            wait = self._next_start - now
            if wait > 0:
                await asyncio.sleep(wait)
                now = loop.time()
            self._next_start = now + self.interval


class InProcessQueue(JobQueue):
    """asyncio-backed queue used in local mode and tests."""

    def __init__(self, name: str, limits: WorkerLimits, retry: RetryPolicy):
        super().__init__(name, limits, retry)
        self._semaphore: Optional[asyncio.Semaphore] = None
        self._limiter: Optional[StartRateLimiter] = None
        self._tasks: Dict[str, asyncio.Task] = {}
        # recent successes only
        self.completed: Deque[str] = deque(maxlen=COMPLETED_HISTORY)
        self.dead_letters: Dict[str, str] = {}

    def _ensure_primitives(self) -> None:
        # created lazily so they bind to the loop that runs the jobs
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.limits.concurrency)
            self._limiter = StartRateLimiter(self.limits.max_per_second)

    async def enqueue(self, job_id: str, payload: Dict[str, Any]) -> bool:
        if self.handler is None:
            raise RuntimeError(f"No handler registered for queue {self.name}")
        if job_id in self._tasks:
            logger.info("[%s] job %s is already in flight; ignoring", self.name, job_id)
            return False
        self._ensure_primitives()
        task = asyncio.create_task(self._run(job_id, dict(payload)))
        self._tasks[job_id] = task
        task.add_done_callback(lambda t: self._forget(job_id, t))
        logger.info("[%s] enqueued job %s", self.name, job_id)
        return True

    def _forget(self, job_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(job_id) is task:
            del self._tasks[job_id]

    async def _run(self, job_id: str, payload: Dict[str, Any]) -> None:
        delays = self.retry.delays()
        for attempt in range(1, self.retry.attempts + 1):
            async with self._semaphore:
                await self._limiter.acquire()
                try:
                    await self.handler(job_id, payload)
                except Exception as exc:
                    logger.warning("[%s] job %s attempt %d/%d failed: %s",
                                   self.name, job_id, attempt, self.retry.attempts, exc)
                    if attempt == self.retry.attempts:
                        self.dead_letters[job_id] = str(exc)
                        logger.error("[%s] job %s exhausted its retries", self.name, job_id)
                        return
                else:
                    self.completed.append(job_id)
                    return
            await asyncio.sleep(delays[attempt - 1])

    async def join(self) -> None:
        """Wait until every job enqueued so far (and any they enqueue) has finished."""
        while True:
            pending = [t for t in list(self._tasks.values()) if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending)
