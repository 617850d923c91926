import logging
import time
from typing import Any, Dict, Optional

from redis import Redis
from rq import Queue, Retry
from rq.exceptions import NoSuchJobError
from rq.job import Job

from infra.queue.base import JobQueue, RetryPolicy, WorkerLimits

logger = logging.getLogger(__name__)

RESULT_TTL = 24 * 3600
FAILURE_TTL = 7 * 24 * 3600
JOB_TIMEOUT = "10m"


class RedisRateLimiter:
    """Fixed one-second window shared by every worker of a queue."""

    RATE_LIMIT_PREFIX = "evaluator:rate_limit:"

    def __init__(self, redis: Redis, queue_name: str, max_per_second: float):
        self.redis = redis
        self.queue_name = queue_name
        self.max_per_second = max(int(max_per_second), 1)

    def acquire(self) -> None:
        while True:
            window = int(time.time())
            key = f"{self.RATE_LIMIT_PREFIX}{self.queue_name}:{window}"
            count = self.redis.incr(key)
            if count == 1:
                self.redis.expire(key, 2)
            if count <= self.max_per_second:
                return
            time.sleep(max(window + 1 - time.time(), 0.01))


class RedisJobQueue(JobQueue):
    """rq-backed queue; jobs run in `python -m workers.run <queue>` processes."""

    def __init__(self, name: str, limits: WorkerLimits, retry: RetryPolicy, redis: Redis):
        super().__init__(name, limits, retry)
        self.redis = redis
        self.queue = Queue(name, connection=redis)
        self.rate_limiter = RedisRateLimiter(redis, name, limits.max_per_second)

    def _known(self, job_id: str) -> bool:
        try:
            Job.fetch(job_id, connection=self.redis)
        except NoSuchJobError:
            return False
        return True

    async def enqueue(self, job_id: str, payload: Dict[str, Any]) -> bool:
        if self._known(job_id):
            logger.info("[%s] job %s already in Redis; ignoring", self.name, job_id)
            return False
        retry: Optional[Retry] = None
        if self.retry.attempts > 1:
            retry = Retry(max=self.retry.attempts - 1, interval=[int(d) for d in self.retry.delays()])
        job = self.queue.enqueue(
            "workers.tasks.run_job",
            self.name,
            job_id,
            payload,
            job_id=job_id,
            job_timeout=JOB_TIMEOUT,
            result_ttl=RESULT_TTL,
            failure_ttl=FAILURE_TTL,
            retry=retry,
        )
        logger.info("[%s] queued job %s", self.name, job.id)
        return True
