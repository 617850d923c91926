from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

JobHandler = Callable[[str, Dict[str, Any]], Awaitable[None]]

INGESTION_QUEUE = "job-vacancy-ingestion"
EVALUATION_QUEUE = "evaluation"


@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = 3
    backoff_seconds: float = 2.0

    def delays(self) -> List[float]:
        """Delay before each retry: backoff, 2*backoff, 4*backoff, ..."""
        return [self.backoff_seconds * (2 ** i) for i in range(max(self.attempts - 1, 0))]


@dataclass(frozen=True)
class WorkerLimits:
    concurrency: int
    max_per_second: float


INGESTION_LIMITS = WorkerLimits(concurrency=3, max_per_second=5)
EVALUATION_LIMITS = WorkerLimits(concurrency=5, max_per_second=10)


class JobQueue(ABC):
    """Named work queue: at-least-once delivery with retry and de-duplication by job id."""

    def __init__(self, name: str, limits: WorkerLimits, retry: RetryPolicy):
        self.name = name
        self.limits = limits
        self.retry = retry
        self.handler: Optional[JobHandler] = None

    def on_job(self, handler: JobHandler) -> None:
        self.handler = handler

    @abstractmethod
    async def enqueue(self, job_id: str, payload: Dict[str, Any]) -> bool:
        """Schedule a job; returns False when `job_id` is already known."""
