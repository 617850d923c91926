"""Functions executed inside rq worker processes."""

import asyncio
import logging
from functools import lru_cache
from typing import Any, Dict

from app.container import Container, build_container
from app.settings import get_settings

logger = logging.getLogger(__name__)


@lru_cache
def get_worker_container() -> Container:
    return build_container(get_settings())


def run_job(queue_name: str, job_id: str, payload: Dict[str, Any]) -> None:
    container = get_worker_container()
    queue = container.queues[queue_name]
    if queue.handler is None:
        raise RuntimeError(f"No handler registered for queue {queue_name}")
    rate_limiter = getattr(queue, "rate_limiter", None)
    if rate_limiter is not None:
        rate_limiter.acquire()
    logger.info("[%s] running job %s", queue_name, job_id)
    asyncio.run(queue.handler(job_id, payload))
