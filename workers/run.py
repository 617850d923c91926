#!/usr/bin/env python3
"""
rq worker pool for one evaluator queue.

Usage:
    python -m workers.run evaluation
    python -m workers.run job-vacancy-ingestion --workers 2
    python -m workers.run evaluation --burst
"""

import argparse
import logging
import sys

from redis import Redis
from rq import Worker
from rq.worker_pool import WorkerPool

from app.logging import configure_logging
from app.settings import get_settings
from infra.queue.base import EVALUATION_QUEUE, INGESTION_QUEUE

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = {
    EVALUATION_QUEUE: lambda s: s.EVALUATION_CONCURRENCY,
    INGESTION_QUEUE: lambda s: s.INGESTION_CONCURRENCY,
}


def start_workers(queue: str, num_workers: int, burst: bool = False) -> None:
    settings = get_settings()
    redis_conn = Redis.from_url(settings.REDIS_URL)
    redis_conn.ping()
    logger.info("Connected to Redis at %s; queue=%s workers=%d burst=%s",
                settings.REDIS_URL, queue, num_workers, burst)
    if num_workers <= 1:
        Worker([queue], connection=redis_conn).work(burst=burst)
        return
    WorkerPool([queue], connection=redis_conn, num_workers=num_workers).start(burst=burst)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Evaluator queue worker")
    parser.add_argument("queue", choices=sorted(DEFAULT_WORKERS))
    parser.add_argument("--workers", type=int, default=None, help="worker processes (defaults to the queue's concurrency)")
    parser.add_argument("--burst", action="store_true", help="process all jobs and exit")
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    num_workers = args.workers or DEFAULT_WORKERS[args.queue](settings)
    try:
        start_workers(args.queue, num_workers, burst=args.burst)
    except KeyboardInterrupt:
        logger.info("Worker stopped")
    except Exception:
        logger.exception("Worker crashed")
        sys.exit(1)


if __name__ == "__main__":
    main()
