import asyncio
from collections import deque

import pytest

from infra.queue.base import RetryPolicy, WorkerLimits
from infra.queue.local import InProcessQueue


def _queue(attempts=3, concurrency=2):
    return InProcessQueue("test", WorkerLimits(concurrency=concurrency, max_per_second=1000),
                          RetryPolicy(attempts=attempts, backoff_seconds=0))


def test_retry_delays_double():
    assert RetryPolicy(attempts=3, backoff_seconds=2.0).delays() == [2.0, 4.0]
    assert RetryPolicy(attempts=1).delays() == []


@pytest.mark.asyncio
async def test_job_retried_until_success():
    calls = []

    async def handler(job_id, payload):
        calls.append(job_id)
        if len(calls) < 3:
            raise RuntimeError("transient")

    queue = _queue()
    queue.on_job(handler)
    await queue.enqueue("job-1", {})
    await queue.join()
    assert calls == ["job-1"] * 3
    assert "job-1" in queue.completed
    assert queue.dead_letters == {}


@pytest.mark.asyncio
async def test_exhausted_job_goes_to_dead_letters():
    async def handler(job_id, payload):
        raise RuntimeError("always broken")

    queue = _queue(attempts=2)
    queue.on_job(handler)
    await queue.enqueue("job-1", {})
    await queue.join()
    assert queue.dead_letters == {"job-1": "always broken"}


@pytest.mark.asyncio
async def test_duplicate_job_ids_are_ignored():
    seen = []

    async def handler(job_id, payload):
        seen.append(payload["n"])

    queue = _queue()
    queue.on_job(handler)
    assert await queue.enqueue("same", {"n": 1}) is True
    assert await queue.enqueue("same", {"n": 2}) is False
    await queue.join()
    assert seen == [1]


@pytest.mark.asyncio
async def test_concurrency_is_bounded():
    running = 0
    peak = 0

    async def handler(job_id, payload):
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.01)
        running -= 1

    queue = _queue(concurrency=2)
    queue.on_job(handler)
    for i in range(6):
        await queue.enqueue(f"job-{i}", {})
    await queue.join()
    assert peak == 2
    assert len(queue.completed) == 6


@pytest.mark.asyncio
async def test_enqueue_without_handler_fails():
    with pytest.raises(RuntimeError):
        await _queue().enqueue("job", {})


@pytest.mark.asyncio
async def test_finished_jobs_are_released():
    seen = []

    async def handler(job_id, payload):
        seen.append(payload["n"])

    queue = _queue(attempts=1, concurrency=1)
    queue.completed = deque(maxlen=2)
    queue.on_job(handler)
    for i in range(3):
        await queue.enqueue(f"job-{i}", {"n": i})
    await queue.join()
    await asyncio.sleep(0)
    assert queue._tasks == {}
    assert list(queue.completed) == ["job-1", "job-2"]

    assert await queue.enqueue("job-0", {"n": 9}) is True
    await queue.join()
    assert seen[-1] == 9
