"""
Task Queue Service.

Enqueues jobs for the arq worker (folio/worker.py). Some callers need the
job's outcome before they can respond, so ``enqueue_and_wait`` bridges the
request to the asynchronous job and returns its result.
"""

import logging
from typing import Any

from arq import ArqRedis, create_pool
from arq.connections import RedisSettings

from folio.config import get_settings

logger = logging.getLogger(__name__)


class JobEnqueueError(RuntimeError):
    """The job could not be placed on the queue."""


async def get_arq_pool() -> ArqRedis:
    """Open a connection pool to the worker's Redis."""
    settings = get_settings()
    return await create_pool(RedisSettings.from_dsn(settings.redis_url))


async def enqueue_and_wait(function: str, *args: Any) -> Any:
    """
    Enqueue a job and wait for it to finish.

    No timeout is layered on top of the worker's own ``job_timeout``; if the
    worker aborts the job, arq re-raises that failure here.

    Args:
        function: Name of the worker function
        *args: Positional arguments for the job

    Returns:
        The value returned by the job
    """
    redis = await get_arq_pool()
    try:
        job = await redis.enqueue_job(function, *args)
        if job is None:
            raise JobEnqueueError(f"Failed to enqueue {function}")

        logger.debug(
            f"Enqueued {function} job {job.job_id}, waiting for result",
            extra={"job_id": job.job_id, "function": function},
        )
        return await job.result(timeout=None)
    finally:
        await redis.aclose()
