"""
arq Worker Configuration.

Defines the background worker for attachment jobs. Jobs are enqueued from
API requests (see folio/services/task_queue.py).

Run the worker with:
    arq folio.worker.WorkerSettings
"""

import logging
from typing import Any
from uuid import UUID

from arq.connections import RedisSettings

from folio.config import get_settings

logger = logging.getLogger(__name__)


async def upload_attachment_from_url_task(
    _ctx: dict[str, Any],
    attachment_id: str,
    url: str,
) -> dict[str, Any]:
    """
    Download a remote file into an existing zero-byte attachment.

    Never raises: the request waiting on this job only looks for an
    ``error`` key in the result.

    Args:
        _ctx: arq context (contains redis connection, job info, etc.)
        attachment_id: Attachment UUID as string
        url: Remote URL to fetch

    Returns:
        Result dict with either the stored file details or an ``error``
    """
    from folio.services.remote_fetch import upload_attachment_from_url

    logger.info(
        f"Processing URL import for attachment {attachment_id}",
        extra={"attachment_id": attachment_id, "url": url},
    )

    try:
        result = await upload_attachment_from_url(UUID(attachment_id), url)
    except Exception as e:
        logger.error(f"URL import for attachment {attachment_id} crashed: {e}", exc_info=True)
        return {"error": "Unexpected error while importing the file"}

    if "error" in result:
        logger.info(
            f"URL import for attachment {attachment_id} failed: {result['error']}",
            extra={"attachment_id": attachment_id, "error": result["error"]},
        )
    else:
        logger.info(
            f"Completed URL import for attachment {attachment_id}",
            extra={"attachment_id": attachment_id, "size": result.get("size")},
        )
    return result


async def startup(ctx: dict[str, Any]) -> None:
    """Worker startup hook."""
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    logger.info("Folio worker starting up")


async def shutdown(ctx: dict[str, Any]) -> None:
    """Worker shutdown hook."""
    from folio.core.database import close_db

    await close_db()
    logger.info("Folio worker shutting down")


class WorkerSettings:
    """
    arq worker settings.

    Configures the worker's connection to Redis, task functions,
    concurrency limits and timeouts.
    """

    functions = [upload_attachment_from_url_task]

    on_startup = startup
    on_shutdown = shutdown

    # Redis connection settings (loaded from environment)
    redis_settings = RedisSettings.from_dsn(get_settings().redis_url)

    # Concurrency: max jobs processed simultaneously per worker
    max_jobs = 10

    # Bounds how long an import request can be held open
    job_timeout = get_settings().worker_job_timeout

    # Imports are not retried; the caller re-submits on failure
    retry_jobs = False
    max_tries = 1
