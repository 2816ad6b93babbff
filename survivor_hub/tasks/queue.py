"""
Enqueue side of the arq worker.

The API process holds one lazily created pool. Enqueue failures are logged
and reported as ``None``; callers decide whether that matters.
"""

from typing import Any

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings

from survivor_hub.config import settings
from survivor_hub.core.logging import get_logger

logger = get_logger(__name__)

_pool: ArqRedis | None = None


async def get_queue() -> ArqRedis:
    """Shared arq pool, created on first use."""
    global _pool
    if _pool is None:
        _pool = await create_pool(RedisSettings.from_dsn(settings.ARQ_REDIS_URL))
        logger.info("arq_pool_created")
    return _pool


async def enqueue_job(function_name: str, job_id: str | None = None, **kwargs: Any) -> str | None:
    """
    Enqueue a worker function by name.

    Args:
        function_name: Name registered in WorkerSettings.functions
        job_id: Stable id; arq refuses a second job with the same id while
            the first is queued or its result is kept
        **kwargs: Job arguments (must be serializable)

    Returns:
        The job id, or None when the job was not enqueued
    """
    try:
        pool = await get_queue()
        job = await pool.enqueue_job(function_name, _job_id=job_id, **kwargs)
    except Exception as e:
        logger.error(
            "job_enqueue_error",
            function=function_name,
            error=str(e),
            error_type=type(e).__name__,
        )
        return None

    if job is None:
        logger.warning("job_already_enqueued", function=function_name, job_id=job_id)
        return None

    logger.debug("job_enqueued", function=function_name, job_id=job.job_id)
    return job.job_id


async def close_queue() -> None:
    """Close the pool on shutdown."""
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
        logger.info("arq_pool_closed")
