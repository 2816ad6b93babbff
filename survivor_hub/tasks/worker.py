"""
ARQ worker configuration and job definitions.

Run worker with: uv run arq survivor_hub.tasks.worker.WorkerSettings
"""

from typing import Any

from arq import cron
from arq.connections import RedisSettings
from arq.worker import func

from survivor_hub.config import settings
from survivor_hub.tasks.evidence_jobs import purge_expired_evidence_job
from survivor_hub.tasks.notification_jobs import send_report_notification_job


async def startup(ctx: dict[str, Any]) -> None:
    """Worker startup - initialize any shared resources."""
    from survivor_hub.core.logging import configure_logging, get_logger

    configure_logging()
    logger = get_logger(__name__)
    logger.info("arq_worker_starting", redis_url=settings.ARQ_REDIS_URL)


async def shutdown(ctx: dict[str, Any]) -> None:
    """Worker shutdown - cleanup resources."""
    from survivor_hub.core.logging import get_logger

    logger = get_logger(__name__)
    logger.info("arq_worker_shutdown")


class WorkerSettings:
    """ARQ worker configuration."""

    redis_settings = RedisSettings.from_dsn(settings.ARQ_REDIS_URL)

    # Worker behavior
    max_jobs = 10
    job_timeout = 300  # 5 minutes max per job
    keep_result = settings.ARQ_KEEP_RESULT

    # Lifecycle hooks
    on_startup = startup
    on_shutdown = shutdown

    functions = [
        func(send_report_notification_job, max_tries=settings.ARQ_MAX_TRIES),
    ]

    # Hourly, at minute 15
    cron_jobs = [
        cron(purge_expired_evidence_job, minute=15, run_at_startup=False),
    ]
