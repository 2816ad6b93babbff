"""Report notification background jobs for arq worker."""

from datetime import datetime
from typing import Any

from arq import Retry

from survivor_hub.core.logging import bind_context, get_logger
from survivor_hub.services.email import send_report_notification_email

logger = get_logger(__name__)


async def send_report_notification_job(
    ctx: dict[str, Any],
    tracking_id: str,
    type_of_abuse: str,
    submitted_at: str,
) -> None:
    """
    Background task to notify the administrator of a new report.

    Args:
        ctx: ARQ context dict
        tracking_id: Public tracking ID of the report
        type_of_abuse: Category chosen by the submitter
        submitted_at: ISO 8601 submission timestamp

    Raises:
        Retry: If the email could not be sent (will retry up to max_tries)
    """
    bind_context(task="send_report_notification", tracking_id=tracking_id)

    try:
        success = await send_report_notification_email(
            tracking_id=tracking_id,
            type_of_abuse=type_of_abuse,
            submitted_at=datetime.fromisoformat(submitted_at),
        )

        if success:
            logger.info("report_notification_sent", tracking_id=tracking_id)
        else:
            logger.error("report_notification_failed", tracking_id=tracking_id)
            raise Retry(defer=ctx["job_try"] * 5)

    except Exception as e:
        if isinstance(e, Retry):
            raise
        logger.error(
            "report_notification_task_error",
            tracking_id=tracking_id,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise Retry(defer=ctx["job_try"] * 5) from e
