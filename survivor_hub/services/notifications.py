"""
Outbound report notifications.

Report submission emits a ``ReportNotification`` onto a ``NotificationOutbox``.
The outbox hands the message to FastAPI background tasks, which run after the
response has been sent, so delivery can neither delay nor fail a submission.
Delivery either sends the email in-process or enqueues an arq job, depending
on TASK_QUEUE_TYPE.
"""

from datetime import datetime

from fastapi import BackgroundTasks
from pydantic import BaseModel

from survivor_hub.config import settings
from survivor_hub.core.logging import get_logger
from survivor_hub.services.email import send_report_notification_email
from survivor_hub.tasks.queue import enqueue_job

logger = get_logger(__name__)


class ReportNotification(BaseModel):
    """The only fields that may leave the application about a new report."""

    tracking_id: str
    type_of_abuse: str
    submitted_at: datetime


async def deliver_report_notification(notification: ReportNotification) -> bool:
    """
    Deliver one notification. Never raises.

    Returns:
        True if the email was sent or the job was enqueued
    """
    try:
        if settings.TASK_QUEUE_TYPE == "arq":
            job_id = await enqueue_job(
                "send_report_notification_job",
                job_id=f"report-notification:{notification.tracking_id}",
                tracking_id=notification.tracking_id,
                type_of_abuse=notification.type_of_abuse,
                submitted_at=notification.submitted_at.isoformat(),
            )
            if job_id is None:
                logger.warning(
                    "report_notification_enqueue_failed",
                    tracking_id=notification.tracking_id,
                )
                return False
            return True

        sent = await send_report_notification_email(
            tracking_id=notification.tracking_id,
            type_of_abuse=notification.type_of_abuse,
            submitted_at=notification.submitted_at,
        )
        if not sent:
            logger.warning("report_notification_not_sent", tracking_id=notification.tracking_id)
        return sent

    except Exception as e:
        logger.error(
            "report_notification_delivery_error",
            tracking_id=notification.tracking_id,
            error=str(e),
            error_type=type(e).__name__,
        )
        return False


class NotificationOutbox:
    """
    Collects notifications emitted during a request.

    Without background tasks (tests, scripts) messages are only recorded in
    ``emitted``; with them, each message is scheduled for delivery after the
    response.
    """

    def __init__(self, background_tasks: BackgroundTasks | None = None) -> None:
        self._background_tasks = background_tasks
        self.emitted: list[ReportNotification] = []

    def emit(self, notification: ReportNotification) -> None:
        self.emitted.append(notification)
        if self._background_tasks is not None:
            self._background_tasks.add_task(deliver_report_notification, notification)


def get_outbox(background_tasks: BackgroundTasks) -> NotificationOutbox:
    """Dependency providing a request-scoped outbox."""
    return NotificationOutbox(background_tasks)
