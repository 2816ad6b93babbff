"""Email sending service with SMTP."""

import asyncio
import html as html_escape
from datetime import datetime
from email.message import EmailMessage

import aiosmtplib
from aiosmtplib.errors import (
    SMTPAuthenticationError,
    SMTPConnectError,
    SMTPConnectTimeoutError,
    SMTPException,
    SMTPReadTimeoutError,
)

from survivor_hub.config import settings
from survivor_hub.core.logging import get_logger

logger = get_logger(__name__)


async def send_email(
    to: str | list[str],
    subject: str,
    body: str,
    html: str | None = None,
) -> bool:
    """
    Send email via SMTP with retry logic.

    Args:
        to: Recipient email address(es)
        subject: Email subject
        body: Plain text email body
        html: Optional HTML email body

    Returns:
        True if email sent successfully, False otherwise

    Note:
        This function logs errors but does NOT raise exceptions.
        Callers should check return value if they need to know success/failure.
    """
    if not settings.SMTP_HOST:
        logger.error("email_smtp_not_configured", to=to, subject=subject)
        return False

    message = EmailMessage()
    message["From"] = f"{settings.SMTP_FROM_NAME} <{settings.SMTP_FROM_EMAIL}>"
    message["To"] = to if isinstance(to, str) else ", ".join(to)
    message["Subject"] = subject
    message.set_content(body)

    if html:
        message.add_alternative(html, subtype="html")

    # Only retry connection failures where we know the email wasn't queued
    max_retries = 3
    for attempt in range(max_retries):
        try:
            await aiosmtplib.send(
                message,
                hostname=settings.SMTP_HOST,
                port=settings.SMTP_PORT,
                username=settings.SMTP_USER or None,
                password=settings.SMTP_PASSWORD or None,
                use_tls=settings.SMTP_TLS,
                start_tls=settings.SMTP_STARTTLS,
                timeout=30,
            )
            logger.info(
                "email_sent_success",
                to=to,
                subject=subject,
                attempt=attempt + 1,
            )
            return True

        except SMTPReadTimeoutError as e:
            # Never retry: the server may already have queued the message
            logger.error(
                "email_send_timeout_after_data",
                to=to,
                subject=subject,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        except SMTPAuthenticationError as e:
            logger.error(
                "email_auth_failed",
                to=to,
                subject=subject,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        except (SMTPConnectError, SMTPConnectTimeoutError) as e:
            # Connection never established, no data sent
            logger.warning(
                "email_connection_failed",
                to=to,
                subject=subject,
                attempt=attempt + 1,
                error=str(e),
                error_type=type(e).__name__,
            )
            if attempt < max_retries - 1:
                # Exponential backoff: 1s, 2s, 4s
                await asyncio.sleep(2**attempt)
            else:
                logger.error(
                    "email_connection_failed_all_retries",
                    to=to,
                    subject=subject,
                    error=str(e),
                )
                return False

        except SMTPException as e:
            logger.error(
                "email_smtp_error",
                to=to,
                subject=subject,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        except Exception as e:
            logger.error(
                "email_send_unexpected_error",
                to=to,
                subject=subject,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

    return False


async def send_report_notification_email(
    tracking_id: str,
    type_of_abuse: str,
    submitted_at: datetime,
) -> bool:
    """
    Notify the administrator that a new report was submitted.

    Only the tracking ID, abuse type and submission time are included. The
    description and evidence stay inside the application.

    Returns:
        True if email sent successfully, False otherwise
    """
    recipient = settings.ADMIN_NOTIFICATION_EMAIL
    if not recipient:
        logger.error("report_notification_recipient_not_configured", tracking_id=tracking_id)
        return False

    safe_tracking_id = html_escape.escape(tracking_id)
    safe_type = html_escape.escape(type_of_abuse)
    submitted = submitted_at.strftime("%Y-%m-%d %H:%M UTC")
    dashboard_url = settings.ADMIN_DASHBOARD_URL

    subject = f"New Report Submitted - {tracking_id}"

    body = f"""New Report Submitted

Tracking ID: {tracking_id}
Type of Abuse: {type_of_abuse}
Submitted: {submitted}

Note: This email does not contain sensitive report details for security and privacy reasons.

View in Admin Dashboard to see full details:
{dashboard_url}
"""

    html = f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <style>
        body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
        .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
        .note {{
            background: #fff3cd;
            border: 1px solid #ffc107;
            padding: 15px;
            border-radius: 8px;
            color: #856404;
        }}
        .button {{
            display: inline-block;
            padding: 12px 24px;
            background-color: #667eea;
            color: white;
            text-decoration: none;
            border-radius: 4px;
            margin: 20px 0;
        }}
    </style>
</head>
<body>
    <div class="container">
        <h2>New Report Submitted</h2>
        <table>
            <tr><td><strong>Tracking ID:</strong></td><td><code>{safe_tracking_id}</code></td></tr>
            <tr><td><strong>Type of Abuse:</strong></td><td>{safe_type}</td></tr>
            <tr><td><strong>Submitted:</strong></td><td>{submitted}</td></tr>
        </table>
        <p class="note"><strong>Note:</strong> This email does not contain sensitive report
        details for security and privacy reasons.</p>
        <p><a href="{dashboard_url}" class="button">View in Admin Dashboard</a></p>
        <p><small>This is an automated notification from Survivor Hub.</small></p>
    </div>
</body>
</html>
"""

    return await send_email(to=recipient, subject=subject, body=body, html=html)
