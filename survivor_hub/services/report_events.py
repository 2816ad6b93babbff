"""
Report change notifications for live admin views.

Every insert or status change of a report is published as a small JSON event
on the REPORT_EVENTS_CHANNEL Redis channel. Admin dashboards subscribe through
a server-sent event stream and refresh when an event arrives. Events carry
identifiers and status only, never report content.
"""

import json
from collections.abc import AsyncIterator
from typing import Any

import redis.asyncio as redis

from survivor_hub.config import settings
from survivor_hub.core.logging import get_logger
from survivor_hub.core.redis import create_redis_client

logger = get_logger(__name__)

# Seconds between keep-alive comments on an idle stream
KEEPALIVE_INTERVAL = 15.0


async def publish_report_event(event: str, report_id: str, tracking_id: str, status: str) -> bool:
    """
    Publish a report change. Best-effort: failures are logged, never raised.

    Returns:
        True if the event reached Redis
    """
    payload = json.dumps(
        {
            "event": event,
            "report_id": report_id,
            "tracking_id": tracking_id,
            "status": status,
        }
    )
    client = create_redis_client()
    try:
        receivers = await client.publish(settings.REPORT_EVENTS_CHANNEL, payload)
        logger.debug("report_event_published", event=event, receivers=receivers)
        return True
    except Exception as e:
        logger.warning(
            "report_event_publish_failed",
            event=event,
            tracking_id=tracking_id,
            error=str(e),
            error_type=type(e).__name__,
        )
        return False
    finally:
        await client.aclose()


def format_sse(data: dict[str, Any], event: str | None = None) -> str:
    """Encode one server-sent event frame."""
    lines = []
    if event:
        lines.append(f"event: {event}")
    lines.append(f"data: {json.dumps(data)}")
    return "\n".join(lines) + "\n\n"


async def stream_report_events(
    client: redis.Redis | None = None,  # type: ignore[type-arg]
    keepalive_interval: float = KEEPALIVE_INTERVAL,
) -> AsyncIterator[str]:
    """
    Yield SSE frames for every event on the report channel.

    The subscription, and the client when one is created here, are released
    when the consumer stops iterating.
    """
    owned_client = client is None
    redis_client = client or create_redis_client()
    pubsub = redis_client.pubsub()
    try:
        await pubsub.subscribe(settings.REPORT_EVENTS_CHANNEL)
        logger.info("report_events_subscribed", channel=settings.REPORT_EVENTS_CHANNEL)

        # Tells the browser the stream is open before the first event
        yield ": connected\n\n"
        while True:
            message = await pubsub.get_message(
                ignore_subscribe_messages=True, timeout=keepalive_interval
            )
            if message is None:
                yield ": keep-alive\n\n"
                continue
            try:
                data = json.loads(message["data"])
            except (TypeError, ValueError):
                logger.warning("report_event_malformed")
                continue
            yield format_sse(data, event=data.get("event"))
    finally:
        await pubsub.aclose()
        if owned_client:
            await redis_client.aclose()
        logger.info("report_events_unsubscribed")
