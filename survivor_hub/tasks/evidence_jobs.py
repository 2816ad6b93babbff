"""Evidence retention jobs for arq worker."""

from typing import Any

from survivor_hub.core.database import get_async_session
from survivor_hub.core.logging import bind_context, get_logger
from survivor_hub.services.evidence import purge_expired_evidence

logger = get_logger(__name__)


async def purge_expired_evidence_job(ctx: dict[str, Any]) -> dict[str, int]:
    """
    Periodic task removing evidence past its retention window.

    Returns:
        Counts from ``purge_expired_evidence``
    """
    bind_context(task="purge_expired_evidence")

    async with get_async_session() as db:
        results = await purge_expired_evidence(db)

    if results["errors"]:
        logger.warning("evidence_purge_partial", **results)
    return results
