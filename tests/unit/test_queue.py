"""Tests for the arq enqueue client."""

from unittest.mock import AsyncMock, Mock, patch

import pytest

from survivor_hub.tasks import queue


@pytest.fixture(autouse=True)
def reset_pool():
    queue._pool = None
    yield
    queue._pool = None


@pytest.mark.unit
class TestEnqueueJob:
    async def test_returns_job_id(self):
        pool = Mock()
        pool.enqueue_job = AsyncMock(return_value=Mock(job_id="report-notification:RPT-AB12CD34"))

        with patch.object(queue, "create_pool", new_callable=AsyncMock, return_value=pool):
            job_id = await queue.enqueue_job(
                "send_report_notification_job",
                job_id="report-notification:RPT-AB12CD34",
                tracking_id="RPT-AB12CD34",
            )

        assert job_id == "report-notification:RPT-AB12CD34"
        pool.enqueue_job.assert_awaited_once_with(
            "send_report_notification_job",
            _job_id="report-notification:RPT-AB12CD34",
            tracking_id="RPT-AB12CD34",
        )

    async def test_duplicate_job_id(self):
        pool = Mock()
        pool.enqueue_job = AsyncMock(return_value=None)

        with patch.object(queue, "create_pool", new_callable=AsyncMock, return_value=pool):
            assert await queue.enqueue_job("send_report_notification_job", job_id="x") is None

    async def test_redis_unavailable(self):
        with patch.object(
            queue, "create_pool", new_callable=AsyncMock, side_effect=OSError("connection refused")
        ):
            assert await queue.enqueue_job("send_report_notification_job") is None

    async def test_pool_is_reused_and_closed(self):
        pool = Mock()
        pool.enqueue_job = AsyncMock(return_value=Mock(job_id="1"))
        pool.close = AsyncMock()

        with patch.object(
            queue, "create_pool", new_callable=AsyncMock, return_value=pool
        ) as create:
            await queue.enqueue_job("purge_expired_evidence_job")
            await queue.enqueue_job("purge_expired_evidence_job")
            await queue.close_queue()

        create.assert_awaited_once()
        pool.close.assert_awaited_once()
        assert queue._pool is None
