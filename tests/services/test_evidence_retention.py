"""Tests for purging evidence past its retention window."""

from contextlib import asynccontextmanager
from datetime import timedelta
from unittest.mock import patch

import pytest
from sqlalchemy import func, select

from survivor_hub.config import settings
from survivor_hub.core.actors import Anonymous
from survivor_hub.models.evidence_file import EvidenceFiles
from survivor_hub.models.report import Reports, utcnow
from survivor_hub.services import evidence as evidence_service
from survivor_hub.services.evidence import EvidenceUpload, purge_expired_evidence
from survivor_hub.services.reports import submit_report
from survivor_hub.tasks.evidence_jobs import purge_expired_evidence_job


async def _report_with_evidence(db_session, count: int = 1):
    uploads = [
        EvidenceUpload(filename=f"shot{i}.png", content=b"png", content_type="image/png")
        for i in range(count)
    ]
    return await submit_report(
        db_session, Anonymous(), "Cyberstalking", "Someone follows my accounts.", evidence=uploads
    )


async def _evidence_rows(db_session) -> list[EvidenceFiles]:
    return list((await db_session.execute(select(EvidenceFiles))).scalars().all())


def _after_retention():
    return utcnow() + timedelta(hours=settings.EVIDENCE_RETENTION_HOURS, minutes=1)


@pytest.mark.unit
class TestPurgeExpiredEvidence:
    async def test_recent_evidence_is_kept(self, db_session, evidence_root):
        await _report_with_evidence(db_session)

        results = await purge_expired_evidence(db_session)

        assert results == {"purged": 0, "missing": 0, "errors": 0}
        assert len(await _evidence_rows(db_session)) == 1

    async def test_expired_evidence_is_removed(self, db_session, evidence_root):
        result = await _report_with_evidence(db_session, count=2)

        results = await purge_expired_evidence(db_session, now=_after_retention())

        assert results == {"purged": 2, "missing": 0, "errors": 0}
        assert await _evidence_rows(db_session) == []
        assert [p for p in evidence_root.rglob("*") if p.is_file()] == []
        # The report itself is not part of retention
        assert await db_session.get(Reports, result.report_id) is not None

    async def test_missing_object_still_drops_row(self, db_session, evidence_root):
        await _report_with_evidence(db_session)
        row = (await _evidence_rows(db_session))[0]
        (evidence_root / row.file_url).unlink()

        results = await purge_expired_evidence(db_session, now=_after_retention())

        assert results == {"purged": 1, "missing": 1, "errors": 0}
        assert await _evidence_rows(db_session) == []

    async def test_failed_delete_keeps_row_for_next_run(self, db_session, evidence_root):
        await _report_with_evidence(db_session, count=2)
        rows = await _evidence_rows(db_session)
        stuck = rows[0].file_url
        real_delete = evidence_service.delete_evidence

        def flaky_delete(storage_path):
            if storage_path == stuck:
                raise PermissionError("read-only volume")
            return real_delete(storage_path)

        with patch.object(evidence_service, "delete_evidence", side_effect=flaky_delete):
            results = await purge_expired_evidence(db_session, now=_after_retention())

        assert results == {"purged": 1, "missing": 0, "errors": 1}
        remaining = await _evidence_rows(db_session)
        assert [r.file_url for r in remaining] == [stuck]


@pytest.mark.unit
async def test_purge_job_uses_own_session(db_session):
    @asynccontextmanager
    async def session_factory():
        yield db_session

    await _report_with_evidence(db_session)

    with patch(
        "survivor_hub.tasks.evidence_jobs.get_async_session", side_effect=session_factory
    ):
        results = await purge_expired_evidence_job({"job_try": 1})

    # Nothing expired yet
    assert results["purged"] == 0
    count = await db_session.execute(select(func.count()).select_from(EvidenceFiles))
    assert count.scalar() == 1
