"""
API tests for public report endpoints.

Tests cover:
- Anonymous submission (POST /reports), with and without evidence
- Partial evidence failure (207)
- Tracking lookups (GET /reports/track/{tracking_id})
"""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from survivor_hub.core.actors import Admin
from survivor_hub.models.evidence_file import EvidenceFiles
from survivor_hub.models.report import Reports
from survivor_hub.services.reports import update_report_status

DESCRIPTION = "Someone is sharing my private photos in a group chat."


@pytest.fixture
def deliver():
    """Capture notification delivery scheduled after the response."""
    with patch(
        "survivor_hub.services.notifications.deliver_report_notification",
        new_callable=AsyncMock,
        return_value=True,
    ) as mock_deliver:
        yield mock_deliver


async def submit(client: AsyncClient, **overrides) -> dict:
    data = {"type_of_abuse": "Non-consensual Image Sharing", "description": DESCRIPTION}
    data.update(overrides)
    response = await client.post("/api/v1/reports", data=data)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.api
class TestSubmitReport:
    async def test_anonymous_submit(self, client: AsyncClient, db_session: AsyncSession, deliver):
        response = await client.post(
            "/api/v1/reports",
            data={"type_of_abuse": "Doxxing", "description": DESCRIPTION},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["tracking_id"].startswith("RPT-")
        assert len(body["tracking_id"]) == 12
        assert body["status"] == "submitted"
        assert body["evidence_count"] == 0
        assert body["evidence_complete"] is True

        result = await db_session.execute(
            select(Reports).where(Reports.tracking_id == body["tracking_id"])
        )
        assert result.scalar_one().description == DESCRIPTION

        deliver.assert_awaited_once()
        notification = deliver.call_args.args[0]
        assert notification.tracking_id == body["tracking_id"]
        assert notification.type_of_abuse == "Doxxing"

    async def test_submit_with_evidence(
        self, client: AsyncClient, db_session: AsyncSession, evidence_root, deliver
    ):
        response = await client.post(
            "/api/v1/reports",
            data={"type_of_abuse": "Threats", "description": DESCRIPTION},
            files=[
                ("files", ("threat.png", b"\x89PNG image", "image/png")),
                ("files", ("messages.pdf", b"%PDF-1.7", "application/pdf")),
            ],
        )

        assert response.status_code == 201
        assert response.json()["evidence_count"] == 2

        rows = (await db_session.execute(select(EvidenceFiles))).scalars().all()
        assert sorted(r.file_name for r in rows) == ["messages.pdf", "threat.png"]
        assert all((evidence_root / r.file_url).exists() for r in rows)

    async def test_partial_evidence_failure(
        self, client: AsyncClient, db_session: AsyncSession, deliver
    ):
        with patch(
            "survivor_hub.services.reports.store_evidence", side_effect=OSError("disk full")
        ):
            response = await client.post(
                "/api/v1/reports",
                data={"type_of_abuse": "Threats", "description": DESCRIPTION},
                files=[("files", ("threat.png", b"\x89PNG image", "image/png"))],
            )

        assert response.status_code == 207
        body = response.json()
        assert body["tracking_id"].startswith("RPT-")
        assert body["evidence_complete"] is False
        assert body["failed_files"] == ["threat.png"]

        # The report exists and the administrator is still notified
        track = await client.get(f"/api/v1/reports/track/{body['tracking_id']}")
        assert track.status_code == 200
        deliver.assert_awaited_once()

    @pytest.mark.parametrize(
        "data",
        [
            {"type_of_abuse": "Doxxing"},
            {"description": DESCRIPTION},
            {"type_of_abuse": "Doxxing", "description": "   "},
        ],
    )
    async def test_missing_fields(self, client: AsyncClient, data, deliver):
        response = await client.post("/api/v1/reports", data=data)

        assert response.status_code == 422
        assert response.json()["detail"] == "Please fill in all required fields."
        deliver.assert_not_awaited()

    async def test_invalid_abuse_type(self, client: AsyncClient, deliver):
        response = await client.post(
            "/api/v1/reports", data={"type_of_abuse": "Spam", "description": DESCRIPTION}
        )

        assert response.status_code == 422

    async def test_rejects_unsupported_file(self, client: AsyncClient, deliver):
        response = await client.post(
            "/api/v1/reports",
            data={"type_of_abuse": "Threats", "description": DESCRIPTION},
            files=[("files", ("run.exe", b"MZ", "application/x-msdownload"))],
        )

        assert response.status_code == 422

    async def test_signed_in_user_can_link(self, client: AsyncClient, user_headers, deliver):
        response = await client.post(
            "/api/v1/reports",
            data={
                "type_of_abuse": "Threats",
                "description": DESCRIPTION,
                "link_to_account": "true",
            },
            headers=user_headers,
        )
        assert response.status_code == 201

        mine = await client.get("/api/v1/users/me/reports", headers=user_headers)
        assert [r["tracking_id"] for r in mine.json()] == [response.json()["tracking_id"]]

    async def test_stale_token_still_submits_anonymously(self, client: AsyncClient, deliver):
        response = await client.post(
            "/api/v1/reports",
            data={"type_of_abuse": "Threats", "description": DESCRIPTION},
            headers={"Authorization": "Bearer expired.or.garbage"},
        )

        assert response.status_code == 201


@pytest.mark.api
class TestTrackReport:
    async def test_track(self, client: AsyncClient, deliver):
        submitted = await submit(client)

        response = await client.get(f"/api/v1/reports/track/{submitted['tracking_id']}")

        assert response.status_code == 200
        body = response.json()
        assert body["tracking_id"] == submitted["tracking_id"]
        assert body["status"] == "submitted"
        assert body["type_of_abuse"] == "Non-consensual Image Sharing"
        assert body["created_at"].endswith("Z")
        assert body["history"] == []
        for hidden in ("description", "admin_notes", "evidence", "id", "user_id"):
            assert hidden not in body

    async def test_track_is_case_insensitive(self, client: AsyncClient, deliver):
        submitted = await submit(client)

        response = await client.get(
            f"/api/v1/reports/track/{submitted['tracking_id'].lower()}%20"
        )

        assert response.status_code == 200
        assert response.json()["tracking_id"] == submitted["tracking_id"]

    async def test_track_shows_history(
        self, client: AsyncClient, db_session: AsyncSession, admin_user, deliver
    ):
        submitted = await submit(client)
        result = await db_session.execute(
            select(Reports).where(Reports.tracking_id == submitted["tracking_id"])
        )
        report = result.scalar_one()
        admin = Admin(user_id=admin_user.user_id, email=admin_user.email)
        await update_report_status(db_session, admin, report.id, "under_review", "Reviewing")

        response = await client.get(f"/api/v1/reports/track/{submitted['tracking_id']}")

        body = response.json()
        assert body["status"] == "under_review"
        assert body["history"] == [
            {
                "old_status": "submitted",
                "new_status": "under_review",
                "notes": "Reviewing",
                "created_at": body["history"][0]["created_at"],
            }
        ]

    @pytest.mark.parametrize("token", ["RPT-123", "ABCDEFGH", "RPT-ABCD-123"])
    async def test_invalid_format(self, client: AsyncClient, token):
        response = await client.get(f"/api/v1/reports/track/{token}")

        assert response.status_code == 400
        assert "RPT-XXXXXXXX" in response.json()["detail"]

    async def test_unknown_token(self, client: AsyncClient):
        response = await client.get("/api/v1/reports/track/RPT-ZZZZ9999")

        assert response.status_code == 404
        assert response.json()["detail"] == (
            "Report not found. Please check your tracking ID and try again."
        )
