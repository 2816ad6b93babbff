"""
Pydantic schemas for incident reports.

These schemas handle:
- Anonymous report submission
- Public tracking lookups (never carry the description)
- Admin moderation (list, detail, status updates, statistics)
"""

from pydantic import BaseModel, Field, field_validator

from survivor_hub.config import ReportStatus
from survivor_hub.schemas.base import UTCDatetime, UTCDatetimeOptional

# ===== Submission =====


class ReportSubmitResponse(BaseModel):
    """
    Returned once after submission.

    The tracking ID is the submitter's only credential and is not shown again.
    """

    tracking_id: str
    status: ReportStatus
    evidence_count: int = 0
    evidence_complete: bool = True


# ===== Status history =====


class StatusChangeResponse(BaseModel):
    """One entry of a report's status history."""

    old_status: str | None
    new_status: str
    notes: str | None = None
    created_at: UTCDatetime

    model_config = {"from_attributes": True}


# ===== Public tracking =====


class ReportTrackingResponse(BaseModel):
    """Public lookup result. Deliberately has no description, evidence or notes."""

    tracking_id: str
    type_of_abuse: str
    status: str
    created_at: UTCDatetime
    history: list[StatusChangeResponse] = []


# ===== Admin =====


class EvidenceFileResponse(BaseModel):
    """Evidence metadata shown to moderators."""

    id: int
    file_name: str
    content_type: str | None = None
    size: int | None = None
    created_at: UTCDatetime

    model_config = {"from_attributes": True}


class ReportResponse(BaseModel):
    """Full report as seen by moderators."""

    id: str
    tracking_id: str
    type_of_abuse: str
    description: str
    status: str
    admin_notes: str | None = None
    created_at: UTCDatetime
    reviewed_at: UTCDatetimeOptional = None

    model_config = {"from_attributes": True}


class ReportDetailResponse(ReportResponse):
    """Report with its evidence and status history."""

    evidence: list[EvidenceFileResponse] = []
    history: list[StatusChangeResponse] = []


class ReportListResponse(BaseModel):
    """Response schema for listing reports."""

    total: int
    page: int
    per_page: int
    items: list[ReportResponse]


class ReportStatusUpdate(BaseModel):
    """Schema for moving a report to a new status."""

    status: ReportStatus
    notes: str | None = Field(None, max_length=5000, description="Optional admin notes")

    @field_validator("notes")
    @classmethod
    def strip_notes(cls, v: str | None) -> str | None:
        """Trim whitespace; blank notes count as none."""
        if v is None:
            return v
        return v.strip() or None


class UserReportSummary(BaseModel):
    """A report listed on its authenticated submitter's profile."""

    tracking_id: str
    type_of_abuse: str
    status: str
    created_at: UTCDatetime

    model_config = {"from_attributes": True}


class AdminStatisticsResponse(BaseModel):
    """Dashboard counters."""

    total_reports: int
    reports_last_7_days: int
    reports_last_30_days: int
    reports_by_status: dict[str, int]
    total_evidence_files: int
    total_resources: int
    total_services: int
