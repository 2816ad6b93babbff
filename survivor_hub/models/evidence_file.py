"""
SQLModel-based evidence file metadata.

Each row points at one stored object under the evidence storage root. The
stored name is random; ``file_name`` keeps the original name for display only.
Evidence is ephemeral and purged after EVIDENCE_RETENTION_HOURS.
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, String
from sqlmodel import Field, SQLModel

from survivor_hub.models.report import utcnow


class EvidenceFiles(SQLModel, table=True):
    """Database table for evidence attached to a report."""

    __tablename__ = "files"

    __table_args__ = (
        Index("fk_files_report_id", "report_id"),
        Index("idx_files_created_at", "created_at"),
    )

    id: int | None = Field(default=None, primary_key=True)

    report_id: str = Field(
        sa_column=Column(
            String(36),
            ForeignKey("reports.id", ondelete="CASCADE"),
            nullable=False,
        )
    )

    # Storage path relative to EVIDENCE_STORAGE_PATH: <report_id>/<random>.<ext>
    file_url: str = Field(max_length=255)
    file_name: str = Field(max_length=255)
    content_type: str | None = Field(default=None, max_length=100)
    size: int = Field(default=0)

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
