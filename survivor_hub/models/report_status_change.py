"""
SQLModel-based ReportStatusChanges model for the report audit trail.

Append-only: one row per status transition. Replaying the rows of a report in
(created_at, id) order starting from ``submitted`` yields its current status.
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlmodel import Field, SQLModel

from survivor_hub.models.report import utcnow


class ReportStatusChangeBase(SQLModel):
    """
    Base model with shared fields for ReportStatusChanges.
    """

    old_status: str | None = Field(default=None, max_length=32)
    new_status: str = Field(max_length=32)
    notes: str | None = Field(default=None)


class ReportStatusChanges(ReportStatusChangeBase, table=True):
    """
    Database table for report status history.
    """

    __tablename__ = "report_status_changes"

    __table_args__ = (
        Index("idx_report_status_changes_report_id", "report_id"),
        Index("idx_report_status_changes_created_at", "created_at"),
    )

    id: int | None = Field(default=None, primary_key=True)

    report_id: str = Field(
        sa_column=Column(
            String(36),
            ForeignKey("reports.id", ondelete="CASCADE"),
            nullable=False,
        )
    )

    notes: str | None = Field(default=None, sa_column=Column(Text, nullable=True))

    # Admin who made the change
    changed_by: int | None = Field(
        default=None,
        sa_column=Column(
            Integer,
            ForeignKey("users.user_id", ondelete="SET NULL"),
            nullable=True,
        ),
    )

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
