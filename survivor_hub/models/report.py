"""
SQLModel-based Report models with inheritance for security

This module defines the reports database model using SQLModel. The inheritance
structure is:

ReportBase (fields the submitter provides)
    └─> Reports (database table, adds identity, status and moderation fields)

The internal ``id`` is never shown to the submitter. The ``tracking_id`` is the
only credential a submitter keeps, and it is immutable once assigned.
"""

from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, Text
from sqlmodel import Field, SQLModel

from survivor_hub.config import ReportStatus


def _new_report_id() -> str:
    return str(uuid4())


def utcnow() -> datetime:
    return datetime.now(UTC)


class ReportBase(SQLModel):
    """
    Base model with the submitter-provided fields of a report.
    """

    type_of_abuse: str = Field(max_length=64)
    description: str


class Reports(ReportBase, table=True):
    """
    Database table for incident reports.

    Extends ReportBase with:
    - Opaque primary key and the shareable tracking ID
    - Status and moderation fields
    - Optional link to an authenticated submitter
    """

    __tablename__ = "reports"

    __table_args__ = (
        Index("idx_reports_status", "status"),
        Index("idx_reports_created_at", "created_at"),
        Index("fk_reports_user_id", "user_id"),
    )

    id: str = Field(default_factory=_new_report_id, primary_key=True, max_length=36)
    tracking_id: str = Field(max_length=12, unique=True, nullable=False)

    # Override to store long free text
    description: str = Field(sa_column=Column(Text, nullable=False))

    status: str = Field(default=ReportStatus.SUBMITTED.value, max_length=32)
    admin_notes: str | None = Field(default=None, sa_column=Column(Text, nullable=True))

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    reviewed_at: datetime | None = Field(default=None, sa_type=DateTime(timezone=True))

    # Only set when an authenticated submitter is linked to the report
    user_id: int | None = Field(
        default=None,
        sa_column=Column(
            Integer,
            ForeignKey("users.user_id", ondelete="SET NULL"),
            nullable=True,
        ),
    )
