"""
SQLModel-based models for the resource library and the support service directory.
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, Index, Text
from sqlmodel import Field, SQLModel

from survivor_hub.models.report import utcnow


class ResourceBase(SQLModel):
    """Editable fields of a resource article."""

    title: str = Field(max_length=200)
    content: str
    category: str = Field(max_length=100)


class Resources(ResourceBase, table=True):
    """Database table for educational resource articles."""

    __tablename__ = "resources"

    __table_args__ = (
        Index("idx_resources_category", "category"),
        Index("idx_resources_created_at", "created_at"),
    )

    id: int | None = Field(default=None, primary_key=True)
    content: str = Field(sa_column=Column(Text, nullable=False))
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))


class ServiceBase(SQLModel):
    """Editable fields of a support service listing."""

    organization: str = Field(max_length=200)
    location: str = Field(max_length=200)
    phone: str = Field(max_length=50)
    website: str | None = Field(default=None, max_length=255)
    description: str | None = None


class Services(ServiceBase, table=True):
    """Database table for the support service directory."""

    __tablename__ = "services"

    __table_args__ = (Index("idx_services_organization", "organization"),)

    id: int | None = Field(default=None, primary_key=True)
    description: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
