"""
Pydantic schemas for the resource library and the service directory.
"""

from pydantic import BaseModel, Field, field_validator

from survivor_hub.models.directory import ResourceBase, ServiceBase
from survivor_hub.schemas.base import UTCDatetime


def _require_text(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Field must not be blank")
    return v


# ===== Resources =====


class ResourceCreate(ResourceBase):
    """Schema for creating a resource article."""

    @field_validator("title", "content", "category")
    @classmethod
    def sanitize_fields(cls, v: str) -> str:
        return _require_text(v)


class ResourceUpdate(BaseModel):
    """Schema for updating a resource article - all fields optional"""

    title: str | None = Field(None, max_length=200)
    content: str | None = None
    category: str | None = Field(None, max_length=100)

    @field_validator("title", "content", "category")
    @classmethod
    def sanitize_fields(cls, v: str | None) -> str:
        # Omitting a field leaves it unchanged; null would clear a required column
        if v is None:
            raise ValueError("Field must not be null")
        return _require_text(v)


class ResourceResponse(ResourceBase):
    """Response schema for a resource article."""

    id: int
    created_at: UTCDatetime


# ===== Services =====


class ServiceCreate(ServiceBase):
    """Schema for creating a service listing."""

    @field_validator("organization", "location", "phone")
    @classmethod
    def sanitize_fields(cls, v: str) -> str:
        return _require_text(v)


class ServiceUpdate(BaseModel):
    """Schema for updating a service listing - all fields optional"""

    organization: str | None = Field(None, max_length=200)
    location: str | None = Field(None, max_length=200)
    phone: str | None = Field(None, max_length=50)
    website: str | None = Field(None, max_length=255)
    description: str | None = None

    @field_validator("organization", "location", "phone")
    @classmethod
    def sanitize_fields(cls, v: str | None) -> str:
        # Omitting a field leaves it unchanged; null would clear a required column
        if v is None:
            raise ValueError("Field must not be null")
        return _require_text(v)


class ServiceResponse(ServiceBase):
    """Response schema for a service listing."""

    id: int
    created_at: UTCDatetime
