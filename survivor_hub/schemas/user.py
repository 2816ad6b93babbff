"""
Pydantic schemas for the signed-in user's profile and preferences.
"""

from pydantic import BaseModel, Field

from survivor_hub.config import Locale, Theme
from survivor_hub.schemas.base import UTCDatetime


class ProfileResponse(BaseModel):
    """Profile of the current account."""

    user_id: int
    email: str
    display_name: str | None = None
    created_at: UTCDatetime


class ProfileUpdate(BaseModel):
    """Schema for updating the profile."""

    display_name: str | None = Field(None, max_length=100)


class PreferencesResponse(BaseModel):
    """Interface and notification preferences."""

    language: str
    theme: str
    email_notifications: bool
    resource_updates: bool

    model_config = {"from_attributes": True}


class PreferencesUpdate(BaseModel):
    """Partial update of preferences; omitted fields are left unchanged."""

    language: Locale | None = None
    theme: Theme | None = None
    email_notifications: bool | None = None
    resource_updates: bool | None = None
