"""
Pydantic schemas for interface translations.
"""

from pydantic import BaseModel, Field

from survivor_hub.config import Locale
from survivor_hub.schemas.base import UTCDatetime


class TranslationCreate(BaseModel):
    """Schema for adding a translation entry."""

    key: str = Field(..., min_length=1, max_length=150)
    locale: Locale
    value: str = Field(..., min_length=1)


class TranslationUpdate(BaseModel):
    """Schema for changing the text of an entry."""

    value: str = Field(..., min_length=1)


class TranslationResponse(BaseModel):
    """A single translation entry."""

    id: int
    key: str
    locale: str
    value: str
    updated_at: UTCDatetime

    model_config = {"from_attributes": True}


class TranslationBundleResponse(BaseModel):
    """All strings for one locale, with English filling the gaps."""

    locale: str
    translations: dict[str, str]


class TranslatedStringResponse(BaseModel):
    """One interface string. ``value`` is the key itself when nothing matches."""

    locale: str
    key: str
    value: str
