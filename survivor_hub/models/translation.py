"""
SQLModel-based Translations model: one row per (key, locale).
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, Text, UniqueConstraint
from sqlmodel import Field, SQLModel

from survivor_hub.models.report import utcnow


class TranslationBase(SQLModel):
    """Editable fields of a translation entry."""

    key: str = Field(max_length=150)
    locale: str = Field(max_length=8)
    value: str


class Translations(TranslationBase, table=True):
    """Database table for UI strings per locale."""

    __tablename__ = "translations"

    __table_args__ = (UniqueConstraint("key", "locale", name="uq_translations_key_locale"),)

    id: int | None = Field(default=None, primary_key=True)
    value: str = Field(sa_column=Column(Text, nullable=False))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
