"""
SQLModel-based account models.

Users (credentials) are kept apart from the public-facing Profiles row and the
UserPreferences row, mirroring the separation of the hosted auth provider.
Admin capability is granted by a UserRoles row with role='admin'.
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, UniqueConstraint
from sqlmodel import Field, SQLModel

from survivor_hub.config import Locale, Role, Theme
from survivor_hub.models.report import utcnow


class Users(SQLModel, table=True):
    """Database table for account credentials."""

    __tablename__ = "users"

    user_id: int | None = Field(default=None, primary_key=True)
    email: str = Field(max_length=255, unique=True)
    password: str = Field(max_length=255)  # bcrypt hash
    active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))


class Profiles(SQLModel, table=True):
    """Public profile attached 1:1 to an account."""

    __tablename__ = "profiles"

    user_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("users.user_id", ondelete="CASCADE"),
            primary_key=True,
        )
    )
    display_name: str | None = Field(default=None, max_length=100)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))


class UserPreferences(SQLModel, table=True):
    """Per-account interface and notification preferences."""

    __tablename__ = "user_preferences"

    user_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("users.user_id", ondelete="CASCADE"),
            primary_key=True,
        )
    )
    language: str = Field(default=Locale.EN.value, max_length=8)
    theme: str = Field(default=Theme.SYSTEM.value, max_length=16)
    email_notifications: bool = Field(default=False)
    resource_updates: bool = Field(default=False)


class UserRoles(SQLModel, table=True):
    """Role membership rows. A user is an admin iff a row with role='admin' exists."""

    __tablename__ = "user_roles"

    __table_args__ = (
        UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),
        Index("fk_user_roles_user_id", "user_id"),
    )

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("users.user_id", ondelete="CASCADE"),
            nullable=False,
        )
    )
    role: str = Field(default=Role.USER.value, max_length=16)
