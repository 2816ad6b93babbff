"""
Endpoints for the signed-in user's own profile, preferences and reports.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from survivor_hub.core.auth import CurrentActor
from survivor_hub.core.database import get_db
from survivor_hub.core.logging import get_logger
from survivor_hub.models.report import utcnow
from survivor_hub.models.user import Profiles, UserPreferences, Users
from survivor_hub.schemas.report import UserReportSummary
from survivor_hub.schemas.user import (
    PreferencesResponse,
    PreferencesUpdate,
    ProfileResponse,
    ProfileUpdate,
)
from survivor_hub.services.reports import list_reports_for_user

logger = get_logger(__name__)

router = APIRouter(prefix="/users/me", tags=["users"])


async def _load_profile(db: AsyncSession, user_id: int) -> tuple[Users, Profiles]:
    user = await db.get(Users, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    profile = await db.get(Profiles, user_id)
    if profile is None:
        # Accounts created outside registration may lack a profile row
        profile = Profiles(user_id=user_id)
        db.add(profile)
        await db.flush()
    return user, profile


async def _load_preferences(db: AsyncSession, user_id: int) -> UserPreferences:
    preferences = await db.get(UserPreferences, user_id)
    if preferences is None:
        preferences = UserPreferences(user_id=user_id)
        db.add(preferences)
        await db.flush()
    return preferences


@router.get("", response_model=ProfileResponse)
async def get_profile(
    actor: CurrentActor,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ProfileResponse:
    """Profile of the signed-in user."""
    user, profile = await _load_profile(db, actor.user_id)
    return ProfileResponse(
        user_id=actor.user_id,
        email=user.email,
        display_name=profile.display_name,
        created_at=user.created_at,
    )


@router.patch("", response_model=ProfileResponse)
async def update_profile(
    data: ProfileUpdate,
    actor: CurrentActor,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ProfileResponse:
    """Update the display name."""
    user, profile = await _load_profile(db, actor.user_id)
    display_name = data.display_name.strip() if data.display_name else None
    profile.display_name = display_name or None
    profile.updated_at = utcnow()
    await db.commit()

    logger.info("profile_updated", user_id=actor.user_id)
    return ProfileResponse(
        user_id=actor.user_id,
        email=user.email,
        display_name=profile.display_name,
        created_at=user.created_at,
    )


@router.get("/preferences", response_model=PreferencesResponse)
async def get_preferences(
    actor: CurrentActor,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> PreferencesResponse:
    """Interface and notification preferences."""
    preferences = await _load_preferences(db, actor.user_id)
    return PreferencesResponse.model_validate(preferences)


@router.patch("/preferences", response_model=PreferencesResponse)
async def update_preferences(
    data: PreferencesUpdate,
    actor: CurrentActor,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> PreferencesResponse:
    """Update preferences. Omitted fields are left unchanged."""
    preferences = await _load_preferences(db, actor.user_id)
    for key, value in data.model_dump(exclude_unset=True, exclude_none=True, mode="json").items():
        setattr(preferences, key, value)
    await db.commit()

    logger.info("preferences_updated", user_id=actor.user_id)
    return PreferencesResponse.model_validate(preferences)


@router.get("/reports", response_model=list[UserReportSummary])
async def my_reports(
    actor: CurrentActor,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[UserReportSummary]:
    """Reports the user chose to link to their account, newest first."""
    reports = await list_reports_for_user(db, actor)
    return [UserReportSummary.model_validate(r) for r in reports]
