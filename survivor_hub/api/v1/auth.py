"""
Authentication API endpoints.

This module provides endpoints for:
- Account registration (creates profile and default preferences)
- Login (JWT access token, also set as an HTTPOnly cookie)
- Logout (clears the cookie)
- Resolving the current caller

Accounts are optional: reporting, tracking, chat and the directories work
without one.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from survivor_hub.config import Role, settings
from survivor_hub.core.actors import Admin
from survivor_hub.core.auth import CurrentActor
from survivor_hub.core.database import get_db
from survivor_hub.core.logging import get_logger
from survivor_hub.core.security import create_access_token, get_password_hash, verify_password
from survivor_hub.models.user import Profiles, UserPreferences, UserRoles, Users
from survivor_hub.schemas.auth import ActorResponse, LoginRequest, RegisterRequest, TokenResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _set_auth_cookie(response: Response, access_token: str) -> None:
    """Set the access token as an HTTPOnly cookie."""
    response.set_cookie(
        key="access_token",
        value=access_token,
        httponly=True,  # Prevent JavaScript access (XSS protection)
        secure=settings.ENVIRONMENT == "production",  # HTTPS only in production
        samesite="strict",  # CSRF protection
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,  # Match JWT expiration
    )


def _token_response(response: Response, user_id: int) -> TokenResponse:
    access_token = create_access_token(user_id)
    _set_auth_cookie(response, access_token)
    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TokenResponse:
    """
    Create an account and sign in.

    A profile, default preferences and the 'user' role are created with the
    account.
    """
    email = data.email.lower()
    existing = await db.execute(
        select(Users.user_id).where(func.lower(Users.email) == email)  # type: ignore[call-overload]
    )
    if existing.first() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this email already exists",
        )

    user = Users(email=email, password=get_password_hash(data.password))
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this email already exists",
        ) from e

    assert user.user_id is not None
    db.add(Profiles(user_id=user.user_id, display_name=data.display_name))
    db.add(UserPreferences(user_id=user.user_id))
    db.add(UserRoles(user_id=user.user_id, role=Role.USER.value))
    await db.commit()

    logger.info("user_registered", user_id=user.user_id)
    return _token_response(response, user.user_id)


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: LoginRequest,
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TokenResponse:
    """Authenticate with email and password and return a JWT access token."""
    result = await db.execute(
        select(Users).where(func.lower(Users.email) == credentials.email.lower())  # type: ignore[arg-type]
    )
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.password):
        logger.info("login_failed")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    if not user.active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is disabled",
        )

    assert user.user_id is not None
    logger.info("login_success", user_id=user.user_id)
    return _token_response(response, user.user_id)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(response: Response) -> None:
    """Clear the access token cookie."""
    response.delete_cookie("access_token")


@router.get("/me", response_model=ActorResponse)
async def me(actor: CurrentActor) -> ActorResponse:
    """Return the signed-in caller and whether they hold the admin role."""
    return ActorResponse(
        user_id=actor.user_id,
        email=actor.email,
        is_admin=isinstance(actor, Admin),
    )
