"""
Authentication dependencies for FastAPI route protection.

This module resolves the caller of each request into a typed actor
(see survivor_hub.core.actors):

- ``get_actor``: any caller, Anonymous when no valid token is presented
- ``get_current_actor``: signed-in callers only (401 otherwise)
- ``require_admin``: admin callers only (401 when signed out, a generic 404
  for signed-in callers without the role)
"""

from typing import Annotated

from fastapi import Cookie, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from survivor_hub.config import Role
from survivor_hub.core.actors import Admin, Anonymous, AuthenticatedUser
from survivor_hub.core.database import get_db
from survivor_hub.core.errors import NotFoundError
from survivor_hub.core.logging import actor_ctx, get_logger
from survivor_hub.core.security import verify_access_token
from survivor_hub.models.user import UserRoles, Users

logger = get_logger(__name__)

ADMIN_DENIED_MESSAGE = "Not found"


async def load_actor(db: AsyncSession, user_id: int) -> AuthenticatedUser | None:
    """
    Load an active account and resolve its capability.

    Returns:
        Admin or AuthenticatedUser, or None if the account is missing or inactive
    """
    result = await db.execute(select(Users).where(Users.user_id == user_id))  # type: ignore[arg-type]
    user = result.scalar_one_or_none()
    if user is None or not user.active:
        return None

    role_result = await db.execute(
        select(UserRoles.id).where(  # type: ignore[call-overload]
            UserRoles.user_id == user_id,
            UserRoles.role == Role.ADMIN.value,
        )
    )
    if role_result.first() is not None:
        return Admin(user_id=user_id, email=user.email)
    return AuthenticatedUser(user_id=user_id, email=user.email)


def _extract_token(
    credentials: HTTPAuthorizationCredentials | None, access_token: str | None
) -> str | None:
    if credentials is not None:
        return credentials.credentials
    return access_token


async def get_actor(
    db: Annotated[AsyncSession, Depends(get_db)],
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(HTTPBearer(auto_error=False))
    ] = None,
    access_token: Annotated[str | None, Cookie()] = None,
) -> Anonymous | AuthenticatedUser:
    """
    Resolve the caller, falling back to Anonymous.

    Invalid or expired tokens are treated as no token at all so that anonymous
    flows (report submission, tracking) never fail on stale credentials.
    """
    token = _extract_token(credentials, access_token)
    if not token:
        return Anonymous()

    user_id = verify_access_token(token)
    if user_id is None:
        return Anonymous()

    actor = await load_actor(db, user_id)
    if actor is None:
        return Anonymous()

    actor_ctx.set(actor.describe())
    return actor


async def get_current_actor(
    actor: Annotated[Anonymous | AuthenticatedUser, Depends(get_actor)],
) -> AuthenticatedUser:
    """
    Require a signed-in caller.

    Raises:
        HTTPException: 401 if the caller is anonymous
    """
    if isinstance(actor, Anonymous):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return actor


async def require_admin(
    actor: Annotated[AuthenticatedUser, Depends(get_current_actor)],
) -> Admin:
    """
    Require the admin role.

    A signed-in caller without the role gets the same generic not-found
    answer as any unknown resource, so admin routes cannot be enumerated.

    Raises:
        NotFoundError: the caller is signed in but not an admin
    """
    if not isinstance(actor, Admin):
        logger.warning("admin_access_denied", user_id=actor.user_id)
        raise NotFoundError(ADMIN_DENIED_MESSAGE)
    return actor


OptionalActor = Annotated[Anonymous | AuthenticatedUser, Depends(get_actor)]
CurrentActor = Annotated[AuthenticatedUser, Depends(get_current_actor)]
AdminActor = Annotated[Admin, Depends(require_admin)]
