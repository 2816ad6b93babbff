"""
Typed actors for capability-based access.

Every request resolves to exactly one of:

- ``Anonymous``: no (valid) credentials
- ``AuthenticatedUser``: a signed-in account without the admin role
- ``Admin``: a signed-in account holding the admin role

Service functions that mutate moderation state take an ``Admin`` argument
instead of consulting ambient session state.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Anonymous:
    """Caller without an account."""

    @property
    def user_id(self) -> None:
        return None

    def describe(self) -> str:
        return "anonymous"


@dataclass(frozen=True)
class AuthenticatedUser:
    """Signed-in caller without moderation rights."""

    user_id: int
    email: str

    def describe(self) -> str:
        return f"user:{self.user_id}"


@dataclass(frozen=True)
class Admin(AuthenticatedUser):
    """Signed-in caller holding the admin role."""

    def describe(self) -> str:
        return f"admin:{self.user_id}"


Actor = Anonymous | AuthenticatedUser | Admin
