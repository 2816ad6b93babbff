"""
Base schema types with UTC datetime serialization.

SQLite hands back naive datetimes, so values without tzinfo are treated as
UTC before formatting with a Z suffix.
"""

from datetime import UTC, datetime
from typing import Annotated

from pydantic import PlainSerializer


def _format_utc(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


# Usage: created_at: UTCDatetime instead of created_at: datetime
UTCDatetime = Annotated[
    datetime,
    PlainSerializer(_format_utc, return_type=str),
]

# Optional version for nullable datetime fields
UTCDatetimeOptional = Annotated[
    datetime | None,
    PlainSerializer(_format_utc, return_type=str | None),
]
