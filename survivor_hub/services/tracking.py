"""Tracking ID minting and validation."""

import re
import secrets
import string

from survivor_hub.core.errors import InvalidFormatError

TRACKING_ID_PREFIX = "RPT-"
TRACKING_ID_LENGTH = 8
TRACKING_ID_ALPHABET = string.ascii_uppercase + string.digits
TRACKING_ID_PATTERN = re.compile(r"^RPT-[A-Z0-9]{8}$")


def generate_tracking_id() -> str:
    """
    Mint a new tracking ID from the system CSPRNG.

    Nothing about the ID depends on time or insertion order. Uniqueness is
    checked by the caller against the store.
    """
    suffix = "".join(secrets.choice(TRACKING_ID_ALPHABET) for _ in range(TRACKING_ID_LENGTH))
    return f"{TRACKING_ID_PREFIX}{suffix}"


def normalize_tracking_id(raw: str) -> str:
    """
    Trim and upper-case user input, then validate it.

    Raises:
        InvalidFormatError: if the result does not match RPT-XXXXXXXX
    """
    candidate = raw.strip().upper()
    if not TRACKING_ID_PATTERN.fullmatch(candidate):
        raise InvalidFormatError()
    return candidate


def is_valid_tracking_id(value: str) -> bool:
    """Return True if ``value`` is already in canonical RPT-XXXXXXXX form."""
    return TRACKING_ID_PATTERN.fullmatch(value) is not None
