"""
Validators
==========

Common validation utilities.
"""

import re
import uuid
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# HH:MM, hour may be a single digit ("6:30")
DAILY_TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")


def validate_timezone(tz_str: str) -> str:
    """
    Validate an IANA timezone name.

    Args:
        tz_str: Timezone string (e.g., "America/New_York")

    Returns:
        Validated timezone string

    Raises:
        ValueError: If timezone is unknown
    """
    try:
        ZoneInfo(tz_str)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone: {tz_str}")
    return tz_str


def validate_daily_time(value: str) -> str:
    """
    Validate and normalize a ``HH:MM`` time of day.

    Returns:
        Zero-padded ``HH:MM`` string

    Raises:
        ValueError: If the value is not a valid time of day
    """
    if not DAILY_TIME_PATTERN.match(value):
        raise ValueError("Daily time must be in HH:MM format")
    hours, minutes = value.split(":")
    return f"{int(hours):02d}:{minutes}"


def parse_uuid(value: Any) -> Optional[uuid.UUID]:
    """
    Parse a UUID from client input.

    Returns:
        UUID, or None when the value is missing or malformed
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None
