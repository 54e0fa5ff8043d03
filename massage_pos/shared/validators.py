"""Shared validation utilities"""

import re
from typing import Optional

CLOCK_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def validate_clock_time(value: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a wall-clock time.

    Args:
        value: Time string such as "9:05" or "09:05"

    Returns:
        Zero-padded "HH:MM" string

    Raises:
        ValueError: If the time is not a valid 24h clock time
    """
    if value is None:
        return value

    value = value.strip()
    if re.match(r"^\d:\d\d$", value):
        value = f"0{value}"

    if not CLOCK_PATTERN.match(value):
        raise ValueError("Time must be in 24h HH:MM format")

    return value


def validate_positive_minutes(minutes: int) -> int:
    """Validate an extension length in minutes"""
    if minutes <= 0:
        raise ValueError("Minutes must be greater than 0")
    if minutes > 24 * 60:
        raise ValueError("Minutes must not exceed one day")
    return minutes


def validate_name(value: Optional[str]) -> Optional[str]:
    """Strip surrounding whitespace and reject blank names"""
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("Name must not be blank")
    return value
