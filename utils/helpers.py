"""
Helper utilities for common operations
"""
from datetime import datetime, timezone, timedelta
from typing import List, Sequence

import config
from utils.errors import InvalidInputError


def datetime_now() -> datetime:
    """Get current datetime in UTC"""
    return datetime.now(timezone.utc)


def generate_keycap_emoji(number: int, symbols: Sequence[str] = config.KEYCAP_SYMBOLS) -> str:
    """Generate a keycap emoji for a number (1-10)"""
    if 1 <= number <= len(symbols):
        return symbols[number - 1]
    return str(number)


def split_poll_options(raw: str) -> List[str]:
    """
    Split a comma separated option string into poll labels

    Blank entries are dropped, so "a, ,b," gives ["a", "b"].

    Args:
        raw: Options as typed by the user

    Returns:
        List of stripped labels
    """
    return [option.strip() for option in raw.split(",") if option.strip()]


def hours(value: float) -> timedelta:
    """Convert a user-supplied number of hours to a timedelta"""
    if value <= 0:
        raise InvalidInputError("The duration must be greater than zero.")
    return timedelta(hours=value)


def minutes(value: float) -> timedelta:
    """Convert a user-supplied number of minutes to a timedelta"""
    if value <= 0:
        raise InvalidInputError("The interval must be greater than zero.")
    return timedelta(minutes=value)


def truncate_for_embed(text: str, max_length: int = 1024) -> str:
    """
    Truncate text to fit in an embed field

    Args:
        text: Text to truncate
        max_length: Maximum length (default: 1024 for embed fields)

    Returns:
        Truncated text
    """
    if len(text) <= max_length:
        return text
    return text[:max_length - 3] + "..."


def format_duration(seconds: float) -> str:
    """
    Format a duration in seconds to a human-readable string

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string (e.g., "2d 5h", "1h 30m")
    """
    total = int(seconds)
    if total < 60:
        return f"{total}s"

    total_minutes = total // 60
    if total_minutes < 60:
        return f"{total_minutes}m"

    h, m = divmod(total_minutes, 60)
    if h < 24:
        return f"{h}h {m}m" if m else f"{h}h"

    d, h = divmod(h, 24)
    return f"{d}d {h}h" if h else f"{d}d"
