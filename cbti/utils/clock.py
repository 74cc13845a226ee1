"""
Wall-clock arithmetic for diary answers and prescriptions

Diary and prescription times are plain "HH:MM" strings with no date. All
arithmetic on them is done in minutes-of-day over a 1440-minute day so that
adjustments wrap around midnight in both directions.
"""

import re
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple

from cbti.exceptions import TimeFormatError
from cbti.utils.rounding import round_half_up

MINUTES_PER_DAY = 1440

_CLOCK_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_clock_time(value: str, field: Optional[str] = None) -> Tuple[int, int]:
    """
    Parse a 24-hour "HH:MM" string into (hour, minute)

    Args:
        value: Clock string such as "22:30" or "6:05"
        field: Name of the answer being parsed, for error context

    Returns:
        Tuple of (hour, minute)

    Raises:
        TimeFormatError: If the value is not a valid 24-hour time
    """
    if not isinstance(value, str):
        raise TimeFormatError(value, field=field)

    match = _CLOCK_PATTERN.match(value.strip())
    if not match:
        raise TimeFormatError(value, field=field)

    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise TimeFormatError(value, field=field)

    return hour, minute


def to_minutes(value: str, field: Optional[str] = None) -> int:
    """Convert "HH:MM" to minutes after midnight"""
    hour, minute = parse_clock_time(value, field=field)
    return hour * 60 + minute


def format_clock(minutes: int) -> str:
    """
    Format minutes-of-day as "HH:MM", wrapping into a single day

    Example:
        >>> format_clock(-15)
        '23:45'
        >>> format_clock(1450)
        '00:10'
    """
    minutes = minutes % MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def shift_clock(value: str, delta_minutes: int) -> str:
    """Move a clock time by delta_minutes, wrapping around midnight"""
    return format_clock(to_minutes(value) + delta_minutes)


def window_minutes(bedtime: str, wake_time: str) -> int:
    """
    Length of the sleep window from bedtime to wake time

    An overnight window (wake time earlier on the clock than bedtime) wraps
    past midnight, so 23:00 -> 06:00 is 420 minutes. Equal times give 0.
    """
    bed = to_minutes(bedtime, field="bedtime")
    wake = to_minutes(wake_time, field="wake_time")
    if wake < bed:
        return (MINUTES_PER_DAY - bed) + wake
    return wake - bed


def minutes_between(start: str, end: str) -> int:
    """Forward distance on the clock from start to end (0-1439)"""
    return (to_minutes(end) - to_minutes(start)) % MINUTES_PER_DAY


def at_date(day: date, value: str, day_offset: int = 0, field: Optional[str] = None) -> datetime:
    """Anchor a clock time to a calendar date plus a whole-day offset"""
    hour, minute = parse_clock_time(value, field=field)
    return datetime.combine(day + timedelta(days=day_offset), time(hour, minute))


def elapsed_minutes(start: datetime, end: datetime) -> int:
    """Signed whole minutes from start to end, rounded to the nearest minute"""
    return round_half_up((end - start).total_seconds() / 60)


# ============================================================================
# DISPLAY FORMATTING
# ============================================================================

def format_duration(minutes: Optional[float]) -> str:
    """
    Human readable duration

    Example:
        >>> format_duration(45)
        '45 min'
        >>> format_duration(330)
        '5h 30m'
    """
    if minutes is None:
        return "--"
    minutes = round_half_up(minutes)
    if minutes < 60:
        return f"{minutes} min"
    hours, mins = divmod(minutes, 60)
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"


def format_12h(value: str) -> str:
    """Format "HH:MM" for display on a 12-hour clock, e.g. "23:30" -> "11:30 PM" """
    hour, minute = parse_clock_time(value)
    period = "PM" if hour >= 12 else "AM"
    display_hour = hour % 12 or 12
    return f"{display_hour}:{minute:02d} {period}"
