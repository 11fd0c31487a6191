"""
Datetime utilities for consistent date/time handling across the application.

Appointment times are naive wall-clock values: a booking for "2025-03-10" at
"10:30" is stored as ``2025-03-10T10:30:00`` with no timezone conversion in
either direction. Only bookkeeping timestamps (created_at, sessions) are
timezone-aware UTC, and only the dashboard asks what "today" is in the
clinic's own timezone.
"""

import logging
from datetime import datetime, timezone, timedelta, date, time
from typing import Tuple
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"


def utc_now() -> datetime:
    """Current timezone-aware UTC datetime (bookkeeping timestamps)."""
    return datetime.now(timezone.utc)


def clinic_now() -> datetime:
    """
    Current naive wall-clock datetime in the clinic's timezone.

    Naive so it compares directly against stored appointment timestamps.
    """
    from core.config import CLINIC_TIMEZONE
    return datetime.now(ZoneInfo(CLINIC_TIMEZONE)).replace(tzinfo=None)


def parse_date_string(date_str: str) -> date:
    """
    Parse a date string in YYYY-MM-DD or YYYY/MM/DD format.

    Automatically normalizes single-digit months/days ("2025-3-7").

    Args:
        date_str: Date string in YYYY-MM-DD or YYYY/MM/DD format

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    if not date_str or not date_str.strip():
        raise ValueError("Date string cannot be empty")

    date_str = date_str.strip()

    if '/' in date_str:
        parts = date_str.split('/')
    elif '-' in date_str:
        parts = date_str.split('-')
    else:
        raise ValueError(f"Invalid date format (expected YYYY-MM-DD or YYYY/MM/DD): {date_str}")

    if len(parts) != 3:
        raise ValueError(f"Invalid date format (expected YYYY-MM-DD or YYYY/MM/DD): {date_str}")

    normalized = f"{parts[0].zfill(4)}-{parts[1].zfill(2)}-{parts[2].zfill(2)}"

    try:
        return datetime.strptime(normalized, DATE_FORMAT).date()
    except ValueError as e:
        raise ValueError(f"Invalid date format (expected YYYY-MM-DD or YYYY/MM/DD): {date_str}") from e


def parse_time_string(time_str: str) -> time:
    """
    Parse a 24-hour clock time in HH:MM format ("9:30" is accepted).

    Raises:
        ValueError: If the string is not a valid clock time
    """
    if not time_str or not time_str.strip():
        raise ValueError("Time string cannot be empty")
    try:
        return datetime.strptime(time_str.strip(), TIME_FORMAT).time()
    except ValueError as e:
        raise ValueError(f"Invalid time format (expected HH:MM): {time_str}") from e


def format_date(d: date) -> str:
    return d.strftime(DATE_FORMAT)


def format_time(t: time) -> str:
    return t.strftime(TIME_FORMAT)


def split_timestamp(dt: datetime) -> Tuple[str, str]:
    """Split a stored timestamp back into ("YYYY-MM-DD", "HH:MM")."""
    return format_date(dt.date()), format_time(dt.time())


def weekday_sunday_first(d: date) -> int:
    """
    Weekday number with Sunday as 0 and Saturday as 6.

    Python's ``weekday()`` counts from Monday; location schedules count from Sunday.
    """
    return d.isoweekday() % 7


def start_of_week(d: date) -> date:
    """The Sunday that starts the week containing ``d``."""
    return d - timedelta(days=weekday_sunday_first(d))
