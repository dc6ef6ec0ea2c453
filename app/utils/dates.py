"""
Date and time helpers shared by slots, emails and calendar exports.

Everything is stored and compared in UTC. Human-facing strings are rendered in
the configured business timezone.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo

from dateutil import parser as date_parser

from ..config import BUSINESS_TIMEZONE

logger = logging.getLogger(__name__)

DateLike = Union[datetime, str]


def business_tz() -> ZoneInfo:
    return ZoneInfo(BUSINESS_TIMEZONE)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Naive datetimes (e.g. read back from SQLite) are treated as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime(value: DateLike) -> datetime:
    """Parse an ISO 8601 string or datetime into an aware UTC datetime"""
    if isinstance(value, datetime):
        return ensure_utc(value)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Invalid datetime value: {value!r}")
    return ensure_utc(date_parser.isoparse(value.strip()))


def to_local(value: DateLike) -> datetime:
    return parse_datetime(value).astimezone(business_tz())


def to_iso_string(value: datetime) -> str:
    """UTC ISO string with millisecond precision and a Z suffix"""
    return ensure_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def add_hours(value: datetime, hours: int) -> datetime:
    return value + timedelta(hours=hours)


def floor_to_hour(value: datetime) -> datetime:
    return value.replace(minute=0, second=0, microsecond=0)


def ceil_to_hour(value: datetime) -> datetime:
    floored = floor_to_hour(value)
    if floored == value:
        return floored
    return floored + timedelta(hours=1)


def format_date(value: DateLike, format_str: Optional[str] = None) -> str:
    """Format as 'Monday, March 25, 2024' unless a strftime pattern is given"""
    try:
        local = to_local(value)
        if format_str:
            return local.strftime(format_str)
        return f"{local:%A, %B} {local.day}, {local.year}"
    except (ValueError, TypeError, OverflowError) as e:
        logger.error(f"Error formatting date: {e}")
        return "Invalid date"


def format_time(time_str: str) -> str:
    """'14:30:00' -> '14:30'; the input comes back unchanged when it cannot be parsed"""
    try:
        hours, minutes = time_str.split(":")[:2]
        return f"{int(hours):02d}:{int(minutes):02d}"
    except (ValueError, AttributeError) as e:
        logger.error(f"Error formatting time: {e}")
        return time_str


def format_datetime(value: DateLike) -> str:
    """Format as 'Mon, Mar 25, 14:00'"""
    try:
        local = to_local(value)
        return f"{local:%a, %b} {local.day}, {local:%H:%M}"
    except (ValueError, TypeError, OverflowError) as e:
        logger.error(f"Error formatting datetime: {e}")
        return "Invalid date/time"


def calculate_duration(start_time: str, end_time: str) -> int:
    """Minutes between two 'HH:MM[:SS]' strings, 0 when either cannot be parsed"""
    try:
        start_hours, start_minutes = (int(p) for p in start_time.split(":")[:2])
        end_hours, end_minutes = (int(p) for p in end_time.split(":")[:2])
    except (ValueError, AttributeError) as e:
        logger.error(f"Error calculating duration: {e}")
        return 0
    return (end_hours * 60 + end_minutes) - (start_hours * 60 + start_minutes)


def is_slot_disabled(start_time: DateLike, now: Optional[datetime] = None) -> bool:
    """A slot is no longer bookable once it starts at or before the next full hour"""
    current = ensure_utc(now) if now else utcnow()
    next_hour = floor_to_hour(current) + timedelta(hours=1)
    return parse_datetime(start_time) <= next_hour
