"""
Wait Time Tracker - Timezone Utilities
Provides park-local date handling.

Forecasts and "today" comparisons use the park's local calendar day
(Pacific Time for the Disneyland Resort), not the server's.
"""

from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from .config import PARK_TIMEZONE

PARK_TZ = ZoneInfo(PARK_TIMEZONE)
UTC_TZ = ZoneInfo('UTC')


def get_today_local(tz: Optional[ZoneInfo] = None) -> date:
    """
    Get current calendar date in the park's timezone.

    Returns:
        date: Today's date in park-local time
    """
    return datetime.now(tz or PARK_TZ).date()


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC_TZ)


def parse_iso_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp as produced by the ThemeParks.wiki API.

    Accepts a trailing 'Z' and offset forms like '2025-06-01T10:00:00-07:00'.

    Raises:
        ValueError: If the value is not a parseable ISO timestamp
        TypeError: If the value is not a string
    """
    if not isinstance(value, str):
        raise TypeError(f"Expected ISO timestamp string, got {type(value).__name__}")
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    return datetime.fromisoformat(text)


def to_local_date(moment: datetime, tz: Optional[ZoneInfo] = None) -> date:
    """
    Convert a datetime to a park-local calendar date.

    Naive datetimes are taken to already be park-local.
    """
    if moment.tzinfo is None:
        return moment.date()
    return moment.astimezone(tz or PARK_TZ).date()


def format_iso_utc(moment: datetime) -> str:
    """Format a datetime as ISO-8601 UTC with millisecond precision and a 'Z' suffix."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC_TZ)
    utc = moment.astimezone(UTC_TZ)
    return utc.strftime('%Y-%m-%dT%H:%M:%S.') + f"{utc.microsecond // 1000:03d}Z"
