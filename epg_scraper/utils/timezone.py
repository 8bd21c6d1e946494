"""
Date and Time utilities

This module handles local-time conversions, provider time parsing and the
day window each provider fetches.
"""
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo
import logging

from epg_scraper.config import settings

logger = logging.getLogger(__name__)

DIYP_DATE_FORMAT = "%Y-%m-%d"
COMPACT_DATE_FORMAT = "%Y%m%d"
CLOCK_FORMAT = "%H:%M"


class DateFormatError(ValueError):
    """Raised when a provider time string is invalid"""
    pass


def local_zone() -> ZoneInfo:
    """Return the configured local timezone"""
    return ZoneInfo(settings.epg_timezone)


def now_local() -> datetime:
    """Current time as an aware datetime in the local timezone"""
    return datetime.now(local_zone())


def ensure_local(moment: datetime | None) -> datetime:
    """
    Normalize an optional reference time to the local timezone

    Naive datetimes are taken to already be local wall-clock time.
    """
    if moment is None:
        return now_local()
    if moment.tzinfo is None:
        return moment.replace(tzinfo=local_zone())
    return moment.astimezone(local_zone())


def plan_dates(
    day_count: int,
    date_format: str = DIYP_DATE_FORMAT,
    now: datetime | None = None
) -> list[str]:
    """
    Calculate the calendar dates a provider should fetch

    Args:
        day_count: Number of consecutive days starting today (values below 1 mean 1)
        date_format: strftime format the provider expects
        now: Reference time, defaults to the current local time

    Returns:
        Dates today+0 .. today+day_count-1, formatted
    """
    today = ensure_local(now).date()
    day_count = max(1, day_count)
    return [
        (today + timedelta(days=offset)).strftime(date_format)
        for offset in range(day_count)
    ]


def next_date(date_str: str) -> str:
    """Return the YYYY-MM-DD date following date_str"""
    day = datetime.strptime(date_str, DIYP_DATE_FORMAT).date()
    return (day + timedelta(days=1)).strftime(DIYP_DATE_FORMAT)


def parse_local_time(time_str: str, time_format: str) -> datetime:
    """
    Parse a provider wall-clock string into an aware local datetime

    Raises:
        DateFormatError: If the string does not match time_format
    """
    try:
        parsed = datetime.strptime(time_str.strip(), time_format)
    except (ValueError, AttributeError) as e:
        raise DateFormatError(f"Invalid time '{time_str}' for format '{time_format}'") from e
    return parsed.replace(tzinfo=local_zone())


def parse_local_iso(time_str: str) -> datetime:
    """
    Parse an ISO-like 'YYYY-MM-DD HH:MM[:SS]' string as local time

    Offsets present in the string are honored and converted.

    Raises:
        DateFormatError: If the string is not ISO formatted
    """
    try:
        parsed = datetime.fromisoformat(str(time_str).strip())
    except ValueError as e:
        raise DateFormatError(f"Invalid ISO datetime format: '{time_str}'") from e
    return ensure_local(parsed)


def epoch_to_local(timestamp: int | float | str) -> datetime:
    """
    Convert epoch seconds to an aware local datetime

    Raises:
        DateFormatError: If the timestamp is not numeric
    """
    try:
        return datetime.fromtimestamp(int(timestamp), local_zone())
    except (TypeError, ValueError, OverflowError, OSError) as e:
        raise DateFormatError(f"Invalid epoch timestamp: '{timestamp}'") from e


def start_of_day(moment: datetime, days_ahead: int = 0, hour: int = 0) -> datetime:
    """Local midnight (or the given hour) of moment's day plus days_ahead"""
    base = ensure_local(moment)
    day = base.date() + timedelta(days=days_ahead)
    return datetime(day.year, day.month, day.day, hour, tzinfo=base.tzinfo)
