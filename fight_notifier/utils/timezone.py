"""Timezone conversion and display utilities"""
import calendar
from datetime import datetime
from typing import Optional
import pytz

DEFAULT_DISPLAY_TZ = "America/Los_Angeles"


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    Args:
        dt: Datetime object; naive values are taken to be UTC already

    Returns:
        Naive datetime object in UTC
    """
    if dt.tzinfo is None:
        dt = pytz.UTC.localize(dt)

    return dt.astimezone(pytz.UTC).replace(tzinfo=None)


def now_utc() -> datetime:
    """Get current UTC time as naive datetime"""
    return datetime.now(pytz.UTC).replace(tzinfo=None)


def parse_api_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an upstream timestamp such as '2025-07-26T16:00Z'.

    Returns:
        Naive UTC datetime, or None if the value is missing or unparseable
    """
    if not value or not isinstance(value, str):
        return None
    try:
        return to_utc(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))
    except ValueError:
        return None


def format_event_datetime(value, tz: str = DEFAULT_DISPLAY_TZ) -> str:
    """
    Format an event start for display, e.g. 'Saturday, July 26, 2025 at 9:00 AM PDT'.

    Args:
        value: Naive UTC datetime or upstream timestamp string
        tz: Display timezone name

    Returns:
        Formatted string, or 'Date/Time TBA' when the value can't be used
    """
    dt = value if isinstance(value, datetime) else parse_api_datetime(value)
    if dt is None:
        return "Date/Time TBA"
    try:
        local = pytz.UTC.localize(dt).astimezone(pytz.timezone(tz))
    except (pytz.UnknownTimeZoneError, ValueError):
        return "Date/Time TBA"

    hour = local.hour % 12 or 12
    date_part = f"{local:%A, %B} {local.day}, {local.year}"
    time_part = f"{hour}:{local:%M} {local:%p} {local.tzname()}"
    return f"{date_part} at {time_part}"


def add_months(dt: datetime, months: int) -> datetime:
    """Shift a datetime by whole calendar months, clamping the day to the target month"""
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)
