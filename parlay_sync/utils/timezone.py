"""
Timezone utilities.

All instants are handled as timezone-aware UTC datetimes. NFL kickoffs are
scheduled in Eastern Time, so calendar-day comparisons ("same day") are made
in a configurable local zone, America/New_York by default. A late Monday
night kickoff at 00:15 UTC is still Monday in the schedule's calendar.
"""
from datetime import datetime, date, timezone
from functools import lru_cache
from typing import Union
from zoneinfo import ZoneInfo

DEFAULT_LOCAL_TIMEZONE = "America/New_York"


def ensure_utc(value: datetime) -> datetime:
    """
    Return ``value`` as an aware UTC datetime.

    Naive datetimes are assumed to already be UTC (SQLite drops tzinfo and
    feeds send ``Z``-suffixed ISO strings).
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_iso_datetime(value: Union[str, datetime]) -> datetime:
    """Parse an ISO-8601 string (``Z`` suffix allowed) into aware UTC."""
    if isinstance(value, datetime):
        return ensure_utc(value)
    return ensure_utc(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))


@lru_cache(maxsize=16)
def _zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def local_calendar_date(value: datetime, tz_name: str = DEFAULT_LOCAL_TIMEZONE) -> date:
    """Calendar date of ``value`` as seen in ``tz_name``."""
    return ensure_utc(value).astimezone(_zone(tz_name)).date()


def is_valid_timezone(tz_name: str) -> bool:
    try:
        _zone(tz_name)
    except (KeyError, ValueError):
        return False
    return True
