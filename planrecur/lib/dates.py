"""
Shared date and time utilities for the recurrence engine.

Weekday numbering used throughout the wire format is the one the
stored records use: 0=Sunday ... 6=Saturday.  Python's own
``date.weekday()`` is 0=Monday, so conversions go through
``js_weekday()`` / ``py_weekday()``.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo

from dateutil import tz as dateutil_tz
from dateutil.parser import isoparse


def resolve_tz(zone: str | tzinfo | None) -> tzinfo | None:
    """Turn a time zone name (or tzinfo) into a tzinfo.

    ``None`` means "keep whatever offset the timestamp carries".

    Raises:
        ValueError: If the zone name is not known.
    """
    if zone is None or isinstance(zone, tzinfo):
        return zone
    if zone.lower() == "local":
        return dateutil_tz.tzlocal()
    resolved = dateutil_tz.gettz(zone)
    if resolved is None:
        raise ValueError(f"Unknown time zone: {zone!r}")
    return resolved


def parse_instant(value: str | datetime | date | None) -> datetime | None:
    """Parse an ISO 8601 instant.

    Examples:
        "2025-03-01T09:00:00.000Z" → datetime(2025, 3, 1, 9, 0, tzinfo=UTC)
        "2025-03-01"               → datetime(2025, 3, 1, 0, 0, tzinfo=UTC)
        None                       → None

    Naive values are taken to be UTC, so that the result is always
    comparable with other parsed instants.

    Raises:
        ValueError: If the string cannot be parsed.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time(0, 0))
    else:
        dt = isoparse(str(value).strip())
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def parse_date(value: str | datetime | date | None) -> date | None:
    """Parse a calendar date.

    Accepts ``YYYY-MM-DD``, the compact ``YYYYMMDD`` used by ``UNTIL``,
    full ISO instants (the date part as written is used) and date or
    datetime objects.

    Raises:
        ValueError: If the string cannot be parsed.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value).strip()
    if len(s) >= 8 and s[:8].isdigit():
        return date(int(s[0:4]), int(s[4:6]), int(s[6:8]))
    return isoparse(s).date()


def localize(dt: datetime, zone: tzinfo | None) -> datetime:
    """Convert ``dt`` into ``zone``, or leave it alone if zone is None."""
    if zone is None:
        return dt
    return dt.astimezone(zone)


def day_of(value: str | datetime | date, zone: tzinfo | None = None) -> date:
    """The whole calendar day a value falls on, seen from ``zone``."""
    if isinstance(value, datetime):
        return localize(value, zone).date() if value.tzinfo else value.date()
    if isinstance(value, date):
        return value
    s = str(value).strip()
    if "T" not in s and " " not in s:
        ## a plain date names the day itself, whatever the zone
        return parse_date(s)
    return localize(parse_instant(s), zone).date()


def format_date(d: date) -> str:
    """``date(2025, 3, 1)`` → ``"2025-03-01"``"""
    return d.strftime("%Y-%m-%d")


def format_rule_date(d: date) -> str:
    """``date(2025, 3, 1)`` → ``"20250301"`` (the ``UNTIL`` form)"""
    return d.strftime("%Y%m%d")


def format_hhmm(dt: datetime | time) -> str:
    return dt.strftime("%H:%M")


def parse_hhmm(value: str) -> time:
    """``"09:30"`` → ``time(9, 30)``

    Raises:
        ValueError: If the value is not HH:MM (seconds are tolerated).
    """
    parts = value.strip().split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        raise ValueError(f"Invalid time of day: {value!r}")
    return time(int(parts[0]), int(parts[1]))


def js_weekday(d: date) -> int:
    """Weekday with 0=Sunday ... 6=Saturday"""
    return (d.weekday() + 1) % 7


def py_weekday(js_index: int) -> int:
    """0=Sunday based index → Python's 0=Monday based index"""
    return (js_index - 1) % 7


def week_start(d: date) -> date:
    """The Monday starting the week ``d`` belongs to"""
    return d - timedelta(days=d.weekday())


def minutes_between(start: datetime | None, end: datetime | None) -> int:
    """Whole minutes from start to end; 0 if either is missing or end <= start"""
    if start is None or end is None or end <= start:
        return 0
    return int((end - start).total_seconds() // 60)
