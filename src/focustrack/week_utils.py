"""Calendar boundary utilities for streaks, challenges and leaderboards.

Day, week and month keys are computed in a caller-supplied IANA timezone so
that "today" matches the community's local calendar. All returned instants
are aware UTC datetimes.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    """Default clock: aware UTC now."""
    return datetime.now(timezone.utc)


@lru_cache(maxsize=32)
def get_zone(name: str) -> ZoneInfo:
    """Resolve and cache an IANA timezone."""
    return ZoneInfo(name)


def to_local(dt: datetime, tz: str = "UTC") -> datetime:
    """Convert an aware datetime into the given timezone."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(get_zone(tz))


def local_date(dt: datetime, tz: str = "UTC") -> date:
    """Calendar date of dt in the given timezone."""
    return to_local(dt, tz).date()


def get_day_key(dt: datetime, tz: str = "UTC") -> str:
    """Get a 'YYYY-MM-DD' day key."""
    return local_date(dt, tz).isoformat()


def get_month_key(dt: datetime, tz: str = "UTC") -> str:
    """Get a 'YYYY-MM' month key."""
    return local_date(dt, tz).strftime("%Y-%m")


def get_week_iso(dt: datetime | date, tz: str = "UTC") -> str:
    """Get ISO week string e.g. '2026-W09'. Uses %G-W%V (ISO year + ISO week)."""
    d = local_date(dt, tz) if isinstance(dt, datetime) else dt
    return d.strftime("%G-W%V")


def get_monday(dt: datetime | date) -> date:
    """Get the Monday of the ISO week containing dt."""
    d = dt.date() if isinstance(dt, datetime) else dt
    return d - timedelta(days=d.weekday())


def iso_week_to_dates(week_iso: str) -> tuple[date, date]:
    """Convert '2026-W09' to (Monday date, Sunday date)."""
    monday = datetime.strptime(week_iso + "-1", "%G-W%V-%u").date()
    return monday, monday + timedelta(days=6)


def previous_week_iso(week_iso: str) -> str:
    """ISO week key of the week before week_iso."""
    monday, _ = iso_week_to_dates(week_iso)
    return get_week_iso(monday - timedelta(days=7))


def _local_midnight(d: date, tz: str) -> datetime:
    return datetime.combine(d, time.min, tzinfo=get_zone(tz)).astimezone(timezone.utc)


def get_week_boundaries(week_iso: str, tz: str = "UTC") -> tuple[datetime, datetime]:
    """Get (Monday 00:00, Sunday 23:59:59) local time for an ISO week, as UTC instants."""
    monday, sunday = iso_week_to_dates(week_iso)
    start = _local_midnight(monday, tz)
    end = datetime.combine(sunday, time(23, 59, 59), tzinfo=get_zone(tz)).astimezone(timezone.utc)
    return start, end


def start_of_day(now: datetime, tz: str = "UTC") -> datetime:
    """Local midnight of the day containing now."""
    return _local_midnight(local_date(now, tz), tz)


def start_of_week(now: datetime, tz: str = "UTC") -> datetime:
    """Local Monday 00:00 of the ISO week containing now."""
    return _local_midnight(get_monday(local_date(now, tz)), tz)


def start_of_month(now: datetime, tz: str = "UTC") -> datetime:
    """Local 00:00 on the first of the month containing now."""
    return _local_midnight(local_date(now, tz).replace(day=1), tz)


def days_strictly_between(first: date, last: date) -> Iterator[date]:
    """Yield each calendar day after first and before last."""
    d = first + timedelta(days=1)
    while d < last:
        yield d
        d += timedelta(days=1)


def calculate_percentile(rank: int, total: int) -> float:
    """Calculate percentile from rank and total participants.

    Rank 1 out of 100 → 99.0 (top 1%)
    Rank 100 out of 100 → 0.0 (bottom)
    """
    if total <= 0 or rank <= 0:
        return 0.0
    return round(100 - (rank / total * 100), 2)


def next_week_iso(week_iso: str) -> str:
    """ISO week key of the week after week_iso."""
    monday, _ = iso_week_to_dates(week_iso)
    return get_week_iso(monday + timedelta(days=7))
