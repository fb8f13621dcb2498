# demostats/services/time_utils.py
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Tuple


def utcnow_naive() -> datetime:
    """Current UTC time without tzinfo (match timestamps are stored naive UTC)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def start_of_day(d: date) -> datetime:
    return datetime.combine(d, time.min)


def end_of_day(d: date) -> datetime:
    return datetime.combine(d, time.max)


def leaderboard_window(days: int, now: datetime | None = None) -> Tuple[datetime, datetime]:
    """
    [start of day `days` ago, end of today] in naive UTC.
    Stable for a whole calendar day, so re-runs on the same day hit the
    same leaderboard key.
    """
    now = to_naive_utc(now) if now is not None else utcnow_naive()
    return start_of_day((now - timedelta(days=days)).date()), end_of_day(now.date())


def format_period(start: datetime, end: datetime) -> str:
    """'Oct 11 - Oct 18, 2026'"""
    return f"{start.strftime('%b')} {start.day} - {end.strftime('%b')} {end.day}, {end.year}"
