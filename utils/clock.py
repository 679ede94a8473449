# utils/clock.py
"""
Single source of "now" for the app.

Call sites use ``clock.now_utc()`` (module attribute lookup) so tests can
monkeypatch the clock in one place.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

log = logging.getLogger(__name__)

# Used when the host has no tz database (slim containers)
_FIXED_OFFSETS = {
    "Asia/Kolkata": (timedelta(hours=5, minutes=30), "IST"),
    "Asia/Calcutta": (timedelta(hours=5, minutes=30), "IST"),
    "UTC": (timedelta(0), "UTC"),
}


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """Treat naive datetimes (as read back from the DB) as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_db(dt: datetime) -> datetime:
    """Naive UTC for DateTime columns."""
    return as_utc(dt).replace(tzinfo=None)


def get_tz(name: str) -> tzinfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        fixed = _FIXED_OFFSETS.get(name)
        if fixed is None:
            log.warning("[clock] unknown timezone %r; falling back to UTC", name)
            return timezone.utc
        return timezone(*fixed)
