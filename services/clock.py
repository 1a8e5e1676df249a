"""Time helpers for retention cutoffs, grid rounding and local day keys."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional

RETENTION_DAYS = 7
QUARTER_HOUR = timedelta(minutes=15)
SLOTS_PER_DAY = 96
WINDOW_GRACE = timedelta(hours=1)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)
_QUARTER_HOUR_MS = QUARTER_HOUR // _ONE_MS


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_epoch_ms(value: datetime) -> int:
    """Whole milliseconds since the Unix epoch for an aware datetime."""
    return (value - _EPOCH) // _ONE_MS


def from_epoch_ms(value: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=value)


def local_midnight_n_days_ago(n: int, tz: tzinfo, now: Optional[datetime] = None) -> datetime:
    """Local midnight of the day that falls ``n`` times 24 hours before ``now``."""
    current = now if now is not None else utcnow()
    # Elapsed time, not wall-clock days.
    local = (current.astimezone(timezone.utc) - timedelta(days=n)).astimezone(tz)
    return local.replace(hour=0, minute=0, second=0, microsecond=0)


def round_to_nearest_quarter_hour(value: datetime) -> datetime:
    """Snap ``value`` to the closest 15-minute grid instant, rounding halves up."""
    ms = to_epoch_ms(value)
    rounded = (ms + _QUARTER_HOUR_MS // 2) // _QUARTER_HOUR_MS * _QUARTER_HOUR_MS
    return from_epoch_ms(rounded)


def window_cutoff(tz: tzinfo, now: Optional[datetime] = None) -> datetime:
    """Oldest raw timestamp the rolling window retains."""
    return local_midnight_n_days_ago(RETENTION_DAYS, tz, now) - WINDOW_GRACE


def serving_cutoff(launch_day: datetime, tz: tzinfo, now: Optional[datetime] = None) -> datetime:
    """Oldest quantized timestamp that may appear in a published snapshot."""
    return max(launch_day, local_midnight_n_days_ago(RETENTION_DAYS, tz, now))


def initial_watermark(launch_day: datetime, tz: tzinfo, now: Optional[datetime] = None) -> datetime:
    return serving_cutoff(launch_day, tz, now) - WINDOW_GRACE


def local_day(value: datetime, tz: tzinfo) -> date:
    return value.astimezone(tz).date()


def slots_in_day(day: date, tz: tzinfo) -> int:
    """Number of 15-minute slots between local midnight of ``day`` and the next one.

    96 for regular days; daylight-saving transitions shorten or lengthen it.
    """
    start = datetime.combine(day, time(), tzinfo=tz).astimezone(timezone.utc)
    end = datetime.combine(day + timedelta(days=1), time(), tzinfo=tz).astimezone(timezone.utc)
    return (end - start) // QUARTER_HOUR


def format_day_key(day: date) -> str:
    """Render ``day`` as ``YYYY-M-D`` without zero padding."""
    return f"{day.year}-{day.month}-{day.day}"
