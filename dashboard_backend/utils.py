#file: dashboard_backend/utils.py

from datetime import date, datetime, timedelta
import pytz
from typing import Tuple


def utc_now() -> datetime:
    """Get current UTC time as a timezone-aware datetime."""
    return datetime.now(pytz.utc)


def local_time(moment: datetime, timezone: str) -> datetime:
    """Convert an aware datetime to the given region timezone."""
    return moment.astimezone(pytz.timezone(timezone))


def lookback_window(end: datetime, days: int) -> Tuple[date, date]:
    """Return the inclusive (start, end) dates of the `days` calendar days ending at `end`."""
    end_date = end.date()
    return end_date - timedelta(days=max(days - 1, 0)), end_date


def iso_date(day: date) -> str:
    return day.strftime("%Y-%m-%d")
