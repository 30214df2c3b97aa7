"""
Standardized Date/Time Handling Utilities

All engines compare timestamps against a single injected "now" source.

CRITICAL RULES:
- Always store datetimes as UTC (use to_utc())
- Never call datetime.now() inside an engine; take a Clock instead
- Never mix naive and aware datetimes
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

UTC = ZoneInfo("UTC")

# A clock is any zero-argument callable returning an aware datetime
Clock = Callable[[], datetime]


def now_utc() -> datetime:
    """
    Get current datetime in UTC (timezone-aware)

    Returns:
        Current datetime in UTC with timezone info
    """
    return datetime.now(UTC)


def to_utc(dt: datetime) -> datetime:
    """
    Convert datetime to UTC for storage

    Naive datetimes are assumed to already be UTC.

    Args:
        dt: Datetime to convert (can be naive or aware)

    Returns:
        Timezone-aware datetime in UTC
    """
    if dt.tzinfo is None:
        logger.debug(f"Treating naive datetime as UTC: {dt}")
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


class FixedClock:
    """
    Manually driven clock

    Useful wherever a deterministic "now" is needed (tests, replays of
    billing events). Call advance() to move time forward.
    """

    def __init__(self, start: datetime):
        self._now = to_utc(start)

    def __call__(self) -> datetime:
        return self._now

    def set(self, moment: datetime) -> None:
        self._now = to_utc(moment)

    def advance(self, delta: Optional[timedelta] = None, **kwargs) -> datetime:
        """Move the clock forward by delta (or timedelta(**kwargs))"""
        self._now = self._now + (delta if delta is not None else timedelta(**kwargs))
        return self._now


def add_months(dt: datetime, months: int) -> datetime:
    """Calendar-aware month arithmetic (Jan 31 + 1 month = Feb 28/29)"""
    return dt + relativedelta(months=months)


def add_years(dt: datetime, years: int) -> datetime:
    """Calendar-aware year arithmetic (Feb 29 + 1 year = Feb 28)"""
    return dt + relativedelta(years=years)


def whole_days_between(start: datetime, end: datetime) -> int:
    """Number of whole days from start to end (negative if end is earlier)"""
    delta = end - start
    if delta < timedelta(0):
        return -((-delta).days)
    return delta.days
