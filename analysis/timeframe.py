"""Timezone-aware period boundaries and symbolic timeframe resolution.

All boundaries are local midnights of the account timezone, returned as
UTC instants. Every function takes an optional ``now`` so callers (and tests)
can evaluate against a fixed instant instead of the wall clock.
"""
import logging
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class InvalidTimezoneError(ValueError):
    """Raised when a timezone name is not a known IANA zone"""


class Timeframe(str, Enum):
    THIS_WEEK = "thisweek"
    THIS_MONTH = "thismonth"
    THIS_YEAR = "thisyear"
    LAST_WEEK = "lastweek"
    LAST_MONTH = "lastmonth"
    LAST_YEAR = "lastyear"
    LAST_7_DAYS = "last7days"
    LAST_30_DAYS = "last30days"


class ResolvedTimeframe(BaseModel):
    """Absolute half-open range ``[date_from, date_to)`` for a timeframe token"""
    date_from: datetime
    date_to: datetime
    timeframe: Timeframe


def get_zone(timezone_name: str) -> ZoneInfo:
    """Resolve an IANA timezone name, failing loudly on unknown zones"""
    if not timezone_name:
        raise InvalidTimezoneError("Timezone is required")
    # Legacy account records store "America/New York" style names
    name = timezone_name.strip().replace(" ", "_")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidTimezoneError(f"Invalid timezone: {timezone_name}") from e


def _utc_now(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def local_today(timezone_name: str, now: Optional[datetime] = None) -> date:
    """Calendar date of ``now`` in the given timezone"""
    return _utc_now(now).astimezone(get_zone(timezone_name)).date()


def local_midnight(day: date, timezone_name: str) -> datetime:
    """Local midnight of ``day`` expressed as a UTC instant"""
    zone = get_zone(timezone_name)
    return datetime.combine(day, time(0, 0), tzinfo=zone).astimezone(timezone.utc)


def get_days_ago(days: int, timezone_name: str, now: Optional[datetime] = None) -> datetime:
    """Local midnight ``days`` days before today; negative values look ahead"""
    today = local_today(timezone_name, now)
    return local_midnight(today - timedelta(days=days), timezone_name)


def shift_local_days(instant: datetime, days: int, timezone_name: str) -> datetime:
    """Move a local-midnight instant by whole local days, honouring DST"""
    local_day = _utc_now(instant).astimezone(get_zone(timezone_name)).date()
    return local_midnight(local_day + timedelta(days=days), timezone_name)


def format_local_date(instant: datetime, timezone_name: str) -> str:
    """ISO ``YYYY-MM-DD`` of an instant as seen in the given timezone"""
    return _utc_now(instant).astimezone(get_zone(timezone_name)).date().isoformat()


def days_to_week_beginning(timezone_name: str, modifier: int = 0, now: Optional[datetime] = None) -> int:
    """Days from local today back to Monday of the week ``modifier`` cycles away"""
    today = local_today(timezone_name, now)
    return today.weekday() - 7 * modifier


def days_to_month_beginning(timezone_name: str, modifier: int = 0, now: Optional[datetime] = None) -> int:
    """Days from local today back to the 1st of the month ``modifier`` cycles away"""
    today = local_today(timezone_name, now)
    months = today.year * 12 + (today.month - 1) + modifier
    start = date(months // 12, months % 12 + 1, 1)
    return (today - start).days


def days_to_year_beginning(timezone_name: str, modifier: int = 0, now: Optional[datetime] = None) -> int:
    """Days from local today back to Jan 1 of the year ``modifier`` cycles away"""
    today = local_today(timezone_name, now)
    return (today - date(today.year + modifier, 1, 1)).days


def resolve_timeframe(timezone_name: str, timeframe: str, now: Optional[datetime] = None) -> ResolvedTimeframe:
    """Resolve a timeframe token into absolute dates.

    Unknown tokens fall back to ``last30days``. The timezone is validated
    first, so an invalid zone raises even for unknown tokens.
    """
    get_zone(timezone_name)

    today = get_days_ago(0, timezone_name, now)
    tomorrow = get_days_ago(-1, timezone_name, now)

    def days_ago(days: int) -> datetime:
        return get_days_ago(days, timezone_name, now)

    if timeframe == Timeframe.THIS_WEEK.value:
        return ResolvedTimeframe(
            date_from=days_ago(days_to_week_beginning(timezone_name, now=now)),
            date_to=tomorrow,
            timeframe=Timeframe.THIS_WEEK,
        )
    if timeframe == Timeframe.THIS_MONTH.value:
        return ResolvedTimeframe(
            date_from=days_ago(days_to_month_beginning(timezone_name, now=now)),
            date_to=tomorrow,
            timeframe=Timeframe.THIS_MONTH,
        )
    if timeframe == Timeframe.THIS_YEAR.value:
        return ResolvedTimeframe(
            date_from=days_ago(days_to_year_beginning(timezone_name, now=now)),
            date_to=tomorrow,
            timeframe=Timeframe.THIS_YEAR,
        )
    if timeframe == Timeframe.LAST_WEEK.value:
        return ResolvedTimeframe(
            date_from=days_ago(days_to_week_beginning(timezone_name, -1, now=now)),
            date_to=days_ago(days_to_week_beginning(timezone_name, now=now)),
            timeframe=Timeframe.LAST_WEEK,
        )
    if timeframe == Timeframe.LAST_MONTH.value:
        return ResolvedTimeframe(
            date_from=days_ago(days_to_month_beginning(timezone_name, -1, now=now)),
            date_to=days_ago(days_to_month_beginning(timezone_name, now=now)),
            timeframe=Timeframe.LAST_MONTH,
        )
    if timeframe == Timeframe.LAST_YEAR.value:
        return ResolvedTimeframe(
            date_from=days_ago(days_to_year_beginning(timezone_name, -1, now=now)),
            date_to=days_ago(days_to_year_beginning(timezone_name, now=now)),
            timeframe=Timeframe.LAST_YEAR,
        )
    if timeframe == Timeframe.LAST_7_DAYS.value:
        return ResolvedTimeframe(
            date_from=days_ago(7),
            date_to=today,
            timeframe=Timeframe.LAST_7_DAYS,
        )

    if timeframe != Timeframe.LAST_30_DAYS.value:
        logger.warning("Unknown timeframe, falling back to last30days", extra={
            "timezone": timezone_name,
            "timeframe": timeframe,
        })

    return ResolvedTimeframe(
        date_from=days_ago(30),
        date_to=tomorrow,
        timeframe=Timeframe.LAST_30_DAYS,
    )
