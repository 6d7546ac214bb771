"""Calendar window helpers for reports.

Timestamps are stored as naive UTC. Report windows (days, weeks, months) and
clock hours are expressed in the configured local zone, so every comparison
goes through ``to_local`` and every query bound through ``to_storage``.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from app.config import settings

END_OF_DAY = time(23, 59, 59, 999000)


def get_zone(name: Optional[str] = None) -> ZoneInfo:
    """Return the report time zone (defaults to settings.timezone)."""
    return ZoneInfo(name or settings.timezone)


def to_local(moment: datetime, zone: ZoneInfo) -> datetime:
    """
    Convert a timestamp to an aware datetime in ``zone``.

    Naive values are treated as UTC, which is how MongoDB returns them.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(zone)


def to_storage(moment: datetime) -> datetime:
    """Convert a timestamp to the naive UTC form used in the database."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def local_date(value: date, zone: ZoneInfo) -> date:
    """Calendar date of ``value``; datetimes are first moved into ``zone``."""
    if isinstance(value, datetime):
        return to_local(value, zone).date()
    return value


def start_of_day(day: date, zone: ZoneInfo) -> datetime:
    """Local midnight at the start of ``day``."""
    return datetime.combine(day, time.min, tzinfo=zone)


def end_of_day(day: date, zone: ZoneInfo) -> datetime:
    """Local 23:59:59.999 of ``day``."""
    return datetime.combine(day, END_OF_DAY, tzinfo=zone)


def day_bounds(day: date, zone: ZoneInfo) -> tuple[datetime, datetime]:
    """Half-open window ``[day 00:00, next day 00:00)``."""
    return start_of_day(day, zone), start_of_day(day + timedelta(days=1), zone)


def week_bounds(week_start: date, zone: ZoneInfo) -> tuple[datetime, datetime]:
    """Closed window from ``week_start`` 00:00 to six days later at 23:59:59.999."""
    return start_of_day(week_start, zone), end_of_day(week_start + timedelta(days=6), zone)


def month_bounds(year: int, month: int, zone: ZoneInfo) -> tuple[datetime, datetime]:
    """Half-open window ``[first of month, first of next month)``."""
    first = date(year, month, 1)
    if month == 12:
        following = date(year + 1, 1, 1)
    else:
        following = date(year, month + 1, 1)
    return start_of_day(first, zone), start_of_day(following, zone)


def monday_on_or_before(day: date) -> date:
    """Monday of the ISO week containing ``day``."""
    return day - timedelta(days=day.weekday())
