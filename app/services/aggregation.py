"""Report aggregation - pure functions over already-fetched entries.

Nothing here touches the database. Callers pass in whatever the fetch
returned; every function re-filters to completed entries inside its own
window, so a loose fetch never leaks into a total.
"""
from datetime import date, datetime, timedelta
from typing import Iterable, NamedTuple
from zoneinfo import ZoneInfo

from app.models.report import (
    ActivitySummary,
    DayAggregate,
    HourBucket,
    MonthAggregate,
    WeekAggregate,
)
from app.models.time_entry import Category, CompletedEntry
from app.utils.timeframes import day_bounds, to_local, week_bounds


class HourShare(NamedTuple):
    """Minutes (and entry count) one entry contributes to one clock hour."""

    hour: int
    minutes: int
    entries: int


def split_into_hours(
    start: datetime, end: datetime, duration_minutes: int
) -> list[HourShare]:
    """
    Distribute an entry's minutes over the clock hours it touches.

    Args:
        start: Local start time
        end: Local end time
        duration_minutes: Stored duration of the entry

    Returns:
        Shares in hour order. The entry is counted once, in its first hour.

    Example:
        09:30 -> 11:00 (90 min) gives [(9, 30, 1), (10, 60, 0)]
    """
    last_hour, last_minute = end.hour, end.minute
    if end.date() > start.date():
        # Clip at midnight; the remainder belongs to the next day
        last_hour, last_minute = 24, 0

    if start.hour == last_hour:
        return [HourShare(start.hour, duration_minutes, 1)]

    shares = []
    for hour in range(start.hour, min(last_hour, 23) + 1):
        if hour == start.hour:
            minutes = 60 - start.minute
        elif hour == last_hour:
            minutes = last_minute
        else:
            minutes = 60

        if minutes > 0:
            shares.append(HourShare(hour, minutes, 1 if hour == start.hour else 0))

    return shares


def completed_between(
    entries: Iterable,
    lower: datetime,
    upper: datetime,
    zone: ZoneInfo,
    include_upper: bool = False,
) -> list[CompletedEntry]:
    """Completed entries whose local start lies in ``[lower, upper)`` (or ``[lower, upper]``)."""
    selected = []
    for entry in entries:
        if not isinstance(entry, CompletedEntry):
            continue
        started = to_local(entry.start_time, zone)
        if started < lower:
            continue
        if started > upper or (started == upper and not include_upper):
            continue
        selected.append(entry)
    return selected


def _total_minutes(entries: list[CompletedEntry]) -> int:
    return sum(entry.duration_minutes for entry in entries)


def build_hourly_report(
    entries: Iterable[CompletedEntry], zone: ZoneInfo
) -> list[HourBucket]:
    """
    Bucket entries into clock hours with per-category sub-totals.

    Returns only non-empty hours, ascending. Categories inside an hour are
    ordered by minutes descending; ties keep first-seen order.
    """
    # hour -> category -> [minutes, entries], categories in first-seen order
    slots: list[dict[Category, list[int]]] = [{} for _ in range(24)]

    for entry in entries:
        category = Category(entry.category)
        start = to_local(entry.start_time, zone)
        end = to_local(entry.end_time, zone)

        for share in split_into_hours(start, end, entry.duration_minutes):
            tally = slots[share.hour].setdefault(category, [0, 0])
            tally[0] += share.minutes
            tally[1] += share.entries

    report = []
    for hour, activities in enumerate(slots):
        if not activities:
            continue
        summaries = sorted(
            (
                ActivitySummary(category=category, minutes=minutes, entries=count)
                for category, (minutes, count) in activities.items()
            ),
            key=lambda activity: activity.minutes,
            reverse=True,
        )
        report.append(
            HourBucket(
                hour=hour,
                total_minutes=sum(activity.minutes for activity in summaries),
                activities=summaries,
            )
        )
    return report


def summarize_day(entries: Iterable, day: date, zone: ZoneInfo) -> DayAggregate:
    """Totals for entries starting within ``day`` (half-open local window)."""
    lower, upper = day_bounds(day, zone)
    matching = completed_between(entries, lower, upper, zone)
    total_minutes = _total_minutes(matching)
    return DayAggregate(
        date=day,
        total_hours=total_minutes / 60,
        total_minutes=total_minutes,
        entries_count=len(matching),
    )


def summarize_week(entries: Iterable, week_start: date, zone: ZoneInfo) -> WeekAggregate:
    """
    Seven daily aggregates from ``week_start`` plus their sum.

    Week totals are derived from the days, so they always reconcile.
    """
    lower, upper = week_bounds(week_start, zone)
    in_week = completed_between(entries, lower, upper, zone, include_upper=True)

    days = [
        summarize_day(in_week, week_start + timedelta(days=offset), zone)
        for offset in range(7)
    ]
    total_minutes = sum(day.total_minutes for day in days)

    return WeekAggregate(
        week_start=lower,
        week_end=upper,
        total_hours=total_minutes / 60,
        total_minutes=total_minutes,
        entries_count=sum(day.entries_count for day in days),
        daily_breakdown=days,
    )


def summarize_month(
    year: int,
    month: int,
    entries: list[CompletedEntry],
    weeks: list[WeekAggregate],
) -> MonthAggregate:
    """
    Month totals over ``entries`` with ``weeks`` attached as-is.

    ``entries`` must already be limited to the month. The weeks are computed
    independently and may include days outside it, so their sum is not
    expected to match the month totals at the boundaries.
    """
    total_minutes = _total_minutes(entries)
    return MonthAggregate(
        year=year,
        month=month,
        total_hours=total_minutes / 60,
        total_minutes=total_minutes,
        entries_count=len(entries),
        weekly_breakdown=weeks,
    )
