"""Report model definitions."""
from datetime import date, datetime

from pydantic import BaseModel, Field

from app.models.time_entry import Category


class ActivitySummary(BaseModel):
    """Minutes and entry count for one category inside an hour."""

    category: Category
    minutes: int
    entries: int


class HourBucket(BaseModel):
    """One clock hour of an hourly report."""

    hour: int = Field(ge=0, le=23)
    total_minutes: int
    activities: list[ActivitySummary]


class DayAggregate(BaseModel):
    """Totals for one calendar day."""

    date: date
    total_hours: float
    total_minutes: int
    entries_count: int


class WeekAggregate(BaseModel):
    """Totals for seven consecutive days with a per-day breakdown."""

    week_start: datetime
    week_end: datetime
    total_hours: float
    total_minutes: int
    entries_count: int
    daily_breakdown: list[DayAggregate] = Field(min_length=7, max_length=7)


class MonthAggregate(BaseModel):
    """Totals for a calendar month with the weeks that intersect it."""

    year: int
    month: int = Field(ge=1, le=12)
    total_hours: float
    total_minutes: int
    entries_count: int
    weekly_breakdown: list[WeekAggregate]
