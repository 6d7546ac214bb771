"""Report service - hourly, daily, weekly and monthly summaries."""
import logging
from datetime import MAXYEAR, MINYEAR, date, datetime, timedelta
from typing import Optional

from app.exceptions import ValidationError
from app.models.report import DayAggregate, HourBucket, MonthAggregate, WeekAggregate
from app.models.time_entry import CompletedEntry
from app.services.aggregation import (
    build_hourly_report,
    completed_between,
    summarize_day,
    summarize_month,
    summarize_week,
)
from app.services.entry_service import EntryService
from app.utils.timeframes import (
    day_bounds,
    end_of_day,
    get_zone,
    local_date,
    month_bounds,
    monday_on_or_before,
    start_of_day,
    to_storage,
    week_bounds,
)

logger = logging.getLogger(__name__)


def _whole_day(day: date, zone) -> tuple[datetime, datetime]:
    return start_of_day(day, zone), end_of_day(day, zone)


class ReportService:
    """Service that fetches an employee's entries and aggregates them."""

    def __init__(self, db, zone: Optional[str] = None):
        """
        Initialize service with database connection.

        Args:
            db: Database handle
            zone: Optional IANA zone name for day/hour boundaries
        """
        self.entries = EntryService(db)
        self.zone = get_zone(zone)

    def _check_employee(self, employee_name: str) -> str:
        """Return the name as stored (stripped); blank names are rejected."""
        if not employee_name or not employee_name.strip():
            raise ValidationError("Employee name is required")
        return employee_name.strip()

    def _window(self, bounds, *args) -> tuple[datetime, datetime]:
        """
        Compute a report window, rejecting calendar values out of range.

        Both bounds are also converted to their storage form so that a window
        touching date.min or date.max fails here rather than in the query.
        """
        try:
            lower, upper = bounds(*args, self.zone)
            to_storage(lower)
            to_storage(upper)
        except (OverflowError, ValueError) as e:
            raise ValidationError(f"Date out of range: {e}") from e
        return lower, upper

    async def _fetch(
        self,
        employee_name: str,
        lower: datetime,
        upper: datetime,
        end_exclusive: bool,
    ) -> list[CompletedEntry]:
        entries = await self.entries.list_entries(
            employee_name=employee_name,
            start_date=lower,
            end_date=upper,
            completed_only=True,
            end_exclusive=end_exclusive,
        )
        logger.debug(
            "Fetched %d entries for %s between %s and %s",
            len(entries),
            employee_name,
            lower.isoformat(),
            upper.isoformat(),
        )
        return entries

    async def get_hourly_report(
        self, employee_name: str, day: date
    ) -> list[HourBucket]:
        """
        Minutes per clock hour of ``day``, split by category.

        Args:
            employee_name: Employee whose entries are reported
            day: Calendar day (a datetime is reduced to its local date)

        Returns:
            Non-empty hours in ascending order
        """
        employee_name = self._check_employee(employee_name)
        day = local_date(day, self.zone)
        lower, upper = self._window(_whole_day, day)

        fetched = await self._fetch(employee_name, lower, upper, end_exclusive=False)
        entries = completed_between(fetched, lower, upper, self.zone, include_upper=True)

        return build_hourly_report(entries, self.zone)

    async def get_daily_report(self, employee_name: str, day: date) -> DayAggregate:
        """
        Total minutes, hours and entry count for one day.

        Returns a zeroed aggregate when nothing was recorded.
        """
        employee_name = self._check_employee(employee_name)
        day = local_date(day, self.zone)
        lower, upper = self._window(day_bounds, day)

        fetched = await self._fetch(employee_name, lower, upper, end_exclusive=True)
        return summarize_day(fetched, day, self.zone)

    async def get_weekly_report(
        self, employee_name: str, week_start: date
    ) -> WeekAggregate:
        """
        Seven-day report starting at ``week_start`` (any weekday).

        One fetch covers the whole week; the daily breakdown is carved out of
        that batch.
        """
        employee_name = self._check_employee(employee_name)
        week_start = local_date(week_start, self.zone)
        lower, upper = self._window(week_bounds, week_start)

        fetched = await self._fetch(employee_name, lower, upper, end_exclusive=False)
        return summarize_week(fetched, week_start, self.zone)

    async def get_monthly_report(
        self, employee_name: str, year: int, month: int
    ) -> MonthAggregate:
        """
        Month totals plus a weekly report for each Monday-start week touching it.

        Each week is fetched on its own and may count entries from the
        neighbouring month; the month totals never do. No weeks are produced
        for a month without entries.

        Raises:
            ValidationError: If month or year is out of range or the name is blank
        """
        employee_name = self._check_employee(employee_name)
        if not 1 <= month <= 12:
            raise ValidationError(f"Month must be between 1 and 12, got {month}")
        if not MINYEAR <= year <= MAXYEAR:
            raise ValidationError(
                f"Year must be between {MINYEAR} and {MAXYEAR}, got {year}"
            )

        lower, upper = self._window(month_bounds, year, month)
        fetched = await self._fetch(employee_name, lower, upper, end_exclusive=True)
        entries = completed_between(fetched, lower, upper, self.zone)

        weeks = []
        if entries:
            week_start = monday_on_or_before(lower.date())
            while start_of_day(week_start, self.zone) < upper:
                weeks.append(await self.get_weekly_report(employee_name, week_start))
                week_start += timedelta(days=7)

        return summarize_month(year, month, entries, weeks)
