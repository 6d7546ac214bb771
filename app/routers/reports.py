"""Report endpoints - aggregated time per hour, day, week and month."""
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query

from app.database import get_database
from app.exceptions import ValidationError
from app.models.report import DayAggregate, HourBucket, MonthAggregate, WeekAggregate
from app.services.report_service import ReportService


router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/hourly", response_model=list[HourBucket])
async def get_hourly_report(
    employee_name: str = Query(...),
    day: date = Query(..., alias="date"),
    db=Depends(get_database),
):
    """
    Minutes per clock hour for one day, split by category.

    - Hours without activity are omitted
    """
    service = ReportService(db)
    try:
        return await service.get_hourly_report(employee_name, day)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/daily", response_model=DayAggregate)
async def get_daily_report(
    employee_name: str = Query(...),
    day: date = Query(..., alias="date"),
    db=Depends(get_database),
):
    """Totals for one day."""
    service = ReportService(db)
    try:
        return await service.get_daily_report(employee_name, day)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/weekly", response_model=WeekAggregate)
async def get_weekly_report(
    employee_name: str = Query(...),
    week_start: date = Query(...),
    db=Depends(get_database),
):
    """
    Totals for the seven days starting at week_start.

    - Always returns seven daily entries
    """
    service = ReportService(db)
    try:
        return await service.get_weekly_report(employee_name, week_start)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/monthly", response_model=MonthAggregate)
async def get_monthly_report(
    employee_name: str = Query(...),
    year: int = Query(...),
    month: int = Query(...),
    db=Depends(get_database),
):
    """
    Totals for a calendar month with a weekly breakdown.

    - weekly_breakdown is empty when the month has no entries
    """
    service = ReportService(db)
    try:
        return await service.get_monthly_report(employee_name, year, month)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
