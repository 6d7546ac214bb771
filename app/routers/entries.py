"""Entry endpoints - start, stop and manage time entries."""
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.database import get_database
from app.exceptions import InvalidStateError, NotFoundError, ValidationError
from app.models.time_entry import (
    CompletedEntry,
    RunningEntry,
    TimeEntry,
    TimeEntryCreate,
    TimeEntryUpdate,
)
from app.services.entry_service import EntryService


router = APIRouter(prefix="/entries", tags=["entries"])


@router.post("", response_model=RunningEntry, status_code=status.HTTP_201_CREATED)
async def create_entry(
    entry_create: TimeEntryCreate,
    db=Depends(get_database),
):
    """
    Start recording a new entry.

    - start_time is set to now
    - The entry stays running until stopped
    """
    service = EntryService(db)
    return await service.create_entry(entry_create=entry_create)


@router.get("", response_model=list[TimeEntry])
async def list_entries(
    employee_name: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    completed_only: bool = Query(False),
    db=Depends(get_database),
):
    """
    List time entries.

    - Optional filters: employee_name, start_date, end_date, completed_only
    - Without employee_name, entries of all employees are returned
    - Results sorted by start_time descending (most recent first)
    """
    service = EntryService(db)
    return await service.list_entries(
        employee_name=employee_name,
        start_date=start_date,
        end_date=end_date,
        completed_only=completed_only,
    )


@router.get("/{entry_id}", response_model=TimeEntry)
async def get_entry(
    entry_id: str,
    db=Depends(get_database),
):
    """Get a specific time entry by ID."""
    service = EntryService(db)
    try:
        return await service.get_entry(entry_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{entry_id}/stop", response_model=CompletedEntry)
async def stop_entry(
    entry_id: str,
    db=Depends(get_database),
):
    """
    Stop a running entry.

    - end_time is set to now and duration_minutes computed
    - Returns 409 if the entry was already stopped
    """
    service = EntryService(db)
    try:
        return await service.stop_entry(entry_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStateError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.patch("/{entry_id}", response_model=TimeEntry)
async def update_entry(
    entry_id: str,
    entry_update: TimeEntryUpdate,
    db=Depends(get_database),
):
    """
    Update a time entry.

    - Only provided fields change
    - Supplying end_time recomputes duration_minutes
    """
    service = EntryService(db)
    try:
        return await service.update_entry(
            entry_id=entry_id,
            entry_update=entry_update,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{entry_id}")
async def delete_entry(
    entry_id: str,
    db=Depends(get_database),
):
    """
    Delete a time entry.

    - Hard delete (permanent)
    - Deleting an unknown ID still succeeds
    """
    service = EntryService(db)
    return await service.delete_entry(entry_id)
