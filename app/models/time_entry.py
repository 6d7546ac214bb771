"""Time entry model definitions."""
from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


class Category(str, Enum):
    """Activity categories an entry can be tagged with."""

    TICKET = "Ticket"
    COORDINATION = "Coordination"
    MEETING = "Meeting"
    ADHOC_PROJECT = "Adhoc/Project"
    DEVELOPMENT_TESTING = "Development & Testing"
    OTHER = "Other"


def _require_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("Employee name is required")
    return value


class TimeEntryBase(BaseModel):
    """Base time entry fields."""

    employee_name: str
    category: Category
    ticket_number: Optional[str] = None
    line_items: int = Field(default=0, ge=0)


class TimeEntryCreate(TimeEntryBase):
    """Time entry creation model (starts a running entry)."""

    @field_validator("employee_name")
    @classmethod
    def employee_name_not_blank(cls, value):
        return _require_name(value)


class TimeEntryUpdate(BaseModel):
    """Time entry update model - all fields optional."""

    employee_name: Optional[str] = None
    category: Optional[Category] = None
    ticket_number: Optional[str] = None
    line_items: Optional[int] = Field(default=None, ge=0)
    end_time: Optional[datetime] = None

    @field_validator("employee_name")
    @classmethod
    def employee_name_not_blank(cls, value):
        return _require_name(value)


class RunningEntry(TimeEntryBase):
    """Entry whose clock is still running."""

    id: str = Field(alias="_id", serialization_alias="id")
    status: Literal["running"] = "running"
    start_time: datetime
    end_time: None = None
    duration_minutes: None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"populate_by_name": True}


class CompletedEntry(TimeEntryBase):
    """Entry that has been stopped; the only kind that is reported on."""

    id: str = Field(alias="_id", serialization_alias="id")
    status: Literal["completed"] = "completed"
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    created_at: datetime
    updated_at: datetime

    model_config = {"populate_by_name": True}


TimeEntry = Annotated[Union[RunningEntry, CompletedEntry], Field(discriminator="status")]
