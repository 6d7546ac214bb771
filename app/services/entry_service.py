"""Entry service - business logic for recording time."""
import logging
import math
from datetime import datetime
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId

from app.database import TIME_ENTRIES
from app.exceptions import InvalidStateError, NotFoundError, ValidationError
from app.models.time_entry import (
    CompletedEntry,
    RunningEntry,
    TimeEntry,
    TimeEntryCreate,
    TimeEntryUpdate,
)
from app.utils.timeframes import to_storage

logger = logging.getLogger(__name__)


def calculate_duration(start_time: datetime, end_time: datetime) -> int:
    """
    Calculate duration in whole minutes between start and end time.

    Halves round up: 90.5 minutes is 91.

    Args:
        start_time: Start time
        end_time: End time

    Returns:
        Duration in minutes
    """
    delta = to_storage(end_time) - to_storage(start_time)
    return math.floor(delta.total_seconds() / 60 + 0.5)


def _parse_id(entry_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(entry_id)
    except (InvalidId, TypeError):
        return None


class EntryService:
    """Service for creating, stopping and querying time entries."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.time_entries = db[TIME_ENTRIES]

    def _doc_to_entry(self, doc: dict) -> TimeEntry:
        """
        Convert database document to a running or completed entry.
        """
        fields = {
            "_id": str(doc["_id"]),
            "employee_name": doc["employee_name"],
            "category": doc["category"],
            "ticket_number": doc.get("ticket_number"),
            "line_items": doc.get("line_items", 0),
            "start_time": doc["start_time"],
            "created_at": doc["created_at"],
            "updated_at": doc["updated_at"],
        }

        end_time = doc.get("end_time")
        if end_time is None:
            return RunningEntry(**fields)

        duration = doc.get("duration_minutes")
        if duration is None:
            duration = calculate_duration(doc["start_time"], end_time)
        return CompletedEntry(end_time=end_time, duration_minutes=duration, **fields)

    async def create_entry(
        self,
        entry_create: TimeEntryCreate,
        start_time: Optional[datetime] = None,
    ) -> RunningEntry:
        """
        Start recording a new entry.

        Args:
            entry_create: Employee, category, ticket and line items
            start_time: Optional start time (defaults to now)

        Returns:
            The running entry
        """
        now = datetime.utcnow()
        if start_time is None:
            start_time = now

        entry_doc = {
            "employee_name": entry_create.employee_name,
            "category": entry_create.category.value,
            "ticket_number": entry_create.ticket_number or None,
            "line_items": entry_create.line_items,
            "start_time": to_storage(start_time),
            "end_time": None,
            "duration_minutes": None,
            "created_at": now,
            "updated_at": now,
        }

        result = await self.time_entries.insert_one(entry_doc)
        entry_doc["_id"] = result.inserted_id

        logger.info(
            "Started entry %s for %s (%s)",
            entry_doc["_id"],
            entry_create.employee_name,
            entry_create.category.value,
        )
        return self._doc_to_entry(entry_doc)

    async def stop_entry(
        self,
        entry_id: str,
        end_time: Optional[datetime] = None,
    ) -> CompletedEntry:
        """
        Stop a running entry.

        The update only matches while ``end_time`` is still null, so of two
        concurrent stops exactly one succeeds.

        Args:
            entry_id: Time entry ID
            end_time: Optional end time (defaults to now)

        Returns:
            Entry with end_time and duration_minutes set

        Raises:
            NotFoundError: If the entry does not exist
            InvalidStateError: If the entry is already stopped
        """
        object_id = _parse_id(entry_id)
        if object_id is None:
            raise NotFoundError(f"Time entry {entry_id} not found")

        existing = await self.time_entries.find_one({"_id": object_id})
        if not existing:
            raise NotFoundError(f"Time entry {entry_id} not found")
        if existing.get("end_time") is not None:
            raise InvalidStateError(f"Time entry {entry_id} is already stopped")

        now = datetime.utcnow()
        if end_time is None:
            end_time = now
        end_time = to_storage(end_time)

        updated_doc = await self.time_entries.find_one_and_update(
            {"_id": object_id, "end_time": None},
            {
                "$set": {
                    "end_time": end_time,
                    "duration_minutes": calculate_duration(existing["start_time"], end_time),
                    "updated_at": now,
                }
            },
            return_document=True,
        )

        if not updated_doc:
            # Another request stopped it between the read and the update
            raise InvalidStateError(f"Time entry {entry_id} is already stopped")

        logger.info("Stopped entry %s", entry_id)
        return self._doc_to_entry(updated_doc)

    async def get_entry(self, entry_id: str) -> TimeEntry:
        """
        Get a single entry.

        Raises:
            NotFoundError: If the entry does not exist
        """
        object_id = _parse_id(entry_id)
        doc = None
        if object_id is not None:
            doc = await self.time_entries.find_one({"_id": object_id})

        if not doc:
            raise NotFoundError(f"Time entry {entry_id} not found")

        return self._doc_to_entry(doc)

    async def list_entries(
        self,
        employee_name: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        completed_only: bool = False,
        end_exclusive: bool = False,
    ) -> list[TimeEntry]:
        """
        List entries, newest first, with optional filtering.

        Args:
            employee_name: Optional employee filter (all employees if omitted)
            start_date: Optional lower bound on start_time (inclusive)
            end_date: Optional upper bound on start_time
            completed_only: Only return stopped entries
            end_exclusive: Treat end_date as exclusive instead of inclusive

        Returns:
            List of time entries
        """
        query = {}

        if employee_name:
            query["employee_name"] = employee_name

        if start_date or end_date:
            query["start_time"] = {}
            if start_date:
                query["start_time"]["$gte"] = to_storage(start_date)
            if end_date:
                operator = "$lt" if end_exclusive else "$lte"
                query["start_time"][operator] = to_storage(end_date)

        if completed_only:
            query["end_time"] = {"$ne": None}
            query["duration_minutes"] = {"$ne": None}

        cursor = self.time_entries.find(query).sort("start_time", -1)
        entry_docs = await cursor.to_list(length=None)

        return [self._doc_to_entry(doc) for doc in entry_docs]

    async def update_entry(
        self,
        entry_id: str,
        entry_update: TimeEntryUpdate,
    ) -> TimeEntry:
        """
        Update the provided fields of an entry.

        Supplying end_time recomputes duration_minutes (and so completes a
        running entry).

        Raises:
            NotFoundError: If the entry does not exist
            ValidationError: If end_time is before start_time or set to null
        """
        object_id = _parse_id(entry_id)
        existing = None
        if object_id is not None:
            existing = await self.time_entries.find_one({"_id": object_id})

        if not existing:
            raise NotFoundError(f"Time entry {entry_id} not found")

        changes = entry_update.model_dump(exclude_unset=True)
        update_doc = {
            "updated_at": datetime.utcnow(),
        }

        if changes.get("employee_name") is not None:
            update_doc["employee_name"] = changes["employee_name"]
        if changes.get("category") is not None:
            update_doc["category"] = changes["category"].value
        if "ticket_number" in changes:
            update_doc["ticket_number"] = changes["ticket_number"] or None
        if changes.get("line_items") is not None:
            update_doc["line_items"] = changes["line_items"]
        if "end_time" in changes and changes["end_time"] is None:
            raise ValidationError("end_time cannot be cleared once set")
        if changes.get("end_time") is not None:
            end_time = to_storage(changes["end_time"])
            if end_time < existing["start_time"]:
                raise ValidationError("end_time must not be before start_time")
            update_doc["end_time"] = end_time
            update_doc["duration_minutes"] = calculate_duration(
                existing["start_time"], end_time
            )

        updated_doc = await self.time_entries.find_one_and_update(
            {"_id": object_id},
            {"$set": update_doc},
            return_document=True,
        )

        if not updated_doc:
            raise NotFoundError(f"Time entry {entry_id} not found")

        logger.info("Updated entry %s (%s)", entry_id, ", ".join(sorted(update_doc)))
        return self._doc_to_entry(updated_doc)

    async def delete_entry(self, entry_id: str) -> dict:
        """
        Delete an entry permanently.

        Unknown or malformed ids are not an error, so clients can retry.

        Returns:
            Dictionary with success flag and deleted_count
        """
        object_id = _parse_id(entry_id)
        if object_id is None:
            return {"success": True, "deleted_count": 0}

        result = await self.time_entries.delete_one({"_id": object_id})

        if result.deleted_count:
            logger.info("Deleted entry %s", entry_id)
        return {"success": True, "deleted_count": result.deleted_count}
