"""Tests for EntryService."""
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock
from bson import ObjectId


def _doc(**overrides):
    """A stored time entry document."""
    start_time = datetime(2024, 1, 1, 9, 0)
    doc = {
        "_id": ObjectId(),
        "employee_name": "Budi",
        "category": "Ticket",
        "ticket_number": "TCK-101",
        "line_items": 0,
        "start_time": start_time,
        "end_time": None,
        "duration_minutes": None,
        "created_at": start_time,
        "updated_at": start_time,
    }
    doc.update(overrides)
    return doc


class TestCalculateDuration:
    """Tests for duration rounding."""

    def test_whole_minutes(self):
        """Test exact minute differences."""
        from app.services.entry_service import calculate_duration

        start = datetime(2024, 1, 1, 9, 0)
        assert calculate_duration(start, start + timedelta(minutes=90)) == 90

    def test_rounds_to_nearest_minute(self):
        """Test seconds round to the nearest minute, halves up."""
        from app.services.entry_service import calculate_duration

        start = datetime(2024, 1, 1, 9, 0)
        assert calculate_duration(start, start + timedelta(seconds=89)) == 1
        assert calculate_duration(start, start + timedelta(seconds=90)) == 2
        assert calculate_duration(start, start + timedelta(seconds=150)) == 3
        assert calculate_duration(start, start + timedelta(seconds=29)) == 0

    def test_aware_end_time(self):
        """Test an aware end time is compared in UTC."""
        from app.services.entry_service import calculate_duration

        start = datetime(2024, 1, 1, 9, 0)
        end = datetime(2024, 1, 1, 17, 30, tzinfo=timezone(timedelta(hours=7)))
        assert calculate_duration(start, end) == 90


@pytest.mark.asyncio
class TestEntryServiceCreate:
    """Tests for starting entries."""

    async def test_create_entry_success(self, mock_db, mock_entries):
        """Test creating a running entry."""
        from app.services.entry_service import EntryService
        from app.models.time_entry import RunningEntry, TimeEntryCreate

        inserted_id = ObjectId()
        mock_entries.insert_one.return_value = MagicMock(inserted_id=inserted_id)

        service = EntryService(mock_db)
        entry = await service.create_entry(
            TimeEntryCreate(
                employee_name="Budi",
                category="Development & Testing",
                ticket_number="TCK-7",
                line_items=4,
            )
        )

        assert isinstance(entry, RunningEntry)
        assert entry.id == str(inserted_id)
        assert entry.employee_name == "Budi"
        assert entry.line_items == 4
        assert entry.end_time is None
        assert entry.duration_minutes is None

        stored = mock_entries.insert_one.call_args[0][0]
        assert stored["category"] == "Development & Testing"
        assert stored["end_time"] is None
        assert stored["start_time"] == stored["created_at"]

    async def test_create_entry_with_explicit_start(self, mock_db, mock_entries):
        """Test an explicit start time is stored as naive UTC."""
        from app.services.entry_service import EntryService
        from app.models.time_entry import TimeEntryCreate

        mock_entries.insert_one.return_value = MagicMock(inserted_id=ObjectId())

        service = EntryService(mock_db)
        start = datetime(2024, 1, 1, 16, 0, tzinfo=timezone(timedelta(hours=7)))
        entry = await service.create_entry(
            TimeEntryCreate(employee_name="Budi", category="Meeting"),
            start_time=start,
        )

        assert entry.start_time == datetime(2024, 1, 1, 9, 0)

    async def test_create_entry_empty_ticket_stored_as_null(self, mock_db, mock_entries):
        """Test an empty ticket number becomes null."""
        from app.services.entry_service import EntryService
        from app.models.time_entry import TimeEntryCreate

        mock_entries.insert_one.return_value = MagicMock(inserted_id=ObjectId())

        service = EntryService(mock_db)
        entry = await service.create_entry(
            TimeEntryCreate(employee_name="Budi", category="Other", ticket_number="")
        )

        assert entry.ticket_number is None


@pytest.mark.asyncio
class TestEntryServiceStop:
    """Tests for stopping entries."""

    async def test_stop_entry_success(self, mock_db, mock_entries):
        """Test stopping sets end_time and duration."""
        from app.services.entry_service import EntryService
        from app.models.time_entry import CompletedEntry

        running = _doc()
        mock_entries.find_one.return_value = running

        end_time = datetime(2024, 1, 1, 10, 30)
        stopped = dict(running, end_time=end_time, duration_minutes=90)
        mock_entries.find_one_and_update.return_value = stopped

        service = EntryService(mock_db)
        entry = await service.stop_entry(str(running["_id"]), end_time=end_time)

        assert isinstance(entry, CompletedEntry)
        assert entry.duration_minutes == 90

        query, update = mock_entries.find_one_and_update.call_args[0][:2]
        assert query == {"_id": running["_id"], "end_time": None}
        assert update["$set"]["end_time"] == end_time
        assert update["$set"]["duration_minutes"] == 90

    async def test_stop_entry_not_found(self, mock_db, mock_entries):
        """Test stopping an unknown entry fails with NotFoundError."""
        from app.services.entry_service import EntryService
        from app.exceptions import NotFoundError

        mock_entries.find_one.return_value = None

        service = EntryService(mock_db)

        with pytest.raises(NotFoundError, match="not found"):
            await service.stop_entry(str(ObjectId()))

    async def test_stop_entry_malformed_id(self, mock_db, mock_entries):
        """Test a malformed id is reported as not found."""
        from app.services.entry_service import EntryService
        from app.exceptions import NotFoundError

        service = EntryService(mock_db)

        with pytest.raises(NotFoundError):
            await service.stop_entry("not-an-id")
        mock_entries.find_one.assert_not_called()

    async def test_stop_entry_already_stopped(self, mock_db, mock_entries):
        """Test stopping a completed entry fails with InvalidStateError."""
        from app.services.entry_service import EntryService
        from app.exceptions import InvalidStateError

        mock_entries.find_one.return_value = _doc(
            end_time=datetime(2024, 1, 1, 10, 0), duration_minutes=60
        )

        service = EntryService(mock_db)

        with pytest.raises(InvalidStateError, match="already stopped"):
            await service.stop_entry(str(ObjectId()))
        mock_entries.find_one_and_update.assert_not_called()

    async def test_stop_entry_lost_race(self, mock_db, mock_entries):
        """Test a concurrent stop that wins first makes this one fail."""
        from app.services.entry_service import EntryService
        from app.exceptions import InvalidStateError

        mock_entries.find_one.return_value = _doc()
        # Conditional update matched nothing: end_time was set meanwhile
        mock_entries.find_one_and_update.return_value = None

        service = EntryService(mock_db)

        with pytest.raises(InvalidStateError):
            await service.stop_entry(str(ObjectId()))


@pytest.mark.asyncio
class TestEntryServiceGet:
    """Tests for fetching single entries."""

    async def test_get_entry_completed(self, mock_db, mock_entries):
        """Test a stored completed document becomes a CompletedEntry."""
        from app.services.entry_service import EntryService
        from app.models.time_entry import CompletedEntry

        doc = _doc(end_time=datetime(2024, 1, 1, 9, 45), duration_minutes=45)
        mock_entries.find_one.return_value = doc

        service = EntryService(mock_db)
        entry = await service.get_entry(str(doc["_id"]))

        assert isinstance(entry, CompletedEntry)
        assert entry.status == "completed"

    async def test_get_entry_fills_missing_duration(self, mock_db, mock_entries):
        """Test a document with end_time but no duration is completed consistently."""
        from app.services.entry_service import EntryService

        mock_entries.find_one.return_value = _doc(end_time=datetime(2024, 1, 1, 9, 20))

        service = EntryService(mock_db)
        entry = await service.get_entry(str(ObjectId()))

        assert entry.duration_minutes == 20

    async def test_get_entry_not_found(self, mock_db, mock_entries):
        """Test a missing entry raises NotFoundError."""
        from app.services.entry_service import EntryService
        from app.exceptions import NotFoundError

        mock_entries.find_one.return_value = None

        service = EntryService(mock_db)

        with pytest.raises(NotFoundError):
            await service.get_entry(str(ObjectId()))


@pytest.mark.asyncio
class TestEntryServiceList:
    """Tests for listing time entries."""

    async def test_list_entries_all(self, mock_db, mock_entries):
        """Test listing converts every document."""
        from app.services.entry_service import EntryService

        mock_entries.find.return_value.to_list.return_value = [
            _doc(employee_name="Budi"),
            _doc(employee_name="Sari", end_time=datetime(2024, 1, 1, 10, 0), duration_minutes=60),
        ]

        service = EntryService(mock_db)
        entries = await service.list_entries()

        assert [e.employee_name for e in entries] == ["Budi", "Sari"]
        assert [e.status for e in entries] == ["running", "completed"]
        assert mock_entries.find.call_args[0][0] == {}
        mock_entries.find.return_value.sort.assert_called_with("start_time", -1)

    async def test_list_entries_inclusive_range(self, mock_db, mock_entries):
        """Test date filters are inclusive by default."""
        from app.services.entry_service import EntryService

        service = EntryService(mock_db)
        start_date = datetime(2024, 1, 1)
        end_date = datetime(2024, 1, 31)

        await service.list_entries(
            employee_name="Budi",
            start_date=start_date,
            end_date=end_date,
        )

        query = mock_entries.find.call_args[0][0]
        assert query["employee_name"] == "Budi"
        assert query["start_time"] == {"$gte": start_date, "$lte": end_date}
        assert "end_time" not in query

    async def test_list_entries_exclusive_completed(self, mock_db, mock_entries):
        """Test exclusive upper bound and completed-only filter."""
        from app.services.entry_service import EntryService

        service = EntryService(mock_db)
        end_date = datetime(2024, 2, 1, tzinfo=timezone.utc)

        await service.list_entries(
            employee_name="Budi",
            end_date=end_date,
            completed_only=True,
            end_exclusive=True,
        )

        query = mock_entries.find.call_args[0][0]
        assert query["start_time"] == {"$lt": datetime(2024, 2, 1)}
        assert query["end_time"] == {"$ne": None}
        assert query["duration_minutes"] == {"$ne": None}


@pytest.mark.asyncio
class TestEntryServiceUpdate:
    """Tests for updating time entries."""

    async def test_update_entry_fields(self, mock_db, mock_entries):
        """Test updating plain fields leaves duration alone."""
        from app.services.entry_service import EntryService
        from app.models.time_entry import TimeEntryUpdate

        existing = _doc()
        mock_entries.find_one.return_value = existing
        mock_entries.find_one_and_update.return_value = dict(
            existing, category="Meeting", line_items=2
        )

        service = EntryService(mock_db)
        entry = await service.update_entry(
            str(existing["_id"]),
            TimeEntryUpdate(category="Meeting", line_items=2),
        )

        assert entry.category.value == "Meeting"
        changes = mock_entries.find_one_and_update.call_args[0][1]["$set"]
        assert changes["category"] == "Meeting"
        assert changes["line_items"] == 2
        assert "duration_minutes" not in changes
        assert "ticket_number" not in changes

    async def test_update_entry_clears_ticket(self, mock_db, mock_entries):
        """Test ticket_number can be explicitly cleared."""
        from app.services.entry_service import EntryService
        from app.models.time_entry import TimeEntryUpdate

        existing = _doc()
        mock_entries.find_one.return_value = existing
        mock_entries.find_one_and_update.return_value = dict(existing, ticket_number=None)

        service = EntryService(mock_db)
        await service.update_entry(str(existing["_id"]), TimeEntryUpdate(ticket_number=None))

        changes = mock_entries.find_one_and_update.call_args[0][1]["$set"]
        assert changes["ticket_number"] is None

    async def test_update_end_time_recomputes_duration(self, mock_db, mock_entries):
        """Test supplying end_time recomputes duration_minutes."""
        from app.services.entry_service import EntryService
        from app.models.time_entry import TimeEntryUpdate

        existing = _doc(end_time=datetime(2024, 1, 1, 9, 10), duration_minutes=10)
        mock_entries.find_one.return_value = existing
        new_end = datetime(2024, 1, 1, 11, 15)
        mock_entries.find_one_and_update.return_value = dict(
            existing, end_time=new_end, duration_minutes=135
        )

        service = EntryService(mock_db)
        entry = await service.update_entry(
            str(existing["_id"]), TimeEntryUpdate(end_time=new_end)
        )

        changes = mock_entries.find_one_and_update.call_args[0][1]["$set"]
        assert changes["end_time"] == new_end
        assert changes["duration_minutes"] == 135
        assert entry.duration_minutes == 135

    async def test_update_end_time_before_start(self, mock_db, mock_entries):
        """Test an end_time before start_time is rejected."""
        from app.services.entry_service import EntryService
        from app.models.time_entry import TimeEntryUpdate
        from app.exceptions import ValidationError

        mock_entries.find_one.return_value = _doc()

        service = EntryService(mock_db)

        with pytest.raises(ValidationError):
            await service.update_entry(
                str(ObjectId()), TimeEntryUpdate(end_time=datetime(2024, 1, 1, 8, 0))
            )
        mock_entries.find_one_and_update.assert_not_called()

    async def test_update_end_time_cannot_be_cleared(self, mock_db, mock_entries):
        """Test an explicit null end_time is rejected instead of ignored."""
        from app.services.entry_service import EntryService
        from app.models.time_entry import TimeEntryUpdate
        from app.exceptions import ValidationError

        existing = _doc(end_time=datetime(2024, 1, 1, 9, 10), duration_minutes=10)
        mock_entries.find_one.return_value = existing

        service = EntryService(mock_db)

        with pytest.raises(ValidationError, match="cannot be cleared"):
            await service.update_entry(str(existing["_id"]), TimeEntryUpdate(end_time=None))
        mock_entries.find_one_and_update.assert_not_called()

    async def test_update_entry_not_found(self, mock_db, mock_entries):
        """Test updating non-existent entry fails."""
        from app.services.entry_service import EntryService
        from app.models.time_entry import TimeEntryUpdate
        from app.exceptions import NotFoundError

        mock_entries.find_one.return_value = None

        service = EntryService(mock_db)

        with pytest.raises(NotFoundError, match="not found"):
            await service.update_entry(str(ObjectId()), TimeEntryUpdate(line_items=1))


@pytest.mark.asyncio
class TestEntryServiceDelete:
    """Tests for deleting time entries."""

    async def test_delete_entry_success(self, mock_db, mock_entries):
        """Test deleting an existing entry."""
        from app.services.entry_service import EntryService

        mock_entries.delete_one.return_value = MagicMock(deleted_count=1)

        service = EntryService(mock_db)
        result = await service.delete_entry(str(ObjectId()))

        assert result == {"success": True, "deleted_count": 1}

    async def test_delete_missing_entry_twice(self, mock_db, mock_entries):
        """Test deleting an unknown id twice succeeds both times."""
        from app.services.entry_service import EntryService

        mock_entries.delete_one.return_value = MagicMock(deleted_count=0)
        entry_id = str(ObjectId())

        service = EntryService(mock_db)
        first = await service.delete_entry(entry_id)
        second = await service.delete_entry(entry_id)

        assert first == second == {"success": True, "deleted_count": 0}

    async def test_delete_malformed_id(self, mock_db, mock_entries):
        """Test a malformed id is a no-op success."""
        from app.services.entry_service import EntryService

        service = EntryService(mock_db)
        result = await service.delete_entry("nope")

        assert result["success"] is True
        mock_entries.delete_one.assert_not_called()


@pytest.mark.asyncio
async def test_storage_errors_propagate(mock_db, mock_entries):
    """Test database failures are not swallowed."""
    from app.services.entry_service import EntryService

    mock_entries.find_one = AsyncMock(side_effect=RuntimeError("connection lost"))

    service = EntryService(mock_db)

    with pytest.raises(RuntimeError, match="connection lost"):
        await service.get_entry(str(ObjectId()))
