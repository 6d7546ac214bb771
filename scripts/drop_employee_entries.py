"""Drop all time entries for a specific employee."""
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from motor.motor_asyncio import AsyncIOMotorClient

from app.config import settings
from app.database import TIME_ENTRIES


async def drop_employee_entries(mongodb_url: str, employee_name: str):
    """Delete every entry recorded by an employee."""
    client = AsyncIOMotorClient(mongodb_url)
    db = client[settings.mongodb_db_name]

    result = await db[TIME_ENTRIES].delete_many({"employee_name": employee_name})
    print(f"Deleted {result.deleted_count} entries for {employee_name}")

    client.close()
    print("Done!")


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print("Usage: python drop_employee_entries.py <mongodb_url> <employee_name>")
        sys.exit(1)

    asyncio.run(drop_employee_entries(sys.argv[1], sys.argv[2]))
