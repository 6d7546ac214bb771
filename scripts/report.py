"""Print a time report for an employee as JSON.

Usage:
    python scripts/report.py --employee "Budi" daily --date 2024-03-04
    python scripts/report.py --employee "Budi" monthly --year 2024 --month 3
"""
import argparse
import asyncio
import json
import sys
from datetime import date
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from motor.motor_asyncio import AsyncIOMotorClient
from app.config import settings
from app.exceptions import ValidationError
from app.services.report_service import ReportService


async def run_report(args: argparse.Namespace):
    """Connect, build the requested report and print it."""
    client = AsyncIOMotorClient(args.mongodb_url)
    service = ReportService(client[settings.mongodb_db_name], zone=args.timezone)

    try:
        if args.kind == "hourly":
            buckets = await service.get_hourly_report(args.employee, args.date)
            payload = [bucket.model_dump(mode="json") for bucket in buckets]
        elif args.kind == "daily":
            report = await service.get_daily_report(args.employee, args.date)
            payload = report.model_dump(mode="json")
        elif args.kind == "weekly":
            report = await service.get_weekly_report(args.employee, args.week_start)
            payload = report.model_dump(mode="json")
        else:
            report = await service.get_monthly_report(args.employee, args.year, args.month)
            payload = report.model_dump(mode="json")
    finally:
        client.close()

    print(json.dumps(payload, indent=2))


def build_parser() -> argparse.ArgumentParser:
    """Command line definition."""
    parser = argparse.ArgumentParser(description="Print a timesheet report")
    parser.add_argument("--employee", required=True, help="Employee name")
    parser.add_argument(
        "--mongodb-url",
        default=settings.mongodb_url,
        help="MongoDB connection URL",
    )
    parser.add_argument(
        "--timezone",
        default=settings.timezone,
        help="IANA zone used for day and hour boundaries",
    )

    kinds = parser.add_subparsers(dest="kind", required=True)

    for kind in ("hourly", "daily"):
        sub = kinds.add_parser(kind)
        sub.add_argument("--date", required=True, type=date.fromisoformat)

    weekly = kinds.add_parser("weekly")
    weekly.add_argument("--week-start", required=True, type=date.fromisoformat)

    monthly = kinds.add_parser("monthly")
    monthly.add_argument("--year", required=True, type=int)
    monthly.add_argument("--month", required=True, type=int)

    return parser


def main():
    """Main entry point."""
    args = build_parser().parse_args()
    try:
        asyncio.run(run_report(args))
    except ValidationError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
