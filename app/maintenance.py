"""Maintenance commands for the booking database.

Usage:
    python -m app.maintenance check-connection
    python -m app.maintenance init-db
    python -m app.maintenance seed-samples
    python -m app.maintenance show-bookings
    python -m app.maintenance create-admin --username jcastro --password ... --email ...
"""

import argparse
import asyncio
import logging
import sys
from datetime import date, datetime, timezone
from typing import Dict, List

from app.config import settings
from app.db.session import Database
from app.logging_setup import setup_logging
from app.models.models import Booking, BookingStatus
from app.services.accounts import AccountService
from app.services.booking_service import new_booking_id
from app.services.booking_store import BookingStore

logger = logging.getLogger(__name__)


def sample_bookings() -> List[Booking]:
    now = datetime.now(timezone.utc)
    return [
        Booking(
            id=new_booking_id(),
            status=BookingStatus.ACTIVE,
            full_name="John Smith",
            email="john.smith@example.com",
            phone="555-0123",
            service="airport",
            transfer_type="home-to-airport",
            pickup_location={"streetAddress": "123 Main St", "city": "Miami", "state": "FL", "zipCode": "33101"},
            dropoff_location={"streetAddress": "Miami International Airport", "city": "Miami", "state": "FL", "zipCode": "33126"},
            flight_number="AA123",
            flight_date=date(2024, 3, 25),
            flight_time="10:00 AM",
            pickup_time="7:00 AM",
            passengers=2,
            additional_details="Two large suitcases",
            created_at=now,
        ),
        Booking(
            id=new_booking_id(),
            status=BookingStatus.ACTIVE,
            full_name="Jane Doe",
            email="jane.doe@example.com",
            phone="555-4567",
            service="private",
            pickup_location={"streetAddress": "456 Ocean Drive", "city": "Miami Beach", "state": "FL", "zipCode": "33139"},
            dropoff_location={"streetAddress": "789 Lincoln Road", "city": "Miami Beach", "state": "FL", "zipCode": "33139"},
            event_date=date(2024, 3, 26),
            event_time="7:00 PM",
            service_hours=4,
            passengers=4,
            additional_details="Anniversary dinner",
            created_at=now,
        ),
    ]


async def check_connection(db: Database) -> List[str]:
    await db.ping()
    tables = await db.table_names()
    logger.info("Connected to database; tables: %s", ", ".join(tables) or "(none)")
    return tables


async def seed_samples(db: Database) -> int:
    """Replace every booking with the sample set."""
    async with db.sessionmaker() as session:
        store = BookingStore(session)
        removed = await store.delete_all()
        logger.info("Cleared %d existing bookings", removed)
        samples = sample_bookings()
        for booking in samples:
            await store.insert_one(booking)
    logger.info("Added %d sample bookings", len(samples))
    return len(samples)


async def show_bookings(db: Database) -> Dict[str, List[Booking]]:
    out = {}
    async with db.sessionmaker() as session:
        store = BookingStore(session)
        for status in BookingStatus.ALL:
            out[status] = await store.find(status)
    for status, bookings in out.items():
        logger.info("%s bookings: %d", status.capitalize(), len(bookings))
        for b in bookings:
            logger.info("  %s %s %s %s", b.id, b.created_at.isoformat(), b.service, b.full_name)
    return out


async def create_admin(db: Database, username: str, password: str, email: str) -> bool:
    async with db.sessionmaker() as session:
        user = await AccountService(session, settings).create_user(username, password, email, role="admin")
    if user is None:
        logger.info("Admin user %s already exists", username)
        return False
    logger.info("Admin user %s created", username)
    return True


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="python -m app.maintenance", description=__doc__.splitlines()[0])
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("check-connection", help="ping the database and list tables")
    sub.add_parser("init-db", help="create tables without migrations (development)")
    sub.add_parser("seed-samples", help="replace all bookings with two samples")
    sub.add_parser("show-bookings", help="log active and completed bookings")
    admin = sub.add_parser("create-admin", help="create an admin account")
    admin.add_argument("--username", required=True)
    admin.add_argument("--password", required=True)
    admin.add_argument("--email", required=True)
    return parser


async def run(args: argparse.Namespace, db: Database) -> None:
    try:
        if args.command == "check-connection":
            await check_connection(db)
        elif args.command == "init-db":
            await db.create_all()
            logger.info("Tables created")
        elif args.command == "seed-samples":
            await seed_samples(db)
        elif args.command == "show-bookings":
            await show_bookings(db)
        elif args.command == "create-admin":
            await create_admin(db, args.username, args.password, args.email)
    finally:
        await db.dispose()


def main(argv=None) -> int:
    setup_logging(settings.LOG_LEVEL)
    args = build_parser().parse_args(argv)
    try:
        asyncio.run(run(args, Database.from_settings(settings)))
    except Exception:
        logger.exception("%s failed", args.command)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
