"""Test configuration and fixtures."""

import copy
from typing import Dict, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.config import Settings
from app.db.session import Database
from app.main import create_app
from app.services.auth import create_session_token
from app.services.notification_providers import NotificationProvider
from app.services.notification_service import NotificationService

# in-memory SQLite shared through a StaticPool
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
ADMIN_PHONE = "+15550009999"


class RecordingProvider(NotificationProvider):
    """Keeps every message instead of sending it; can be told to fail."""

    name = "recording"

    def __init__(self):
        self.sms = []
        self.emails = []
        self.fail_with: Optional[Exception] = None

    async def send_email(self, to: str, subject: str, body: str, meta: Optional[Dict] = None) -> Dict:
        if self.fail_with:
            raise self.fail_with
        self.emails.append({"to": to, "subject": subject, "body": body})
        return {"status": "sent", "provider": self.name}

    async def send_sms(self, to: str, body: str, meta: Optional[Dict] = None) -> Dict:
        if self.fail_with:
            raise self.fail_with
        self.sms.append({"to": to, "body": body, "meta": meta})
        return {"status": "sent", "provider": self.name}


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        DATABASE_URL=TEST_DATABASE_URL,
        SECRET_KEY="test-secret-key",
        ENVIRONMENT="test",
        ADMIN_PASSWORD="862486",
        ADMIN_PASSWORD_HASH=None,
        ADMIN_PHONE_NUMBER=ADMIN_PHONE,
        NOTIFICATION_TIMEOUT_SECONDS=0.5,
    )


@pytest_asyncio.fixture
async def database():
    db = Database(TEST_DATABASE_URL)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    async with database.sessionmaker() as session:
        yield session


@pytest.fixture
def provider():
    return RecordingProvider()


@pytest.fixture
def notifications(provider, test_settings):
    return NotificationService(provider, timeout=test_settings.NOTIFICATION_TIMEOUT_SECONDS, admin_phone=ADMIN_PHONE)


@pytest.fixture
def test_app(test_settings, database, notifications):
    return create_app(test_settings, database=database, notifications=notifications)


@pytest_asyncio.fixture
async def test_client(test_app):
    """Anonymous HTTP client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def admin_client(test_app, test_settings):
    """HTTP client carrying a valid admin session cookie."""
    token = create_session_token("admin", test_settings)
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        client.cookies.set(test_settings.SESSION_COOKIE_NAME, token)
        yield client


AIRPORT_BOOKING = {
    "fullName": "John Smith",
    "email": "j@x.com",
    "phone": "5550123",
    "service": "airport",
    "flightDate": "2024-03-25",
    "flightTime": "10:00",
    "flightNumber": "AA123",
    "transferType": "home-to-airport",
    "pickupLocation": {"streetAddress": "123 Main St", "city": "Miami", "state": "FL", "zipCode": "33101"},
    "passengers": 2,
}

PRIVATE_BOOKING = {
    "fullName": "Jane Doe",
    "email": "jane.doe@example.com",
    "phone": "(305) 555-4567",
    "service": "private",
    "eventDate": "2024-03-26",
    "eventTime": "19:00",
    "serviceHours": 4,
    "pickupLocation": {"streetAddress": "456 Ocean Drive", "city": "Miami Beach", "state": "fl", "zipCode": "33139"},
    "dropoffLocation": {"streetAddress": "789 Lincoln Road", "city": "Miami Beach", "state": "FL", "zipCode": "33139"},
    "passengers": 4,
    "additionalDetails": "Anniversary dinner",
}


@pytest.fixture
def airport_booking():
    return copy.deepcopy(AIRPORT_BOOKING)


@pytest.fixture
def private_booking():
    return copy.deepcopy(PRIVATE_BOOKING)
