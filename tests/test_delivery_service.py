"""
Tests for invitation, QR code and reminder delivery
"""

import asyncio
from urllib.parse import parse_qs, urlparse

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from wedding_manager.core.config import settings as app_settings
from wedding_manager.core.db import Base
from wedding_manager.models import Guest, MessageLog
from wedding_manager.services.clicksend_client import SendResult
from wedding_manager.services.delivery_service import DeliveryService
from wedding_manager.services.guest_service import GuestService
from wedding_manager.services.seating_service import SeatingService
from wedding_manager.services.settings_service import SettingsService
from wedding_manager.utils.errors import ConfigurationError, ValidationFailed
from wedding_manager.utils.security import AuthContext

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_delivery.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ACCOUNT = AuthContext(account_id="organizer-1")

class FakeMessagingClient:
    """Records messages; recipients in `failing` get a failed result"""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.mms = []
        self.sms = []

    def _result(self, message):
        if message.to in self.failing:
            return SendResult(success=False, to=message.to, error="Invalid recipient")
        return SendResult(success=True, to=message.to, message_id=f"id-{message.to}")

    async def send_bulk_mms(self, messages):
        self.mms.extend(messages)
        return [self._result(m) for m in messages]

    async def send_bulk_sms(self, messages):
        self.sms.extend(messages)
        return [self._result(m) for m in messages]

class FakeStorage:
    def __init__(self, fail_for=None):
        self.fail_for = fail_for
        self.uploads = []

    def upload_public(self, path, content, content_type):
        if self.fail_for and path.startswith(f"qr-codes/{self.fail_for}-"):
            raise RuntimeError("bucket unavailable")
        self.uploads.append((path, content_type, len(content)))
        return f"https://storage.example.com/{path}"

@pytest.fixture
def db_session():
    """Create test database session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture(autouse=True)
def base_url(monkeypatch):
    monkeypatch.setattr(app_settings, "APP_BASE_URL", "https://wedding.example.com/")

@pytest.fixture
def wedding(db_session):
    return SettingsService.save_settings(ACCOUNT, {
        "couple_names": "Sarah & Tom",
        "wedding_date": "2026-03-14",
        "wedding_time": "15:30",
        "venue_name": "The Boathouse",
        "venue_address": "1 Harbour St, Sydney",
        "invitation_image_url": "https://storage.example.com/invitations/invite.jpg",
    }, db_session)

@pytest.fixture
def guests(db_session):
    return [
        GuestService.create_guest(ACCOUNT, {"first_name": name, "phone": phone}, [], db_session)
        for name, phone in [("Amy", "0411111111"), ("Ben", "0422222222"), ("Cara", "0433333333")]
    ]

def test_send_invitations_continues_on_failure(db_session, wedding, guests):
    """Test a failed recipient is logged and the rest are still sent"""
    client = FakeMessagingClient(failing={"+61422222222"})

    result = asyncio.run(DeliveryService.send_invitations(ACCOUNT, [g.id for g in guests], client, db_session))

    assert result["summary"] == {"total": 3, "success": 2, "failed": 1}
    assert result["results"][1] == {"guest_id": guests[1].id, "success": False, "error": "Invalid recipient"}
    assert result["results"][0] == {"guest_id": guests[0].id, "success": True}

    sent = {g.first_name: g.invitation_sent_at for g in db_session.query(Guest).all()}
    assert sent["Amy"] is not None
    assert sent["Ben"] is None
    assert sent["Cara"] is not None

    logs = db_session.query(MessageLog).order_by(MessageLog.id).all()
    assert [(log.message_type, log.status) for log in logs] == [
        ("invitation", "sent"), ("invitation", "failed"), ("invitation", "sent")
    ]
    assert logs[0].provider_message_id == "id-+61411111111"
    assert logs[1].error_message == "Invalid recipient"

def test_invitation_message_content(db_session, wedding, guests):
    client = FakeMessagingClient()
    amy = guests[0]

    asyncio.run(DeliveryService.send_invitations(ACCOUNT, [amy.id], client, db_session))

    message = client.mms[0]
    assert message.media_url == "https://storage.example.com/invitations/invite.jpg"
    assert message.body.startswith("Dear Amy,")
    assert "Sarah & Tom" in message.body
    assert "Saturday, 14 March 2026" in message.body
    assert "3:30 PM" in message.body
    assert "The Boathouse" in message.body
    assert "1 Harbour St, Sydney" in message.body
    assert f"Your passcode: {amy.passcode}" in message.body

    link = next(line for line in message.body.splitlines() if line.startswith("RSVP here: "))
    url = urlparse(link[len("RSVP here: "):])
    assert f"{url.scheme}://{url.netloc}{url.path}" == "https://wedding.example.com/rsvp"
    assert parse_qs(url.query) == {"name": ["Amy"], "code": [amy.passcode]}

def test_send_invitations_requires_image(db_session, wedding, guests):
    SettingsService.save_settings(ACCOUNT, {
        "couple_names": "Sarah & Tom",
        "wedding_date": "2026-03-14",
        "wedding_time": "15:30",
        "venue_name": "The Boathouse",
        "invitation_image_url": "",
    }, db_session)

    with pytest.raises(ValidationFailed):
        asyncio.run(DeliveryService.send_invitations(ACCOUNT, [guests[0].id], FakeMessagingClient(), db_session))

def test_send_invitations_requires_settings(db_session, guests):
    with pytest.raises(ValidationFailed):
        asyncio.run(DeliveryService.send_invitations(ACCOUNT, [guests[0].id], FakeMessagingClient(), db_session))

def test_send_requires_selection(db_session, wedding):
    with pytest.raises(ValidationFailed):
        asyncio.run(DeliveryService.send_invitations(ACCOUNT, [], FakeMessagingClient(), db_session))

def test_send_requires_base_url(db_session, wedding, guests, monkeypatch):
    monkeypatch.setattr(app_settings, "APP_BASE_URL", None)
    client = FakeMessagingClient()

    with pytest.raises(ConfigurationError):
        asyncio.run(DeliveryService.send_invitations(ACCOUNT, [guests[0].id], client, db_session))
    assert client.mms == []

def test_send_qr_codes(db_session, wedding, guests):
    """Test QR codes are created lazily, uploaded and sent with table info"""
    amy, ben, _ = guests
    table = SeatingService.create_table(ACCOUNT, {"name": "Family"}, db_session)
    SeatingService.assign_guest(ACCOUNT, amy.id, table.id, db_session)
    client = FakeMessagingClient()
    storage = FakeStorage()

    result = asyncio.run(DeliveryService.send_qr_codes(ACCOUNT, [amy.id, ben.id], client, storage, db_session))

    assert result["summary"] == {"total": 2, "success": 2, "failed": 0}

    refreshed = {g.id: g for g in db_session.query(Guest).all()}
    assert refreshed[amy.id].qr_code.startswith("WED_")
    assert refreshed[amy.id].qr_sent_at is not None

    paths = [path for path, _, _ in storage.uploads]
    assert paths[0].startswith(f"qr-codes/{amy.id}-") and paths[0].endswith(".jpg")
    assert all(content_type == "image/jpeg" for _, content_type, _ in storage.uploads)

    assert client.mms[0].media_url == f"https://storage.example.com/{paths[0]}"
    assert "Your table: Family" in client.mms[0].body
    assert "Table assignment coming soon!" in client.mms[1].body
    assert "Sarah & Tom" in client.mms[1].body

def test_send_qr_codes_keeps_existing_code(db_session, wedding, guests):
    amy = guests[0]
    amy.qr_code = "WED_existingcode"
    db_session.commit()

    asyncio.run(DeliveryService.send_qr_codes(ACCOUNT, [amy.id], FakeMessagingClient(), FakeStorage(), db_session))

    assert db_session.get(Guest, amy.id).qr_code == "WED_existingcode"

def test_send_qr_codes_upload_failure_is_per_guest(db_session, wedding, guests):
    amy, ben, cara = guests
    client = FakeMessagingClient()
    storage = FakeStorage(fail_for=ben.id)

    result = asyncio.run(DeliveryService.send_qr_codes(
        ACCOUNT, [amy.id, ben.id, cara.id], client, storage, db_session
    ))

    assert result["summary"] == {"total": 3, "success": 2, "failed": 1}
    assert result["results"][1] == {"guest_id": ben.id, "success": False, "error": "bucket unavailable"}
    assert [m.to for m in client.mms] == ["+61411111111", "+61433333333"]

    failed = db_session.query(MessageLog).filter(MessageLog.status == "failed").one()
    assert (failed.guest_id, failed.message_type) == (ben.id, "qr_code")

def test_send_reminders(db_session, wedding, guests):
    client = FakeMessagingClient(failing={"+61433333333"})

    result = asyncio.run(DeliveryService.send_reminders(ACCOUNT, [g.id for g in guests], client, db_session))

    assert result["summary"] == {"total": 3, "success": 2, "failed": 1}
    assert len(client.sms) == 3
    assert "rsvp?name=Amy" in client.sms[0].body
    assert {log.message_type for log in db_session.query(MessageLog).all()} == {"reminder"}
