"""
End-to-end API tests through the FastAPI app
"""

import io

import pandas as pd
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from main import app
from wedding_manager.core.config import settings as app_settings
from wedding_manager.core.db import Base, get_db
from wedding_manager.services.clicksend_client import SendResult, get_messaging_client
from wedding_manager.services.storage_service import get_storage
from wedding_manager.utils.errors import ValidationFailed
from wedding_manager.utils.security import AuthContext, get_auth_context, rate_limiter

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_api.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

class FakeMessagingClient:
    def __init__(self):
        self.mms = []

    async def send_bulk_mms(self, messages):
        self.mms.extend(messages)
        return [SendResult(success=True, to=m.to, message_id="abc") for m in messages]

    async def get_account_balance(self):
        return {"balance": 42.0, "currency": "$"}

class FakeStorage:
    def upload_image(self, folder, owner_id, content, content_type):
        if not (content_type or "").startswith("image/"):
            raise ValidationFailed("Please upload an image file")
        return f"https://storage.example.com/{folder}/{owner_id}.jpg"

    def upload_public(self, path, content, content_type):
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

@pytest.fixture
def messaging():
    return FakeMessagingClient()

@pytest.fixture
def client(db_session, messaging, monkeypatch):
    """Signed-in organizer with storage and gateway faked"""
    monkeypatch.setattr(app_settings, "APP_BASE_URL", "https://wedding.example.com")
    rate_limiter.clear()

    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_auth_context] = lambda: AuthContext(account_id="organizer-1")
    app.dependency_overrides[get_storage] = lambda: FakeStorage()
    app.dependency_overrides[get_messaging_client] = lambda: messaging
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

def create_guest(client, **overrides):
    body = {"first_name": "Sarah", "last_name": "Nguyen", "phone": "0412 345 678", "plus_ones_allowed": 1}
    body.update(overrides)
    response = client.post("/api/guests", json=body)
    assert response.status_code == 201, response.text
    return response.json()["data"]

def save_settings(client):
    response = client.post("/api/settings", json={
        "couple_names": "Sarah & Tom",
        "wedding_date": "2026-03-14",
        "wedding_time": "15:30",
        "venue_name": "The Boathouse",
    })
    assert response.status_code == 200, response.text
    return response.json()["data"]

def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}

def test_requires_session(client):
    del app.dependency_overrides[get_auth_context]

    response = client.get("/api/guests")

    assert response.status_code == 401
    assert response.json()["success"] is False
    assert response.json()["error_code"] == "unauthorized"

def test_settings_roundtrip(client):
    assert client.get("/api/settings").json()["data"] is None

    saved = save_settings(client)
    assert saved["couple_names"] == "Sarah & Tom"

    fetched = client.get("/api/settings").json()["data"]
    assert fetched["wedding_time"] == "15:30"

def test_settings_missing_fields(client):
    response = client.post("/api/settings", json={"couple_names": "Sarah & Tom"})

    assert response.status_code == 400
    assert response.json()["message"] == "Missing required fields"

def test_upload_invitation_image(client):
    save_settings(client)

    response = client.post(
        "/api/settings/invitation-image",
        files={"file": ("invite.jpg", b"\xff\xd8fakejpeg", "image/jpeg")}
    )

    assert response.status_code == 200
    assert response.json()["data"]["invitation_image_url"] == "https://storage.example.com/invitations/organizer-1.jpg"

def test_guest_crud(client):
    guest = create_guest(client, plus_ones=[{"name": "Tom"}])

    assert guest["phone"] == "+61412345678"
    assert guest["phone_display"] == "0412 345 678"
    assert guest["rsvp"]["status"] == "pending"
    assert guest["table_assignment"] is None
    assert [p["name"] for p in guest["plus_ones"]] == ["Tom"]

    response = client.put(f"/api/guests/{guest['id']}", json={
        "first_name": "Sarah", "phone": "0412345678", "plus_ones_allowed": 1, "plus_ones": []
    })
    assert response.status_code == 200
    assert response.json()["data"]["plus_ones"] == []

    assert client.delete(f"/api/guests/{guest['id']}").status_code == 200
    response = client.get(f"/api/guests/{guest['id']}")
    assert response.status_code == 404
    assert response.json()["message"] == "Guest not found"

def test_guest_validation_errors(client):
    response = client.post("/api/guests", json={"first_name": "Sarah", "phone": "123"})
    assert response.status_code == 400
    assert response.json()["message"] == "Please enter a valid Australian mobile number"

    response = client.post("/api/guests", json={"first_name": "Sarah", "phone": "0412345678", "plus_ones_allowed": "lots"})
    assert response.status_code == 400
    assert response.json()["error_code"] == "validation_failed"

def test_duplicate_guest_phone(client):
    create_guest(client)

    response = client.post("/api/guests", json={"first_name": "Sam", "phone": "+61 412 345 678"})

    assert response.status_code == 400
    assert response.json()["error_code"] == "duplicate_guest"

def test_guest_search(client):
    create_guest(client)
    create_guest(client, first_name="Ben", last_name="Lee", phone="0422222222", group_name="Uni")

    response = client.get("/api/guests", params={"search": "uni"})

    assert [g["first_name"] for g in response.json()["data"]] == ["Ben"]

def test_seating_flow_with_capacity_conflict(client):
    """Test a party that doesn't fit gets a 409 with structured details"""
    sarah = create_guest(client)
    ben = create_guest(client, first_name="Ben", phone="0422222222")

    response = client.post("/api/tables", json={"name": "Family", "capacity": 1})
    assert response.status_code == 201
    table = response.json()["data"]

    response = client.post("/api/assignments", json={"guest_id": sarah["id"], "table_id": table["id"]})
    assert response.status_code == 200

    response = client.post("/api/assignments", json={"guest_id": ben["id"], "table_id": table["id"]})
    assert response.status_code == 409
    body = response.json()
    assert body["error_code"] == "capacity_exceeded"
    assert body["details"]["space_left"] == 0

    guest = client.get(f"/api/guests/{sarah['id']}").json()["data"]
    assert guest["table_assignment"] == {"table_id": table["id"], "table_name": "Family"}

    response = client.delete("/api/assignments", params={"guest_id": sarah["id"]})
    assert response.status_code == 200
    assert client.get("/api/assignments").json()["data"] == []

def test_table_update_and_delete(client):
    table = client.post("/api/tables", json={"shape": "rectangular"}).json()["data"]
    assert table["capacity"] == 6

    response = client.put("/api/tables", json={"id": table["id"], "position_x": 42.6, "rotation": 90})
    assert response.json()["data"]["position_x"] == 43
    assert response.json()["data"]["rotation"] == 90

    assert client.put("/api/tables", json={"name": "No id"}).status_code == 400

    assert client.delete("/api/tables", params={"id": table["id"]}).status_code == 200
    assert client.get("/api/tables").json()["data"] == []

def test_floor_plan_and_layout(client):
    floor_plan = client.get("/api/floor-plan").json()["data"]
    assert (floor_plan["width"], floor_plan["height"]) == (1000, 700)

    client.post("/api/tables", json={"position_x": 50, "position_y": 50})
    response = client.get("/api/floor-plan/layout", params={"width": 250, "height": 500})

    layout = response.json()["data"]
    assert layout["scale_factor"] == 0.5
    assert layout["tables"][0]["style"]["width"] == 40

    response = client.post(
        "/api/floor-plan/background",
        files={"file": ("venue.png", b"\x89PNG", "image/png")}
    )
    assert response.json()["data"]["background_image_url"].startswith("https://storage.example.com/floor-plans/")

def test_rsvp_flow(client, db_session):
    guest = create_guest(client)

    response = client.post("/api/rsvp/validate", json={"first_name": "sarah", "passcode": guest["passcode"].upper()})
    assert response.status_code == 200
    assert response.json()["data"]["id"] == guest["id"]

    response = client.post("/api/rsvp/submit", json={
        "guest_id": guest["id"],
        "passcode": guest["passcode"],
        "status": "attending",
        "number_attending": 2,
        "plus_one_names": ["Tom"],
    })
    assert response.status_code == 200
    assert response.json()["data"]["number_attending"] == 2

    response = client.post("/api/rsvp/validate", json={"first_name": "Sarah", "passcode": "wrong123"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid name or passcode"

def test_rsvp_rate_limited(client, monkeypatch):
    monkeypatch.setattr(app_settings, "RATE_LIMIT_PER_MINUTE", 2)
    body = {"first_name": "Nobody", "passcode": "nobo123"}

    assert client.post("/api/rsvp/validate", json=body).status_code == 401
    assert client.post("/api/rsvp/validate", json=body).status_code == 401

    response = client.post("/api/rsvp/validate", json=body)
    assert response.status_code == 429
    assert response.json()["error_code"] == "rate_limited"

def test_qr_lookup_unknown_code(client):
    response = client.get("/api/qr/WED_unknowncode")

    assert response.status_code == 404
    assert response.json()["message"] == "Invalid QR code"

def test_send_qr_then_lookup(client, messaging):
    save_settings(client)
    guest = create_guest(client)

    response = client.post("/api/mms/send-qr", json={"guest_ids": [guest["id"]]})
    assert response.status_code == 200
    assert response.json()["data"]["summary"] == {"total": 1, "success": 1, "failed": 0}

    qr_code = client.get(f"/api/guests/{guest['id']}").json()["data"]["qr_code"]
    response = client.get(f"/api/qr/{qr_code}")
    assert response.json()["data"]["guest"]["first_name"] == "Sarah"
    assert response.json()["data"]["table"] is None

    page = client.get(f"/qr/{qr_code}")
    assert page.status_code == 200
    assert "Table assignment coming soon!" in page.text

def test_send_invitation_without_settings(client):
    guest = create_guest(client)

    response = client.post("/api/mms/send-invitation", json={"guest_ids": [guest["id"]]})

    assert response.status_code == 400

def test_send_invitation_without_base_url(client, monkeypatch):
    save_settings(client)
    guest = create_guest(client)
    monkeypatch.setattr(app_settings, "APP_BASE_URL", None)

    response = client.post("/api/mms/send-invitation", json={"guest_ids": [guest["id"]]})

    assert response.status_code == 500
    assert response.json()["error_code"] == "configuration_error"

def test_mms_balance(client):
    response = client.get("/api/mms/balance")
    assert response.json()["data"] == {"balance": 42.0, "currency": "$"}

def test_dashboard_and_messages(client):
    save_settings(client)
    guest = create_guest(client)
    client.post("/api/mms/send-qr", json={"guest_ids": [guest["id"]]})

    data = client.get("/api/dashboard").json()["data"]
    assert data["settings_configured"] is True
    assert data["guests"]["total"] == 1
    assert data["guests"]["pending"] == 1
    assert data["guests"]["qr_sent"] == 1

    messages = client.get("/api/messages", params={"message_type": "qr_code"}).json()["data"]
    assert len(messages) == 1
    assert messages[0]["status"] == "sent"
    assert messages[0]["guest_name"] == "Sarah Nguyen"
    assert client.get("/api/messages", params={"message_type": "invitation"}).json()["data"] == []

def test_excel_template_and_import(client):
    response = client.get("/api/guests/template.xlsx")
    assert response.status_code == 200
    template = pd.read_excel(io.BytesIO(response.content))
    assert "Phone" in template.columns

    buffer = io.BytesIO()
    pd.DataFrame({"First Name": ["Ben"], "Phone": ["0422 222 222"]}).to_excel(buffer, index=False)
    response = client.post(
        "/api/guests/import",
        files={"file": ("guests.xlsx", buffer.getvalue(), "application/octet-stream")}
    )
    assert response.status_code == 200
    assert response.json()["data"]["imported"] == 1

    response = client.get("/api/guests/export.xlsx")
    exported = pd.read_excel(io.BytesIO(response.content))
    assert list(exported["First Name"]) == ["Ben"]

def test_import_rejects_non_excel(client):
    response = client.post("/api/guests/import", files={"file": ("guests.csv", b"a,b", "text/csv")})
    assert response.status_code == 400

def test_rsvp_page_prefilled(client):
    response = client.get("/rsvp", params={"name": "Sarah", "code": "sara123"})

    assert response.status_code == 200
    assert 'value="Sarah"' in response.text
    assert 'value="sara123"' in response.text

def test_qr_page_unknown_code(client):
    response = client.get("/qr/WED_unknowncode")

    assert response.status_code == 404
    assert "Invalid QR code" in response.text
