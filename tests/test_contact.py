import pytest

from app.config import settings
from app.database import SessionLocal
from app.models.contact_submission import ContactSubmission
from app.routers import contact

VALID_FORM = {
    "name": "Ana Lopez",
    "email": "ana@example.com",
    "phone": "+12125551234",
    "contact_type": "homeowner",
    "tile_family": "Vienna",
    "message": "Looking for a quote on a new clay tile roof.",
    "uploaded_files": ["https://cdn.test/uploads/roof-1.jpg"],
    "privacy_accepted": True,
}


@pytest.fixture()
def mailer(monkeypatch):
    sent = {"team": [], "confirmation": [], "sms": []}
    monkeypatch.setattr(contact, "email_configured", lambda: True)
    monkeypatch.setattr(settings, "CONTACT_TO", ["team@example.com"])
    monkeypatch.setattr(contact, "send_team_notification", lambda submission: sent["team"].append(submission.id))
    monkeypatch.setattr(
        contact, "send_submission_confirmation", lambda submission: sent["confirmation"].append(submission.email)
    )
    monkeypatch.setattr(contact, "send_sms", lambda phone, body: sent["sms"].append(phone))
    return sent


def test_contact_validation_errors(client, mailer):
    response = client.post("/api/contact", json={"name": "", "email": "bad", "message": "short"})

    assert response.status_code == 400
    payload = response.json()
    assert payload["message"] == "Please fix the errors below."
    errors = payload["data"]["field_errors"]
    assert set(errors) == {"name", "email", "message", "contact_type", "privacy_accepted"}
    assert mailer["team"] == []


def test_contact_rejects_malformed_email_domain(client, mailer):
    response = client.post("/api/contact", json={**VALID_FORM, "email": "jo@roof..com"})

    assert response.status_code == 400
    assert response.json()["data"]["field_errors"] == {"email": ["Please enter a valid email address"]}
    assert mailer["team"] == []


def test_contact_submission_is_saved_and_mailed(client, mailer):
    response = client.post("/api/contact", json=VALID_FORM)

    assert response.status_code == 201
    submission_id = response.json()["data"]["id"]
    assert mailer["team"] == [submission_id]
    assert mailer["confirmation"] == ["ana@example.com"]
    assert mailer["sms"] == []

    session = SessionLocal()
    try:
        row = session.get(ContactSubmission, submission_id)
        assert row.uploaded_files == ["https://cdn.test/uploads/roof-1.jpg"]
        assert row.status == "pending"
    finally:
        session.close()


def test_contact_sms_opt_in(client, mailer):
    response = client.post("/api/contact", json={**VALID_FORM, "sms_opt_in": True})

    assert response.status_code == 201
    assert mailer["sms"] == ["+12125551234"]


def test_contact_team_email_failure(client, mailer, monkeypatch):
    def _fail(submission):
        raise RuntimeError("smtp down")

    monkeypatch.setattr(contact, "send_team_notification", _fail)

    response = client.post("/api/contact", json=VALID_FORM)

    assert response.status_code == 502
    assert response.json()["message"] == "Failed to send email."


def test_contact_requires_email_configuration(client, monkeypatch):
    monkeypatch.setattr(contact, "email_configured", lambda: False)

    response = client.post("/api/contact", json=VALID_FORM)

    assert response.status_code == 500
    assert response.json()["message"] == "Email service not configured."


def test_dashboard_lists_own_submissions(client, mailer, outbox):
    client.post("/api/contact", json=VALID_FORM)
    client.post("/api/contact", json={**VALID_FORM, "email": "someone@example.com", "phone": None})

    client.post("/api/auth", json={"email": "ana@example.com", "type": "email"})
    code = outbox["email"][-1][1]
    client.post("/api/auth/verify", json={"email": "ana@example.com", "code": code})

    response = client.get("/dashboard")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["count"] == 1
    assert data["submissions"][0]["email"] == "ana@example.com"
