import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure predictable environment variables for tests before importing the app.
BASE_DIR = Path(__file__).resolve().parents[1]
TEST_DB_PATH = BASE_DIR / "test.db"

if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

os.environ.setdefault("DATABASE_URL", f"sqlite:///{TEST_DB_PATH}")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("CLEANUP_AUTO_ENABLED", "false")
os.environ.setdefault("SPACES_KEY", "")
os.environ.setdefault("SPACES_SECRET", "")
os.environ.setdefault("SPACES_NAME", "")

import app.main as main  # noqa: E402  (import after env vars are set)
from app.database import Base, engine  # noqa: E402

# Rebuild from the current models so a leftover test.db never hides schema changes
Base.metadata.drop_all(bind=engine)
Base.metadata.create_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_database():
    """Start every test from empty tables."""
    with engine.begin() as connection:
        for table in reversed(Base.metadata.sorted_tables):
            connection.execute(table.delete())
    yield


@pytest.fixture()
def client(monkeypatch):
    """Provide a TestClient with the cleanup scheduler patched out for isolation."""

    async def _noop_async(*args, **kwargs):
        return None

    monkeypatch.setattr(main.cleanup_scheduler, "start", _noop_async)
    monkeypatch.setattr(main.cleanup_scheduler, "stop", _noop_async)

    with TestClient(main.app) as test_client:
        yield test_client


@pytest.fixture()
def outbox(monkeypatch):
    """Capture login codes instead of sending them."""
    from app.services import otp_service

    sent = {"email": [], "sms": []}
    monkeypatch.setattr(otp_service, "send_email_otp", lambda to, code: sent["email"].append((to, code)))
    monkeypatch.setattr(otp_service, "send_sms_otp", lambda to, code: sent["sms"].append((to, code)))
    return sent
