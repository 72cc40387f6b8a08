import asyncio
from datetime import datetime, timedelta

from app.database import SessionLocal
from app.models.user_session import AuthSession
from app.models.verification_code import VerificationCode
from app.services.cleanup_service import ExpiredAuthCleanup


def _seed(session):
    now = datetime.utcnow()
    session.add_all(
        [
            VerificationCode(code="111111", email="old@example.com", expires_at=now - timedelta(minutes=1)),
            VerificationCode(code="222222", email="new@example.com", expires_at=now + timedelta(minutes=4)),
            AuthSession(token="stale", email="old@example.com", expires_at=now - timedelta(days=1)),
            AuthSession(token="fresh", email="new@example.com", expires_at=now + timedelta(days=29)),
        ]
    )
    session.commit()


def test_run_once_purges_only_expired_rows():
    session = SessionLocal()
    try:
        _seed(session)
    finally:
        session.close()

    purged = asyncio.run(ExpiredAuthCleanup(interval_minutes=60).run_once())

    assert purged == (1, 1)
    session = SessionLocal()
    try:
        assert [row.code for row in session.query(VerificationCode).all()] == ["222222"]
        assert [row.token for row in session.query(AuthSession).all()] == ["fresh"]
    finally:
        session.close()


def test_disabled_scheduler_does_not_start():
    async def scenario():
        scheduler = ExpiredAuthCleanup(interval_minutes=1, enabled=False)
        await scheduler.start()
        assert scheduler._task is None
        await scheduler.stop()

    asyncio.run(scenario())


def test_scheduler_runs_immediately_and_stops():
    async def scenario():
        scheduler = ExpiredAuthCleanup(interval_minutes=60)
        calls = []

        async def fake_run_once():
            calls.append(1)
            return 0, 0

        scheduler.run_once = fake_run_once
        await scheduler.start()
        await asyncio.sleep(0)
        await scheduler.stop()
        return calls

    assert asyncio.run(scenario()) == [1]
