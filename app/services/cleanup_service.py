import asyncio
import logging

from starlette.concurrency import run_in_threadpool

from app.config import settings
from app.database import SessionLocal
from app.services.otp_service import purge_expired

logger = logging.getLogger(__name__)


class ExpiredAuthCleanup:
    """Background scheduler that deletes expired login codes and sessions."""

    def __init__(self, interval_minutes: int, enabled: bool = True):
        self.interval_seconds = max(interval_minutes, 1) * 60
        self.enabled = enabled
        self._task: asyncio.Task | None = None
        self._stop_event = asyncio.Event()

    async def start(self) -> None:
        if not self.enabled:
            logger.info("Expired auth cleanup disabled by configuration.")
            return
        if self._task and not self._task.done():
            return
        logger.info("Starting expired auth cleanup every %s minutes", self.interval_seconds / 60)
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if not self._task:
            return
        self._stop_event.set()
        await self._task
        self._task = None

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            await self.run_once()
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                continue

    async def run_once(self) -> tuple[int, int]:
        try:
            codes, sessions = await run_in_threadpool(self._purge)
        except Exception:
            logger.exception("Expired auth cleanup failed")
            return 0, 0
        if codes or sessions:
            logger.info("Purged %s expired codes and %s expired sessions", codes, sessions)
        else:
            logger.debug("Nothing to purge.")
        return codes, sessions

    @staticmethod
    def _purge() -> tuple[int, int]:
        session = SessionLocal()
        try:
            return purge_expired(session)
        finally:
            session.close()


cleanup_scheduler = ExpiredAuthCleanup(
    interval_minutes=settings.CLEANUP_INTERVAL_MINUTES,
    enabled=settings.CLEANUP_AUTO_ENABLED,
)
