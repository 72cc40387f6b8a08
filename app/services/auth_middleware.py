import logging

from fastapi import Depends, HTTPException, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import settings
from app.database import SessionLocal, get_db
from app.services.otp_service import get_active_session

logger = logging.getLogger(__name__)


def get_current_session(request: Request, db: Session = Depends(get_db)):
    token = request.cookies.get(settings.AUTH_COOKIE_NAME)
    if not token:
        raise HTTPException(status_code=401, detail="Login required")

    session = get_active_session(db, token)
    if not session:
        raise HTTPException(status_code=401, detail="Session expired or logged out")

    return {"session": session, "db": db, "token": token}


def _session_is_valid(token: str) -> bool:
    db = SessionLocal()
    try:
        return get_active_session(db, token) is not None
    finally:
        db.close()


def _is_protected(path: str) -> bool:
    return any(path == prefix or path.startswith(prefix.rstrip("/") + "/") for prefix in settings.PROTECTED_PREFIXES)


class SessionGateMiddleware(BaseHTTPMiddleware):
    """Redirect unauthenticated visitors away from the client area."""

    async def dispatch(self, request: Request, call_next):
        if not _is_protected(request.url.path):
            return await call_next(request)

        token = request.cookies.get(settings.AUTH_COOKIE_NAME)
        if not token:
            return RedirectResponse(settings.LOGIN_REDIRECT_PATH, status_code=307)

        # Session lookups hit the database; keep them off the event loop
        if not await run_in_threadpool(_session_is_valid, token):
            logger.info("Rejected stale session cookie on %s", request.url.path)
            response = RedirectResponse(settings.LOGIN_REDIRECT_PATH, status_code=307)
            response.delete_cookie(settings.AUTH_COOKIE_NAME)
            return response

        return await call_next(request)
