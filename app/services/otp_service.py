"""One-time passcode login: issue, deliver and redeem short-lived codes.

Codes live in ``verification_codes`` keyed by the ``(email, phone)`` pair so a
fresh request overwrites whatever was outstanding for that identifier. A
successful verification deletes the row and opens an ``AuthSession`` whose
token is handed to the browser as the ``auth-token`` cookie.

Expired rows are never matched; they are removed in bulk by
``purge_expired`` from the cleanup scheduler.
"""
import logging
import secrets
from datetime import datetime, timedelta

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.models.user_session import AuthSession
from app.models.verification_code import VerificationCode
from app.schemas.auth import ChannelEnum
from app.services.email_services import send_email_otp
from app.services.sms_service import send_sms_otp

logger = logging.getLogger(__name__)

CODE_MIN = 100000
CODE_MAX = 999999


class InvalidCodeError(Exception):
    """Wrong or expired code; the two cases are reported identically."""


class CodeDeliveryError(Exception):
    pass


def generate_code() -> str:
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


def generate_session_token() -> str:
    return secrets.token_urlsafe(32)


def _find_code(db: Session, email: str | None, phone: str | None) -> VerificationCode | None:
    # `== None` renders IS NULL, which is what the identifier pair needs
    return (
        db.query(VerificationCode)
        .filter(VerificationCode.email == email, VerificationCode.phone == phone)
        .first()
    )


def upsert_code(db: Session, email: str | None, phone: str | None) -> VerificationCode:
    now = datetime.utcnow()
    expires_at = now + timedelta(minutes=settings.OTP_EXPIRE_MINUTES)

    entry = _find_code(db, email, phone)
    if entry is None:
        entry = VerificationCode(
            code=generate_code(),
            email=email,
            phone=phone,
            expires_at=expires_at,
            created_at=now,
        )
        db.add(entry)
        try:
            db.commit()
            db.refresh(entry)
            return entry
        except IntegrityError:
            # A concurrent request inserted the row first; overwrite it instead
            db.rollback()
            entry = _find_code(db, email, phone)
            if entry is None:
                raise

    entry.code = generate_code()
    entry.expires_at = expires_at
    entry.created_at = now
    db.commit()
    db.refresh(entry)
    return entry


def request_code(db: Session, email: str | None, phone: str | None, channel: ChannelEnum) -> None:
    entry = upsert_code(db, email, phone)
    logger.info("Issued login code via %s (expires %s)", channel.value, entry.expires_at.isoformat())

    try:
        if channel == ChannelEnum.sms:
            send_sms_otp(phone, entry.code)
        else:
            send_email_otp(email, entry.code)
    except Exception as exc:
        logger.exception("Login code delivery via %s failed", channel.value)
        raise CodeDeliveryError("Failed to send code") from exc


def find_valid_code(db: Session, code: str, email: str | None, phone: str | None) -> VerificationCode | None:
    matches = []
    if email:
        matches.append(VerificationCode.email == email)
    if phone:
        matches.append(VerificationCode.phone == phone)
    if not matches:
        return None

    return (
        db.query(VerificationCode)
        .filter(
            VerificationCode.code == code,
            or_(*matches),
            VerificationCode.expires_at > datetime.utcnow(),
        )
        .order_by(VerificationCode.created_at.desc())
        .first()
    )


def create_session(db: Session, email: str | None, phone: str | None) -> AuthSession:
    now = datetime.utcnow()
    session = AuthSession(
        token=generate_session_token(),
        email=email,
        phone=phone,
        is_active=True,
        created_at=now,
        expires_at=now + timedelta(days=settings.SESSION_EXPIRE_DAYS),
    )
    db.add(session)
    return session


def verify_code(db: Session, code: str, email: str | None, phone: str | None) -> AuthSession:
    entry = find_valid_code(db, code, email, phone)
    if not entry:
        raise InvalidCodeError("Invalid or expired code")

    db.delete(entry)
    session = create_session(db, entry.email or email, entry.phone or phone)
    db.commit()
    db.refresh(session)
    logger.info("Session %s opened", session.id)
    return session


def get_active_session(db: Session, token: str | None) -> AuthSession | None:
    if not token:
        return None
    return (
        db.query(AuthSession)
        .filter(
            AuthSession.token == token,
            AuthSession.is_active == True,
            AuthSession.expires_at > datetime.utcnow(),
        )
        .first()
    )


def revoke_session(db: Session, session: AuthSession) -> None:
    session.is_active = False
    session.revoked_at = datetime.utcnow()
    db.commit()


def purge_expired(db: Session) -> tuple[int, int]:
    now = datetime.utcnow()
    codes = (
        db.query(VerificationCode)
        .filter(VerificationCode.expires_at <= now)
        .delete(synchronize_session=False)
    )
    sessions = (
        db.query(AuthSession)
        .filter(AuthSession.expires_at <= now)
        .delete(synchronize_session=False)
    )
    db.commit()
    return codes, sessions
