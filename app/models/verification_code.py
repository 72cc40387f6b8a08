from datetime import datetime
from sqlalchemy import Column, DateTime, Index, Integer, String, UniqueConstraint, text
from app.database import Base


class VerificationCode(Base):
    __tablename__ = "verification_codes"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(6), nullable=False, index=True)

    # Exactly one of these is populated per login attempt
    email = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)

    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("email", "phone", name="uq_verification_codes_identifier"),
        Index("ix_verification_codes_expires_at", "expires_at"),
        # NULLs never collide in the pair constraint, so each identifier gets its own
        Index(
            "uq_verification_codes_email",
            "email",
            unique=True,
            sqlite_where=text("phone IS NULL"),
            postgresql_where=text("phone IS NULL"),
        ),
        Index(
            "uq_verification_codes_phone",
            "phone",
            unique=True,
            sqlite_where=text("email IS NULL"),
            postgresql_where=text("email IS NULL"),
        ),
    )
