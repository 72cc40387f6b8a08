from datetime import datetime
from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text
from app.database import Base


class ContactSubmission(Base):
    __tablename__ = "contact_submissions"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(20), nullable=True, index=True)
    company = Column(String(255), nullable=True)
    contact_type = Column(String(64), nullable=False)
    tile_family = Column(String(128), nullable=True)
    tile_color = Column(String(128), nullable=True)
    message = Column(Text, nullable=False)

    # Public URLs of files pushed through the upload queue
    uploaded_files = Column(JSON, nullable=False, default=list)

    opt_in_sms = Column(Boolean, default=False, nullable=False)
    status = Column(String(32), default="pending", nullable=False)
    submitted_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
