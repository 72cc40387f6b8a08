from datetime import datetime
from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text
from app.database import Base


class LeadRequest(Base):
    __tablename__ = "lead_requests"

    id = Column(Integer, primary_key=True, index=True)

    # Step 1: callback request
    name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    project_type = Column(String(64), nullable=False)

    # Step 2: project details
    project_address = Column(String(512), nullable=True)
    roof_size = Column(String(64), nullable=True)
    is_roof_size_unsure = Column(Boolean, default=False, nullable=False)
    plan_urls = Column(JSON, nullable=False, default=list)
    photo_urls = Column(JSON, nullable=False, default=list)
    tile_type = Column(String(128), nullable=True)
    timeframe = Column(String(64), nullable=True)
    referral = Column(String(128), nullable=True)
    message = Column(Text, nullable=True)

    status = Column(String(32), default="callback_requested", nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
