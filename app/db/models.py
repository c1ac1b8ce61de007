"""Database models."""
from datetime import datetime
from sqlalchemy import Boolean, Column, Integer, String, DateTime, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class CallRecord(Base):
    """Outbound call record."""

    __tablename__ = "call_records"

    id = Column(Integer, primary_key=True, index=True)
    call_uuid = Column(String, unique=True, index=True, nullable=False)
    target_number = Column(String, nullable=False)
    status = Column(String, default="initiated", nullable=False)  # initiated, simulated, ringing, in-progress, completed, failed, busy, no-answer
    simulated = Column(Boolean, default=False, nullable=False)
    error = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
