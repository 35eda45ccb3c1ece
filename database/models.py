"""
SQLAlchemy ORM models for lead qualification.

Persistent records of lead sessions: identity, final verdict, answers and
the ordered transcript.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Column, String, Integer, DateTime, Text, ForeignKey, JSON, Index,
)
from sqlalchemy.orm import DeclarativeBase, relationship


def _uuid() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    pass


class LeadSessionRecord(Base):
    __tablename__ = "lead_sessions"

    id = Column(String(36), primary_key=True, default=_uuid)
    lead_id = Column(String(36), nullable=False, index=True)
    lead_name = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    source = Column(String(50), default="Manual Entry")
    initial_message = Column(Text, nullable=True)
    business_name = Column(String(255), nullable=True)
    state = Column(String(30), default="awaiting_first_input")
    classification = Column(String(10), default="pending")  # hot, cold, invalid, pending
    reasoning = Column(Text, nullable=True)
    answers_json = Column(JSON, default=dict)
    started_at = Column(DateTime, default=datetime.utcnow)
    completed_at = Column(DateTime, nullable=True)

    turns = relationship(
        "TurnRecord",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="TurnRecord.position",
    )

    __table_args__ = (
        Index("ix_lead_sessions_class_started", "classification", "started_at"),
    )


class TurnRecord(Base):
    __tablename__ = "session_turns"

    id = Column(String(36), primary_key=True, default=_uuid)
    session_id = Column(String(36), ForeignKey("lead_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    speaker = Column(String(10), nullable=False)  # agent, user
    text = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    session = relationship("LeadSessionRecord", back_populates="turns")
