"""Event ORM model."""
import uuid
import enum
from sqlalchemy import Column, String, Text, DateTime, Integer, ForeignKey, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from circle.database import Base


class CancelPolicy(str, enum.Enum):
    free = "free"                    # cancel any time
    deadline_only = "deadline_only"  # no changes after the RSVP deadline
    penalty = "penalty"              # cancelling after the deadline costs cancel_fee


class Event(Base):
    __tablename__ = "events"

    event_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    circle_id = Column(String(36), ForeignKey("circles.circle_id"), nullable=False)
    title = Column(String(255), nullable=False)
    start_time_utc = Column(DateTime(timezone=True), nullable=False)
    location = Column(String(500), nullable=True)
    fee = Column(Integer, nullable=False, default=0)
    note = Column(Text, nullable=True)
    rsvp_deadline = Column(DateTime(timezone=True), nullable=False)
    capacity = Column(Integer, nullable=True)  # NULL = unbounded
    cancel_policy = Column(SAEnum(CancelPolicy), nullable=False, default=CancelPolicy.free)
    cancel_fee = Column(Integer, nullable=False, default=0)
    created_by = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    rsvps = relationship("Rsvp", back_populates="event", cascade="all, delete-orphan")
    payments = relationship("Payment", back_populates="event", cascade="all, delete-orphan")
