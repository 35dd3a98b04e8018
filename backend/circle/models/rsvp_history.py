"""RsvpHistoryEntry ORM model: append-only audit trail of RSVP transitions."""
import uuid
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Enum as SAEnum
from circle.database import Base
from circle.models.circle import CircleRole
from circle.models.rsvp import RsvpStatus


class RsvpHistoryEntry(Base):
    __tablename__ = "rsvp_history"

    entry_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.event_id"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    previous_status = Column(SAEnum(RsvpStatus), nullable=True)  # NULL = first response
    new_status = Column(SAEnum(RsvpStatus), nullable=False)
    changed_by_user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    actor_role = Column(SAEnum(CircleRole), nullable=False)
    manager_override = Column(Boolean, nullable=False, default=False)
    reason = Column(String(500), nullable=True)
    changed_at = Column(DateTime(timezone=True), nullable=False)
