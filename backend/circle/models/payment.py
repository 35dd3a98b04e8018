"""Payment ORM model: fee collection status per (event, user)."""
import uuid
import enum
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, Enum as SAEnum
from sqlalchemy.orm import relationship
from circle.database import Base


class PaymentStatus(str, enum.Enum):
    unpaid = "unpaid"
    paid = "paid"


class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = (UniqueConstraint("event_id", "user_id", name="uq_payments_event_user"),)

    payment_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.event_id"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    status = Column(SAEnum(PaymentStatus), nullable=False, default=PaymentStatus.unpaid)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    event = relationship("Event", back_populates="payments")
    user = relationship("User")

    @property
    def display_name(self):
        return self.user.display_name if self.user else None
