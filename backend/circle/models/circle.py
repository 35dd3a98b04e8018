"""Circle (club) and CircleMember ORM models."""
import enum
import secrets
import uuid
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from circle.database import Base


class CircleRole(str, enum.Enum):
    owner = "owner"
    admin = "admin"
    member = "member"


def generate_join_code() -> str:
    return secrets.token_hex(4).upper()


class Circle(Base):
    __tablename__ = "circles"

    circle_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(150), nullable=False)
    join_code = Column(String(16), nullable=False, unique=True, default=generate_join_code)
    member_limit = Column(Integer, nullable=False, default=30)
    created_by = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    members = relationship("CircleMember", back_populates="circle", cascade="all, delete-orphan")


class CircleMember(Base):
    __tablename__ = "circle_members"

    circle_id = Column(String(36), ForeignKey("circles.circle_id"), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), primary_key=True)
    role = Column(SAEnum(CircleRole), nullable=False, default=CircleRole.member)
    joined_at = Column(DateTime(timezone=True), server_default=func.now())

    circle = relationship("Circle", back_populates="members")
