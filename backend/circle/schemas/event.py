"""Pydantic schemas for Events and attendance."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class EventCreate(BaseModel):
    circle_id: str
    title: str
    start_time_utc: datetime
    rsvp_deadline: datetime
    created_by: str
    location: Optional[str] = None
    fee: int = 0
    note: Optional[str] = None
    capacity: Optional[int] = None
    cancel_policy: str = "free"  # free, deadline_only, penalty
    cancel_fee: int = 0


class EventOut(BaseModel):
    event_id: str
    circle_id: str
    title: str
    start_time_utc: datetime
    rsvp_deadline: datetime
    location: Optional[str] = None
    fee: int
    note: Optional[str] = None
    capacity: Optional[int] = None
    cancel_policy: str
    cancel_fee: int
    created_by: str
    created_at: datetime

    model_config = {"from_attributes": True}


class AttendanceOut(BaseModel):
    event_id: str
    yes_count: int
    no_count: int
    maybe_count: int
    capacity: Optional[int] = None
    remaining_slots: Optional[int] = None
    is_full: bool
    is_locked: bool
