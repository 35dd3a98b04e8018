"""Pydantic schemas for RSVPs and their history."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class RsvpSubmit(BaseModel):
    user_id: str
    status: str  # yes, no, maybe
    actor_user_id: Optional[str] = None  # defaults to user_id
    confirm_cancel_fee: bool = False
    reason: Optional[str] = None


class RsvpOut(BaseModel):
    rsvp_id: str
    event_id: str
    user_id: str
    display_name: Optional[str] = None
    status: str
    updated_at: datetime

    model_config = {"from_attributes": True}


class RsvpSubmitOut(BaseModel):
    rsvp: RsvpOut
    payment_status: Optional[str] = None
    manager_override: bool = False
    penalty_fee: Optional[int] = None


class RsvpHistoryOut(BaseModel):
    entry_id: str
    event_id: str
    user_id: str
    previous_status: Optional[str] = None
    new_status: str
    changed_by_user_id: str
    actor_role: str
    manager_override: bool
    reason: Optional[str] = None
    changed_at: datetime

    model_config = {"from_attributes": True}
