"""Pydantic schemas for Payments."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class PaymentOut(BaseModel):
    payment_id: str
    event_id: str
    user_id: str
    display_name: Optional[str] = None
    status: str
    updated_at: datetime

    model_config = {"from_attributes": True}


class PaymentListOut(BaseModel):
    event_id: str
    fee: int
    paid_count: int
    unpaid_count: int
    collected_amount: int
    outstanding_amount: int
    payments: list[PaymentOut] = []


class ReconcileOut(BaseModel):
    event_id: str
    created: list[str] = []
    removed: list[str] = []


class ReminderOut(BaseModel):
    title: str
    body: str
    url: str
    recipients: list[str] = []
