"""Event API routes: delegates to event_service for validation and role checks."""
import logging
from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from circle.database import get_db
from circle.models.rsvp import Rsvp
from circle.schemas.event import AttendanceOut, EventCreate, EventOut
from circle.services import event_service
from circle.services.attendance import summarize_attendance
from circle.services.permissions import get_member_role
from circle.services.rsvp_policy import is_locked

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(payload: EventCreate, db: Session = Depends(get_db)):
    """Create a new event (owner/admin of the circle only)."""
    actor_role = get_member_role(db, payload.circle_id, payload.created_by)
    return event_service.create_event(
        db=db,
        circle_id=payload.circle_id,
        title=payload.title,
        start_time_utc=payload.start_time_utc,
        rsvp_deadline=payload.rsvp_deadline,
        created_by=payload.created_by,
        actor_role=actor_role,
        location=payload.location,
        fee=payload.fee,
        note=payload.note,
        capacity=payload.capacity,
        cancel_policy=payload.cancel_policy,
        cancel_fee=payload.cancel_fee,
    )


@router.get("/", response_model=list[EventOut])
def list_events(circle_id: Optional[str] = Query(None), db: Session = Depends(get_db)):
    """List events, newest first."""
    return event_service.list_events(db, circle_id)


@router.get("/{event_id}", response_model=EventOut)
def get_event(event_id: str, db: Session = Depends(get_db)):
    """Fetch a single event by ID."""
    return event_service.get_event(db, event_id)


@router.get("/{event_id}/attendance", response_model=AttendanceOut)
def get_attendance(event_id: str, db: Session = Depends(get_db)):
    """Yes/no/maybe counts, remaining capacity and lock state."""
    event = event_service.get_event(db, event_id)
    rsvps = db.query(Rsvp).filter(Rsvp.event_id == event_id).all()
    summary = summarize_attendance(rsvps, event.capacity)
    return AttendanceOut(
        event_id=event.event_id,
        yes_count=summary.yes_count,
        no_count=summary.no_count,
        maybe_count=summary.maybe_count,
        capacity=summary.capacity,
        remaining_slots=summary.remaining_slots,
        is_full=summary.is_full,
        is_locked=is_locked(event.rsvp_deadline, datetime.now(timezone.utc)),
    )
