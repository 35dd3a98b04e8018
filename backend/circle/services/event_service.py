"""Event creation and lookup.

- Only owners and admins of the circle may create events
- Deadline must not fall after the event itself; fees are non-negative
- cancel_fee is stored as 0 unless the policy is ``penalty``
"""
import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from circle.models.circle import CircleMember, CircleRole
from circle.models.event import CancelPolicy, Event
from circle.services import notifications
from circle.services.permissions import can_manage_content
from circle.services.rsvp_policy import as_utc

logger = logging.getLogger(__name__)


def _invalid(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=message)


def get_event(db: Session, event_id: str) -> Event:
    event = db.query(Event).filter(Event.event_id == event_id).first()
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


def create_event(
    db: Session,
    circle_id: str,
    title: str,
    start_time_utc: datetime,
    rsvp_deadline: datetime,
    created_by: str,
    actor_role: CircleRole,
    location: Optional[str] = None,
    fee: int = 0,
    note: Optional[str] = None,
    capacity: Optional[int] = None,
    cancel_policy: str = "free",
    cancel_fee: int = 0,
) -> Event:
    """Create an event after validating its fields and the creator's role."""
    if not can_manage_content(actor_role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only an owner or admin may create events",
        )

    try:
        policy = CancelPolicy(cancel_policy)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid cancel policy: {cancel_policy}")

    start_utc = as_utc(start_time_utc)
    deadline_utc = as_utc(rsvp_deadline)
    if deadline_utc > start_utc:
        raise _invalid("rsvp_deadline must not be after the event start")
    if fee < 0:
        raise _invalid("fee must be non-negative")
    if cancel_fee < 0:
        raise _invalid("cancel_fee must be non-negative")
    if capacity is not None and capacity < 1:
        raise _invalid("capacity must be a positive integer")

    event = Event(
        circle_id=circle_id,
        title=title,
        start_time_utc=start_utc,
        rsvp_deadline=deadline_utc,
        location=location,
        fee=fee,
        note=note,
        capacity=capacity,
        cancel_policy=policy,
        cancel_fee=cancel_fee if policy == CancelPolicy.penalty else 0,
        created_by=created_by,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info("Created event '%s' (%s) in circle %s by %s", title, event.event_id, circle_id, created_by)

    member_ids = [
        m.user_id for m in db.query(CircleMember).filter(CircleMember.circle_id == circle_id)
        if m.user_id != created_by
    ]
    notifications.dispatch(notifications.event_created_message(event, member_ids))
    return event


def list_events(db: Session, circle_id: Optional[str] = None) -> list[Event]:
    query = db.query(Event)
    if circle_id:
        query = query.filter(Event.circle_id == circle_id)
    return query.order_by(Event.start_time_utc.desc()).all()
