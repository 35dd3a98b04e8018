"""RSVP reconciliation engine.

Applies a member's RSVP change and keeps the matching Payment row in step:

- Policy gates (deadline / cancellation policy / capacity) run before any write
- The RSVP upsert and the payment reconciliation commit in one transaction
- The event row is locked while the yes-count is taken, so concurrent ``yes``
  requests cannot both claim the last slot on backends with row locks
- A history entry is appended afterwards; a failure there is logged and never
  undoes the RSVP or payment change
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from circle.models.circle import CircleRole
from circle.models.event import Event
from circle.models.payment import Payment, PaymentStatus
from circle.models.rsvp import Rsvp, RsvpStatus
from circle.models.rsvp_history import RsvpHistoryEntry
from circle.services.permissions import can_manage_content
from circle.services.rsvp_policy import RejectionReason, RsvpDecision, evaluate_rsvp_change

logger = logging.getLogger(__name__)

_REJECTION_STATUS = {
    RejectionReason.cancellation_not_allowed: status.HTTP_403_FORBIDDEN,
    RejectionReason.rsvp_locked: status.HTTP_403_FORBIDDEN,
    RejectionReason.not_permitted: status.HTTP_403_FORBIDDEN,
    RejectionReason.capacity_exceeded: status.HTTP_409_CONFLICT,
    RejectionReason.cancellation_fee_unconfirmed: status.HTTP_428_PRECONDITION_REQUIRED,
}

_REJECTION_MESSAGES = {
    RejectionReason.cancellation_not_allowed: "Cancellation is not allowed after the RSVP deadline.",
    RejectionReason.rsvp_locked: "RSVPs for this event are locked after the deadline.",
    RejectionReason.not_permitted: "Only an owner or admin may set another member's RSVP.",
    RejectionReason.capacity_exceeded: "This event is full.",
    RejectionReason.cancellation_fee_unconfirmed: "Cancelling now incurs a cancellation fee. Confirm to proceed.",
}


@dataclass
class RsvpResult:
    rsvp: Rsvp
    payment: Optional[Payment]
    history_entry: Optional[RsvpHistoryEntry]
    decision: RsvpDecision


def _rejection(decision: RsvpDecision) -> HTTPException:
    detail = {
        "reason": decision.reason.value,
        "message": _REJECTION_MESSAGES[decision.reason],
    }
    if decision.penalty_fee is not None:
        detail["cancel_fee"] = decision.penalty_fee
    return HTTPException(status_code=_REJECTION_STATUS[decision.reason], detail=detail)


def parse_rsvp_status(value: str) -> RsvpStatus:
    try:
        return RsvpStatus(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid RSVP status: {value}")


def _reconcile_payment(
    db: Session,
    event_id: str,
    user_id: str,
    rsvp_status: RsvpStatus,
    now: datetime,
) -> Optional[Payment]:
    """Create an unpaid row for ``yes``; drop an unpaid row otherwise. Paid rows are never touched."""
    payment = (
        db.query(Payment)
        .filter(Payment.event_id == event_id, Payment.user_id == user_id)
        .first()
    )
    if rsvp_status == RsvpStatus.yes:
        if payment is None:
            payment = Payment(event_id=event_id, user_id=user_id, status=PaymentStatus.unpaid, updated_at=now)
            db.add(payment)
        elif payment.status == PaymentStatus.unpaid:
            payment.updated_at = now
        return payment

    if payment is not None and payment.status == PaymentStatus.unpaid:
        db.delete(payment)
        return None
    return payment


def _append_history(
    db: Session,
    event_id: str,
    user_id: str,
    previous_status: Optional[RsvpStatus],
    new_status: RsvpStatus,
    actor_user_id: str,
    actor_role: CircleRole,
    decision: RsvpDecision,
    reason: Optional[str],
    now: datetime,
) -> RsvpHistoryEntry:
    if reason is None and decision.penalty_fee is not None:
        reason = f"cancellation fee {decision.penalty_fee} accepted"
    entry = RsvpHistoryEntry(
        event_id=event_id,
        user_id=user_id,
        previous_status=previous_status,
        new_status=new_status,
        changed_by_user_id=actor_user_id,
        actor_role=actor_role,
        manager_override=decision.manager_override,
        reason=reason,
        changed_at=now,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def count_yes_excluding(db: Session, event_id: str, user_id: str) -> int:
    return (
        db.query(func.count(Rsvp.rsvp_id))
        .filter(Rsvp.event_id == event_id, Rsvp.status == RsvpStatus.yes, Rsvp.user_id != user_id)
        .scalar()
    )


def submit_rsvp(
    db: Session,
    event_id: str,
    user_id: str,
    requested_status: str,
    actor_user_id: str,
    actor_role: CircleRole,
    confirm_cancel_fee: bool = False,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> RsvpResult:
    """Set ``user_id``'s RSVP for an event on behalf of ``actor_user_id``.

    Raises HTTPException with ``detail["reason"]`` set to the rejection code
    when a gate refuses the change; nothing is written in that case.
    """
    requested = parse_rsvp_status(requested_status)
    now = now or datetime.now(timezone.utc)

    if actor_user_id != user_id and not can_manage_content(actor_role):
        raise _rejection(RsvpDecision.reject(RejectionReason.not_permitted))

    event = db.query(Event).filter(Event.event_id == event_id).with_for_update().first()
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    existing = db.query(Rsvp).filter(Rsvp.event_id == event_id, Rsvp.user_id == user_id).first()
    previous_status = existing.status if existing else None

    decision = evaluate_rsvp_change(
        event,
        actor_role,
        previous_status,
        requested,
        count_yes_excluding(db, event_id, user_id),
        now,
        confirm_cancel_fee=confirm_cancel_fee,
    )
    if not decision.allowed:
        db.rollback()
        logger.warning(
            "RSVP %s -> %s for user %s on event %s rejected: %s",
            previous_status.value if previous_status else None, requested.value,
            user_id, event_id, decision.reason.value,
        )
        raise _rejection(decision)

    if existing is None:
        existing = Rsvp(event_id=event_id, user_id=user_id, status=requested, updated_at=now)
        db.add(existing)
    else:
        existing.status = requested
        existing.updated_at = now

    try:
        payment = _reconcile_payment(db, event_id, user_id, requested, now)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="RSVP was changed concurrently. Re-fetch and retry.",
        )
    except SQLAlchemyError:
        db.rollback()
        logger.exception("RSVP for user %s on event %s not saved", user_id, event_id)
        raise
    logger.info(
        "User %s RSVP'd '%s' to event %s (actor %s, override=%s)",
        user_id, requested.value, event_id, actor_user_id, decision.manager_override,
    )

    try:
        entry = _append_history(
            db, event_id, user_id, previous_status, requested,
            actor_user_id, actor_role, decision, reason, now,
        )
    except SQLAlchemyError:
        db.rollback()
        entry = None
        logger.exception("Failed to append RSVP history for user %s on event %s", user_id, event_id)

    db.refresh(existing)
    if payment is not None:
        db.refresh(payment)
    return RsvpResult(rsvp=existing, payment=payment, history_entry=entry, decision=decision)
