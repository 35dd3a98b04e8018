"""Payment collection: manager toggles, listing totals and repair of stale rows."""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from circle.models.circle import CircleRole
from circle.models.event import Event
from circle.models.payment import Payment, PaymentStatus
from circle.models.rsvp import Rsvp, RsvpStatus
from circle.services.permissions import can_manage_content

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentSummary:
    paid_count: int
    unpaid_count: int
    collected_amount: int
    outstanding_amount: int


def summarize_payments(payments: Iterable[Payment], fee: int) -> PaymentSummary:
    paid = unpaid = 0
    for p in payments:
        if p.status == PaymentStatus.paid:
            paid += 1
        else:
            unpaid += 1
    return PaymentSummary(
        paid_count=paid,
        unpaid_count=unpaid,
        collected_amount=paid * fee,
        outstanding_amount=unpaid * fee,
    )


def get_payment(db: Session, payment_id: str) -> Payment:
    payment = db.query(Payment).filter(Payment.payment_id == payment_id).first()
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")
    return payment


def list_payments(db: Session, event_id: str, unpaid_only: bool = False) -> list[Payment]:
    query = db.query(Payment).filter(Payment.event_id == event_id)
    if unpaid_only:
        query = query.filter(Payment.status == PaymentStatus.unpaid)
    return query.order_by(Payment.updated_at).all()


def toggle_payment(db: Session, payment_id: str, actor_role: CircleRole) -> Payment:
    """Flip paid <-> unpaid. Silently ignored for anyone but an owner or admin."""
    payment = get_payment(db, payment_id)
    if not can_manage_content(actor_role):
        logger.info("Ignoring payment toggle on %s by role %s", payment_id, actor_role)
        return payment

    payment.status = PaymentStatus.unpaid if payment.status == PaymentStatus.paid else PaymentStatus.paid
    payment.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(payment)
    logger.info("Payment %s marked %s", payment_id, payment.status.value)
    return payment


def reconcile_event_payments(db: Session, event_id: str) -> dict[str, Any]:
    """Bring payment rows back in line with current RSVPs.

    Creates missing unpaid rows for ``yes`` RSVPs and deletes unpaid rows whose
    RSVP is no longer ``yes``. Paid rows are left as they are.
    """
    event = db.query(Event).filter(Event.event_id == event_id).first()
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    attending = {
        r.user_id for r in db.query(Rsvp).filter(Rsvp.event_id == event_id, Rsvp.status == RsvpStatus.yes)
    }
    payments = {p.user_id: p for p in db.query(Payment).filter(Payment.event_id == event_id)}
    now = datetime.now(timezone.utc)

    created, removed = [], []
    for user_id in sorted(attending - payments.keys()):
        db.add(Payment(event_id=event_id, user_id=user_id, status=PaymentStatus.unpaid, updated_at=now))
        created.append(user_id)
    for user_id, payment in payments.items():
        if user_id not in attending and payment.status == PaymentStatus.unpaid:
            db.delete(payment)
            removed.append(user_id)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Payments were changed concurrently. Re-fetch and retry.",
        )
    logger.info(
        "Reconciled payments for event %s: %d created, %d removed",
        event_id, len(created), len(removed),
    )
    return {"event_id": event_id, "created": created, "removed": sorted(removed)}
