"""Payment API routes: collection status per event."""
import logging
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from circle.database import get_db
from circle.models.payment import PaymentStatus
from circle.schemas.payment import PaymentListOut, PaymentOut, ReconcileOut, ReminderOut
from circle.services import event_service, notifications, payment_service
from circle.services.permissions import get_member_role, require_manager

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=PaymentListOut)
def list_payments(
    event_id: str = Query(...),
    unpaid_only: bool = Query(False),
    db: Session = Depends(get_db),
):
    """Payments for an event with collection totals."""
    event = event_service.get_event(db, event_id)
    all_payments = payment_service.list_payments(db, event_id)
    summary = payment_service.summarize_payments(all_payments, event.fee)
    shown = [p for p in all_payments if p.status == PaymentStatus.unpaid] if unpaid_only else all_payments
    return PaymentListOut(
        event_id=event_id,
        fee=event.fee,
        paid_count=summary.paid_count,
        unpaid_count=summary.unpaid_count,
        collected_amount=summary.collected_amount,
        outstanding_amount=summary.outstanding_amount,
        payments=[PaymentOut.model_validate(p) for p in shown],
    )


@router.post("/{payment_id}/toggle", response_model=PaymentOut)
def toggle_payment(
    payment_id: str,
    actor_user_id: str = Query(...),
    db: Session = Depends(get_db),
):
    """Flip a payment between paid and unpaid (no-op unless owner/admin)."""
    payment = payment_service.get_payment(db, payment_id)
    event = event_service.get_event(db, payment.event_id)
    actor_role = get_member_role(db, event.circle_id, actor_user_id)
    return payment_service.toggle_payment(db, payment_id, actor_role)


@router.post("/reconcile", response_model=ReconcileOut)
def reconcile_payments(
    event_id: str = Query(...),
    actor_user_id: str = Query(...),
    db: Session = Depends(get_db),
):
    """Repair payment rows left out of step with RSVPs (owner/admin only)."""
    event = event_service.get_event(db, event_id)
    require_manager(db, event.circle_id, actor_user_id)
    return payment_service.reconcile_event_payments(db, event_id)


@router.post("/reminders", response_model=ReminderOut)
def send_payment_reminders(
    event_id: str = Query(...),
    actor_user_id: str = Query(...),
    db: Session = Depends(get_db),
):
    """Compose a payment reminder for every member still unpaid (owner/admin only)."""
    event = event_service.get_event(db, event_id)
    require_manager(db, event.circle_id, actor_user_id)
    unpaid = payment_service.list_payments(db, event_id, unpaid_only=True)
    message = notifications.payment_reminder_message(event, [p.user_id for p in unpaid])
    return notifications.dispatch(message)
