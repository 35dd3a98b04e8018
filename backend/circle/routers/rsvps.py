"""RSVP API routes: submission through the reconciliation engine, listing and history."""
import logging
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from circle.database import get_db
from circle.models.rsvp import Rsvp
from circle.models.rsvp_history import RsvpHistoryEntry
from circle.schemas.rsvp import RsvpHistoryOut, RsvpOut, RsvpSubmit, RsvpSubmitOut
from circle.services import event_service, rsvp_service
from circle.services.permissions import get_member_role, require_manager

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/{event_id}/rsvp", response_model=RsvpSubmitOut)
def submit_rsvp(event_id: str, payload: RsvpSubmit, db: Session = Depends(get_db)):
    """Set a member's RSVP. Owners/admins may set it for other members."""
    event = event_service.get_event(db, event_id)
    actor_user_id = payload.actor_user_id or payload.user_id
    actor_role = get_member_role(db, event.circle_id, actor_user_id)
    get_member_role(db, event.circle_id, payload.user_id)

    result = rsvp_service.submit_rsvp(
        db=db,
        event_id=event_id,
        user_id=payload.user_id,
        requested_status=payload.status,
        actor_user_id=actor_user_id,
        actor_role=actor_role,
        confirm_cancel_fee=payload.confirm_cancel_fee,
        reason=payload.reason,
    )
    return RsvpSubmitOut(
        rsvp=RsvpOut.model_validate(result.rsvp),
        payment_status=result.payment.status.value if result.payment else None,
        manager_override=result.decision.manager_override,
        penalty_fee=result.decision.penalty_fee,
    )


@router.get("/{event_id}/rsvps", response_model=list[RsvpOut])
def list_rsvps(event_id: str, db: Session = Depends(get_db)):
    """All responses for an event."""
    event_service.get_event(db, event_id)
    return db.query(Rsvp).filter(Rsvp.event_id == event_id).order_by(Rsvp.updated_at).all()


@router.get("/{event_id}/rsvp-history", response_model=list[RsvpHistoryOut])
def list_rsvp_history(
    event_id: str,
    actor_user_id: str = Query(..., description="Owner/admin requesting the audit trail"),
    db: Session = Depends(get_db),
):
    """RSVP audit trail for an event, newest first (owner/admin only)."""
    event = event_service.get_event(db, event_id)
    require_manager(db, event.circle_id, actor_user_id)
    return (
        db.query(RsvpHistoryEntry)
        .filter(RsvpHistoryEntry.event_id == event_id)
        .order_by(RsvpHistoryEntry.changed_at.desc())
        .all()
    )
