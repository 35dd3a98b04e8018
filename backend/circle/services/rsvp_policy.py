"""RSVP policy evaluation: deadline, cancellation policy and capacity gates.

Pure functions over plain values so the rules can be exercised without a
database session. Callers load the event, the user's previous status and the
current yes-count, then act on the returned RsvpDecision.

Order of evaluation:
1. Deadline/policy gate. Managers (owner/admin) bypass it; for everyone else,
   after the deadline a cancellation from ``yes`` is refused under
   ``deadline_only``, needs the fee confirmed under ``penalty`` and is free
   under ``free``. Any other change after the deadline is refused only under
   ``deadline_only``.
2. Capacity gate. Only for ``yes`` requests on events with a capacity; the
   requesting user's own prior ``yes`` is not counted.
"""
import enum
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from circle.models.circle import CircleRole
from circle.models.event import CancelPolicy
from circle.models.rsvp import RsvpStatus
from circle.services.permissions import can_manage_content


class RejectionReason(str, enum.Enum):
    cancellation_not_allowed = "CancellationNotAllowed"
    cancellation_fee_unconfirmed = "CancellationFeeUnconfirmed"
    rsvp_locked = "RsvpLocked"
    capacity_exceeded = "CapacityExceeded"
    not_permitted = "NotPermitted"


@dataclass(frozen=True)
class RsvpDecision:
    allowed: bool
    reason: Optional[RejectionReason] = None
    manager_override: bool = False
    penalty_fee: Optional[int] = None  # set when a post-deadline cancellation fee was accepted

    @classmethod
    def allow(cls, **kwargs) -> "RsvpDecision":
        return cls(allowed=True, **kwargs)

    @classmethod
    def reject(cls, reason: RejectionReason, **kwargs) -> "RsvpDecision":
        return cls(allowed=False, reason=reason, **kwargs)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_locked(rsvp_deadline: datetime, now: datetime) -> bool:
    return as_utc(now) > as_utc(rsvp_deadline)


def check_deadline_policy(
    cancel_policy: CancelPolicy,
    cancel_fee: Optional[int],
    rsvp_deadline: datetime,
    actor_role: CircleRole,
    previous_status: Optional[RsvpStatus],
    requested_status: RsvpStatus,
    now: datetime,
    confirm_cancel_fee: bool = False,
) -> RsvpDecision:
    if not is_locked(rsvp_deadline, now):
        return RsvpDecision.allow()

    if can_manage_content(actor_role):
        # Record whether a member would have been stopped here.
        as_member = check_deadline_policy(
            cancel_policy, cancel_fee, rsvp_deadline, CircleRole.member,
            previous_status, requested_status, now, confirm_cancel_fee=False,
        )
        return RsvpDecision.allow(manager_override=not as_member.allowed)

    cancelling = previous_status == RsvpStatus.yes and requested_status != RsvpStatus.yes
    if cancelling:
        if cancel_policy == CancelPolicy.deadline_only:
            return RsvpDecision.reject(RejectionReason.cancellation_not_allowed)
        if cancel_policy == CancelPolicy.penalty:
            fee = cancel_fee or 0
            if not confirm_cancel_fee:
                return RsvpDecision.reject(RejectionReason.cancellation_fee_unconfirmed, penalty_fee=fee)
            return RsvpDecision.allow(penalty_fee=fee)
        return RsvpDecision.allow()

    if cancel_policy in (CancelPolicy.free, CancelPolicy.penalty):
        return RsvpDecision.allow()
    return RsvpDecision.reject(RejectionReason.rsvp_locked)


def check_capacity(
    capacity: Optional[int],
    requested_status: RsvpStatus,
    yes_count_excluding_user: int,
) -> RsvpDecision:
    if requested_status != RsvpStatus.yes or capacity is None:
        return RsvpDecision.allow()
    if yes_count_excluding_user >= capacity:
        return RsvpDecision.reject(RejectionReason.capacity_exceeded)
    return RsvpDecision.allow()


def evaluate_rsvp_change(
    event,
    actor_role: CircleRole,
    previous_status: Optional[RsvpStatus],
    requested_status: RsvpStatus,
    yes_count_excluding_user: int,
    now: datetime,
    confirm_cancel_fee: bool = False,
) -> RsvpDecision:
    """Run both gates in order; the first rejection wins."""
    decision = check_deadline_policy(
        CancelPolicy(event.cancel_policy),
        event.cancel_fee,
        event.rsvp_deadline,
        actor_role,
        previous_status,
        requested_status,
        now,
        confirm_cancel_fee=confirm_cancel_fee,
    )
    if not decision.allowed:
        return decision

    capacity_decision = check_capacity(event.capacity, requested_status, yes_count_excluding_user)
    if not capacity_decision.allowed:
        return capacity_decision
    return decision
