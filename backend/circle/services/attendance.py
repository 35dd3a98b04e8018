"""Attendance aggregation over an event's RSVPs (read-only)."""
from dataclasses import dataclass
from typing import Iterable, Optional

from circle.models.rsvp import RsvpStatus


@dataclass(frozen=True)
class AttendanceSummary:
    yes_count: int
    no_count: int
    maybe_count: int
    capacity: Optional[int]
    remaining_slots: Optional[int]
    is_full: bool


def summarize_attendance(rsvps: Iterable, capacity: Optional[int]) -> AttendanceSummary:
    """Count yes/no/maybe responses and derive remaining capacity.

    ``rsvps`` is any iterable of objects with a ``status`` attribute. Remaining
    slots are floored at zero so an over-subscribed event never shows a
    negative number.
    """
    counts = {RsvpStatus.yes: 0, RsvpStatus.no: 0, RsvpStatus.maybe: 0}
    for rsvp in rsvps:
        if rsvp.status is None:
            continue
        counts[RsvpStatus(rsvp.status)] += 1

    yes_count = counts[RsvpStatus.yes]
    if capacity is None:
        remaining, full = None, False
    else:
        remaining, full = max(capacity - yes_count, 0), yes_count >= capacity

    return AttendanceSummary(
        yes_count=yes_count,
        no_count=counts[RsvpStatus.no],
        maybe_count=counts[RsvpStatus.maybe],
        capacity=capacity,
        remaining_slots=remaining,
        is_full=full,
    )
